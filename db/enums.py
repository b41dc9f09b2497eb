from enum import StrEnum


class Tenant(StrEnum):
    SQL = "sql"
    MONGO = "mongo"
    NEO4J = "neo4j"


class MigrationTarget(StrEnum):
    DOCUMENT = "document"
    GRAPH = "graph"
    ALL = "all"


class NodeLabel(StrEnum):
    USER = "User"
    PROFILE = "Profile"
    WATCHLIST = "WatchList"
    MEDIA = "Media"
    EPISODE = "Episode"
    PERSON = "Person"
    GENRE = "Genre"
    ROLE = "Role"
    SUBSCRIPTION = "Subscription"
    PRIVILEGE = "Privilege"


class RelationshipType(StrEnum):
    OWNS = "OWNS"
    HAS_WATCHLIST = "HAS_WATCHLIST"
    CONTAINS = "CONTAINS"
    BELONGS_TO_GENRE = "BELONGS_TO_GENRE"
    HAS_EPISODE = "HAS_EPISODE"
    WORKED_ON = "WORKED_ON"
    REVIEWED = "REVIEWED"
    SUBSCRIBES_TO = "SUBSCRIBES_TO"
    GIVES_ACCESS_TO = "GIVES_ACCESS_TO"
    HAS_PRIVILEGE = "HAS_PRIVILEGE"


class DocumentCollection(StrEnum):
    USERS = "users"
    MEDIAS = "medias"
    EPISODES = "episodes"
    PERSONS = "persons"
    SUBSCRIPTIONS = "subscriptions"
    COUNTERS = "counters"


class Sequence(StrEnum):
    MEDIA_ID = "media_id"
    EPISODE_ID = "episode_id"
    USER_ID = "user_id"
