"""
Target schemas: document indexes, graph constraints/indexes and the canonical
direction of every graph relationship.

Both initializers clear the target first; a migration is always a full rebuild.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from neo4j import AsyncDriver
from neo4j.exceptions import Neo4jError
from pymongo import ASCENDING, IndexModel

from db.enums import DocumentCollection, NodeLabel, RelationshipType

logger = logging.getLogger(__name__)


# =============================================================================
# DOCUMENT STORE
# =============================================================================

DOCUMENT_INDEXES: dict[DocumentCollection, list[IndexModel]] = {
    DocumentCollection.USERS: [IndexModel([("email", ASCENDING)], name="email_1")],
    DocumentCollection.MEDIAS: [
        IndexModel([("name", ASCENDING)], name="name_1"),
        IndexModel([("genres", ASCENDING)], name="genres_1"),
    ],
    DocumentCollection.PERSONS: [IndexModel([("lastName", ASCENDING)], name="lastName_1")],
    DocumentCollection.SUBSCRIPTIONS: [IndexModel([("name", ASCENDING)], name="name_1")],
}


async def init_document_schema(database: AsyncIOMotorDatabase) -> None:
    for collection in DocumentCollection:
        await database.drop_collection(collection.value)
    logger.info("🧹 Cleared document collections")

    for collection, indexes in DOCUMENT_INDEXES.items():
        await database[collection].create_indexes(indexes)
    logger.info("📇 Created document indexes")


# =============================================================================
# GRAPH STORE
# =============================================================================

# Write direction of each relationship type; reads use the same direction.
RELATIONSHIP_ENDPOINTS: dict[RelationshipType, tuple[NodeLabel, NodeLabel]] = {
    RelationshipType.OWNS: (NodeLabel.USER, NodeLabel.PROFILE),
    RelationshipType.HAS_WATCHLIST: (NodeLabel.PROFILE, NodeLabel.WATCHLIST),
    RelationshipType.CONTAINS: (NodeLabel.WATCHLIST, NodeLabel.MEDIA),
    RelationshipType.HAS_EPISODE: (NodeLabel.MEDIA, NodeLabel.EPISODE),
    RelationshipType.BELONGS_TO_GENRE: (NodeLabel.MEDIA, NodeLabel.GENRE),
    RelationshipType.WORKED_ON: (NodeLabel.PERSON, NodeLabel.MEDIA),
    RelationshipType.REVIEWED: (NodeLabel.PROFILE, NodeLabel.MEDIA),
    RelationshipType.SUBSCRIBES_TO: (NodeLabel.USER, NodeLabel.SUBSCRIPTION),
    RelationshipType.GIVES_ACCESS_TO: (NodeLabel.SUBSCRIPTION, NodeLabel.GENRE),
    RelationshipType.HAS_PRIVILEGE: (NodeLabel.USER, NodeLabel.PRIVILEGE),
}

# Properties set on each relationship from the parameter row
RELATIONSHIP_PROPERTIES: dict[RelationshipType, str] = {
    RelationshipType.CONTAINS: "{addedAt: datetime()}",
    RelationshipType.WORKED_ON: "{role: row.role}",
    RelationshipType.REVIEWED: "{rating: row.rating, description: row.description, createdAt: datetime(row.createdAt)}",
}

# ISO date strings converted to native dates at write time
NODE_DATE_PROPERTIES: dict[NodeLabel, tuple[str, ...]] = {
    NodeLabel.MEDIA: ("release",),
    NodeLabel.EPISODE: ("release",),
    NodeLabel.PERSON: ("birthDate",),
}

GRAPH_INDEXES: dict[str, tuple[NodeLabel, tuple[str, ...]]] = {
    "user_email": (NodeLabel.USER, ("email",)),
    "profile_name": (NodeLabel.PROFILE, ("name",)),
    "media_name": (NodeLabel.MEDIA, ("name",)),
    "media_type": (NodeLabel.MEDIA, ("type",)),
    "episode_name": (NodeLabel.EPISODE, ("name",)),
    "person_name": (NodeLabel.PERSON, ("firstName", "lastName")),
    "genre_name": (NodeLabel.GENRE, ("name",)),
    "role_name": (NodeLabel.ROLE, ("name",)),
    "subscription_name": (NodeLabel.SUBSCRIPTION, ("name",)),
    "privilege_name": (NodeLabel.PRIVILEGE, ("name",)),
}


def graph_schema_statements() -> list[str]:
    statements = [
        f"CREATE CONSTRAINT {label.lower()}_id IF NOT EXISTS FOR (n:{label}) REQUIRE n.id IS UNIQUE"
        for label in NodeLabel
    ]
    for name, (label, properties) in GRAPH_INDEXES.items():
        columns = ", ".join(f"n.{prop}" for prop in properties)
        statements.append(f"CREATE INDEX {name} IF NOT EXISTS FOR (n:{label}) ON ({columns})")
    return statements


async def init_graph_schema(driver: AsyncDriver, database: str | None = None) -> None:
    async with driver.session(database=database) as session:
        result = await session.run("MATCH (n) DETACH DELETE n")
        await result.consume()
        logger.info("🧹 Cleared graph")

        for statement in graph_schema_statements():
            try:
                result = await session.run(statement)
                await result.consume()
            except Neo4jError as e:
                logger.warning(f"Schema statement failed, continuing: {statement} ({e})")
    logger.info("📇 Created graph constraints and indexes")
