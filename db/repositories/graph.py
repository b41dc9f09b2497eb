"""
Graph backend over the migrated property graph.

Aggregates are rebuilt per call by traversing each relationship type in its
canonical write direction. New nodes get ids from ``GraphIdAllocator``.
"""

import logging
from typing import Any

from neo4j import AsyncDriver, AsyncManagedTransaction, RoutingControl

from db.config import settings
from db.enums import NodeLabel, Tenant
from db.exceptions import EntityNotFoundError
from db.identity import GraphIdAllocator
from db.repositories.base import MediaRepository, ensure_can_add_to_watchlist
from db.schemas import (
    EpisodeCreate,
    EpisodeData,
    EpisodeNode,
    MediaCreate,
    MediaData,
    MediaNode,
    MediaUpdate,
    ProfileData,
    ReviewData,
    UserCreate,
    UserData,
    UserNode,
    WatchListData,
    group_credits,
)

logger = logging.getLogger(__name__)

MEDIA_QUERY = """
MATCH (m:Media) {where}
OPTIONAL MATCH (m)-[:BELONGS_TO_GENRE]->(g:Genre)
WITH m, collect(DISTINCT g.name) AS genres
OPTIONAL MATCH (m)-[:HAS_EPISODE]->(e:Episode)
WITH m, genres, collect(DISTINCT e.id) AS episodes
OPTIONAL MATCH (p:Person)-[w:WORKED_ON]->(m)
WITH m, genres, episodes,
     collect(CASE WHEN p IS NULL THEN NULL ELSE {{personId: p.id, role: w.role}} END) AS credits
RETURN m AS media, genres, episodes, credits
ORDER BY media.id
"""

USER_QUERY = """
MATCH (u:User) {where}
OPTIONAL MATCH (u)-[:SUBSCRIBES_TO]->(s:Subscription)
WITH u, collect(DISTINCT s.id) AS subscriptions
OPTIONAL MATCH (u)-[:HAS_PRIVILEGE]->(pr:Privilege)
WITH u, subscriptions, collect(DISTINCT pr.name) AS privileges
OPTIONAL MATCH (u)-[:OWNS]->(p:Profile)
OPTIONAL MATCH (p)-[:HAS_WATCHLIST]->(w:WatchList)
OPTIONAL MATCH (w)-[:CONTAINS]->(wm:Media)
WITH u, subscriptions, privileges, p, w, collect(DISTINCT wm.id) AS medias
OPTIONAL MATCH (p)-[r:REVIEWED]->(rm:Media)
WITH u, subscriptions, privileges, p, w, medias,
     collect(CASE WHEN rm IS NULL THEN NULL
             ELSE {{mediaId: rm.id, rating: r.rating, description: r.description}} END) AS reviews
RETURN u AS user, subscriptions, privileges,
       collect(CASE WHEN p IS NULL THEN NULL
               ELSE {{id: p.id, name: p.name, isChild: coalesce(p.isChild, false),
                     isLocked: coalesce(w.isLocked, false), medias: medias, reviews: reviews}} END) AS profiles
ORDER BY user.id
"""

WATCHLIST_CONTEXT_QUERY = """
OPTIONAL MATCH (u:User {id: $userId})
OPTIONAL MATCH (u)-[:OWNS]->(p:Profile {id: $profileId})
OPTIONAL MATCH (p)-[:HAS_WATCHLIST]->(w:WatchList)
OPTIONAL MATCH (m:Media {id: $mediaId})
OPTIONAL MATCH (w)-[c:CONTAINS]->(m)
RETURN u IS NOT NULL AS userFound,
       p IS NOT NULL AS profileFound,
       w IS NOT NULL AS watchListFound,
       m IS NOT NULL AS mediaFound,
       coalesce(p.isChild, false) AS isChild,
       coalesce(w.isLocked, false) AS isLocked,
       m.ageLimit AS ageLimit,
       count(c) > 0 AS alreadyListed
"""

WATCHLIST_ADD_QUERY = """
MATCH (:Profile {id: $profileId})-[:HAS_WATCHLIST]->(w:WatchList)
MATCH (m:Media {id: $mediaId})
CREATE (w)-[:CONTAINS {addedAt: datetime()}]->(m)
"""

LINK_GENRES = """
WITH m
UNWIND $genres AS genre
MERGE (g:Genre {id: genre.id})
  ON CREATE SET g.name = genre.name
MERGE (m)-[:BELONGS_TO_GENRE]->(g)
"""


def media_data(record: Any) -> MediaData:
    node = MediaNode.model_validate(dict(record["media"]))
    credits = sorted(((c["personId"], c["role"]) for c in record["credits"]), key=lambda c: (c[0], c[1]))
    return MediaData(
        **node.model_dump(),
        genres=sorted(record["genres"]),
        episodes=sorted(record["episodes"]),
        credits=group_credits(credits),
    )


def user_data(record: Any) -> UserData:
    node = UserNode.model_validate(dict(record["user"]))
    profiles = []
    for profile in sorted(record["profiles"], key=lambda p: p["id"]):
        reviews = sorted(profile["reviews"], key=lambda r: r["mediaId"])
        profiles.append(
            ProfileData(
                id=profile["id"],
                name=profile["name"],
                is_child=profile["isChild"],
                watchlist=WatchListData(is_locked=profile["isLocked"], medias=sorted(profile["medias"])),
                reviews=[
                    ReviewData(id=index, media_id=r["mediaId"], rating=r["rating"], description=r["description"])
                    for index, r in enumerate(reviews, start=1)
                ],
            )
        )
    return UserData(
        id=node.id,
        first_name=node.first_name,
        last_name=node.last_name,
        email=node.email,
        subscriptions=sorted(record["subscriptions"]),
        privileges=sorted(record["privileges"]),
        profiles=profiles,
    )


class GraphRepository(MediaRepository):
    tenant = Tenant.NEO4J

    def __init__(self, driver: AsyncDriver, database: str | None = None, restricted_age_limit: int | None = None):
        self.driver = driver
        self.database = database
        self.restricted_age_limit = restricted_age_limit or settings.restricted_age_limit
        self.ids = GraphIdAllocator(driver, database)

    async def _read(self, query: str, **params) -> list:
        records, _, _ = await self.driver.execute_query(
            query, params, database_=self.database, routing_=RoutingControl.READ
        )
        return records

    async def _write(self, query: str, **params) -> list:
        records, _, _ = await self.driver.execute_query(
            query, params, database_=self.database, routing_=RoutingControl.WRITE
        )
        return records

    async def _exists(self, label: NodeLabel, node_id: int) -> bool:
        records = await self._read(f"MATCH (n:{label} {{id: $id}}) RETURN count(n) AS total", id=node_id)
        return records[0]["total"] > 0

    async def _require(self, label: NodeLabel, node_id: int):
        if not await self._exists(label, node_id):
            raise EntityNotFoundError(label, node_id)

    async def _genre_rows(self, names: list[str]) -> list[dict[str, Any]]:
        """Resolve genre names to ``{id, name}`` rows, assigning ids to new genres."""
        names = list(dict.fromkeys(name for name in names if name))
        if not names:
            return []
        records = await self._read("MATCH (g:Genre) WHERE g.name IN $names RETURN g.name AS name, g.id AS id", names=names)
        existing = {record["name"]: record["id"] for record in records}
        next_id = None
        rows = []
        for name in names:
            if name not in existing:
                if next_id is None:
                    next_id = await self.ids.next_id_for_label(NodeLabel.GENRE)
                existing[name] = next_id
                next_id += 1
            rows.append({"id": existing[name], "name": name})
        return rows

    # Media

    async def get_all_media(self) -> list[MediaData]:
        return [media_data(record) for record in await self._read(MEDIA_QUERY.format(where=""))]

    async def get_media_by_id(self, media_id: int) -> MediaData:
        records = await self._read(MEDIA_QUERY.format(where="WHERE m.id = $id"), id=media_id)
        if not records:
            raise EntityNotFoundError("Media", media_id)
        return media_data(records[0])

    async def create_media(self, data: MediaCreate) -> MediaData:
        media_id = await self.ids.next_id_for_label(NodeLabel.MEDIA)
        props = MediaNode(id=media_id, **data.model_dump(exclude={"genres"})).to_record()
        await self._write(
            "CREATE (m:Media) SET m = $props, m.release = date($props.release)" + LINK_GENRES,
            props=props,
            genres=await self._genre_rows(data.genres),
        )
        logger.info(f"Created media {media_id}")
        return await self.get_media_by_id(media_id)

    async def update_media(self, media_id: int, data: MediaUpdate) -> MediaData:
        await self._require(NodeLabel.MEDIA, media_id)
        props = MediaNode(id=media_id, **data.model_dump(exclude={"genres"})).to_record()
        await self._write(
            """
            MATCH (m:Media {id: $id})
            SET m = $props, m.release = date($props.release)
            WITH m
            OPTIONAL MATCH (m)-[old:BELONGS_TO_GENRE]->()
            DELETE old
            WITH DISTINCT m
            """
            + LINK_GENRES,
            id=media_id,
            props=props,
            genres=await self._genre_rows(data.genres),
        )
        return await self.get_media_by_id(media_id)

    async def delete_media(self, media_id: int) -> None:
        await self._require(NodeLabel.MEDIA, media_id)
        await self._write(
            """
            MATCH (m:Media {id: $id})
            OPTIONAL MATCH (m)-[:HAS_EPISODE]->(e:Episode)
            DETACH DELETE e, m
            """,
            id=media_id,
        )
        logger.info(f"Deleted media {media_id}")

    # Episodes

    async def get_media_episodes(self, media_id: int) -> list[EpisodeData]:
        await self._require(NodeLabel.MEDIA, media_id)
        records = await self._read(
            "MATCH (:Media {id: $id})-[:HAS_EPISODE]->(e:Episode) RETURN e AS episode ORDER BY e.id",
            id=media_id,
        )
        return [EpisodeData.model_validate(EpisodeNode.model_validate(dict(r["episode"])).model_dump()) for r in records]

    async def get_media_episode(self, media_id: int, episode_id: int) -> EpisodeData:
        await self._require(NodeLabel.MEDIA, media_id)
        records = await self._read(
            "MATCH (:Media {id: $mediaId})-[:HAS_EPISODE]->(e:Episode {id: $episodeId}) RETURN e AS episode",
            mediaId=media_id,
            episodeId=episode_id,
        )
        if not records:
            raise EntityNotFoundError("Episode", episode_id)
        return EpisodeData.model_validate(EpisodeNode.model_validate(dict(records[0]["episode"])).model_dump())

    async def create_episode(self, media_id: int, data: EpisodeCreate) -> EpisodeData:
        await self._require(NodeLabel.MEDIA, media_id)
        episode_id = await self.ids.next_id_for_label(NodeLabel.EPISODE)
        node = EpisodeNode(id=episode_id, **data.model_dump())
        await self._write(
            """
            MATCH (m:Media {id: $mediaId})
            CREATE (m)-[:HAS_EPISODE]->(e:Episode)
            SET e = $props, e.release = date($props.release)
            """,
            mediaId=media_id,
            props=node.to_record(),
        )
        return EpisodeData.model_validate(node.model_dump())

    # Users

    async def get_all_users(self) -> list[UserData]:
        return [user_data(record) for record in await self._read(USER_QUERY.format(where=""))]

    async def get_user_by_id(self, user_id: int) -> UserData:
        records = await self._read(USER_QUERY.format(where="WHERE u.id = $id"), id=user_id)
        if not records:
            raise EntityNotFoundError("User", user_id)
        return user_data(records[0])

    async def create_user(self, data: UserCreate) -> UserData:
        user_id = await self.ids.next_id_for_label(NodeLabel.USER)
        profile_id = await self.ids.next_id_for_label(NodeLabel.PROFILE)
        user = UserNode(
            id=user_id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password=data.password_hash,
        )
        await self._write(
            """
            CREATE (u:User) SET u = $user
            CREATE (u)-[:OWNS]->(p:Profile {id: $profileId, name: $profileName, isChild: $isChild})
            CREATE (p)-[:HAS_WATCHLIST]->(:WatchList {id: $profileId, isLocked: false})
            """,
            user=user.to_record(),
            profileId=profile_id,
            profileName=data.profile_name,
            isChild=data.is_child,
        )
        logger.info(f"Created user {user_id}")
        return await self.get_user_by_id(user_id)

    async def delete_user(self, user_id: int) -> None:
        await self._require(NodeLabel.USER, user_id)
        await self._write(
            """
            MATCH (u:User {id: $id})
            OPTIONAL MATCH (u)-[:OWNS]->(p:Profile)
            OPTIONAL MATCH (p)-[:HAS_WATCHLIST]->(w:WatchList)
            DETACH DELETE w, p, u
            """,
            id=user_id,
        )
        logger.info(f"Deleted user {user_id}")

    async def _add_to_watchlist(self, tx: AsyncManagedTransaction, user_id: int, profile_id: int, media_id: int):
        result = await tx.run(WATCHLIST_CONTEXT_QUERY, userId=user_id, profileId=profile_id, mediaId=media_id)
        context = await result.single()
        if not context["userFound"]:
            raise EntityNotFoundError("User", user_id)
        if not context["profileFound"]:
            raise EntityNotFoundError("Profile", profile_id)
        if not context["watchListFound"]:
            raise EntityNotFoundError("WatchList", profile_id)
        if not context["mediaFound"]:
            raise EntityNotFoundError("Media", media_id)

        ensure_can_add_to_watchlist(
            media_id=media_id,
            is_child=context["isChild"],
            is_locked=context["isLocked"],
            age_limit=context["ageLimit"],
            already_listed=context["alreadyListed"],
            restricted_age_limit=self.restricted_age_limit,
        )
        result = await tx.run(WATCHLIST_ADD_QUERY, profileId=profile_id, mediaId=media_id)
        await result.consume()

    async def add_media_to_watchlist(self, user_id: int, profile_id: int, media_id: int) -> UserData:
        async with self.driver.session(database=self.database) as session:
            await session.execute_write(self._add_to_watchlist, user_id, profile_id, media_id)
        return await self.get_user_by_id(user_id)
