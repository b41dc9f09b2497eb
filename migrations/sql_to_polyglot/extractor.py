"""
Relational extractor.

Reads every entity table and every relationship set of the relational source.
Each fetch opens its own session so that fetches can run concurrently. The
extractor knows nothing about the document or graph targets.

Relationship sets backed by join tables are optional: a missing table or a
failing query degrades to an empty set with a warning instead of aborting the
extraction phase.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel, select

from db.database import session_scope
from db.models import (
    Episode,
    Genre,
    GenreSubscriptionLink,
    Media,
    MediaGenreLink,
    MediaPersonRoleLink,
    Person,
    Privilege,
    Profile,
    Review,
    Role,
    Subscription,
    User,
    UserPrivilegeLink,
    UserSubscriptionLink,
    WatchList,
    WatchListMediaLink,
)

logger = logging.getLogger(__name__)


class UserProfileRow(NamedTuple):
    user_id: int
    profile_id: int


class ProfileWatchListRow(NamedTuple):
    profile_id: int
    watch_list_id: int


class WatchListMediaRow(NamedTuple):
    watch_list_id: int
    media_id: int


class MediaEpisodeRow(NamedTuple):
    media_id: int
    episode_id: int


class MediaGenreRow(NamedTuple):
    media_id: int
    genre_id: int


class PersonMediaRoleRow(NamedTuple):
    person_id: int
    media_id: int
    role_id: int


class UserSubscriptionRow(NamedTuple):
    user_id: int
    subscription_id: int


class SubscriptionGenreRow(NamedTuple):
    subscription_id: int
    genre_id: int


class UserPrivilegeRow(NamedTuple):
    user_id: int
    privilege_id: int


@dataclass
class SourceEntities:
    users: list[User] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)
    watch_lists: list[WatchList] = field(default_factory=list)
    medias: list[Media] = field(default_factory=list)
    episodes: list[Episode] = field(default_factory=list)
    persons: list[Person] = field(default_factory=list)
    genres: list[Genre] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)
    subscriptions: list[Subscription] = field(default_factory=list)
    privileges: list[Privilege] = field(default_factory=list)


@dataclass
class SourceRelationships:
    user_profiles: list[UserProfileRow] = field(default_factory=list)
    profile_watch_lists: list[ProfileWatchListRow] = field(default_factory=list)
    watch_list_medias: list[WatchListMediaRow] = field(default_factory=list)
    media_episodes: list[MediaEpisodeRow] = field(default_factory=list)
    media_genres: list[MediaGenreRow] = field(default_factory=list)
    person_media_roles: list[PersonMediaRoleRow] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    user_subscriptions: list[UserSubscriptionRow] = field(default_factory=list)
    subscription_genres: list[SubscriptionGenreRow] = field(default_factory=list)
    user_privileges: list[UserPrivilegeRow] = field(default_factory=list)


ENTITY_MODELS: dict[str, type[SQLModel]] = {
    "users": User,
    "profiles": Profile,
    "watch_lists": WatchList,
    "medias": Media,
    "episodes": Episode,
    "persons": Person,
    "genres": Genre,
    "roles": Role,
    "subscriptions": Subscription,
    "privileges": Privilege,
}

Fetcher = Callable[[], Awaitable[list[Any]]]


class RelationalExtractor:
    """Read-only access to the relational source."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    # =========================================================================
    # Entities
    # =========================================================================

    async def fetch_all(self, kind: str) -> list[Any]:
        """All rows of one entity table, ordered by primary key."""
        model = ENTITY_MODELS[kind]
        logger.info(f"Fetching {kind}...")
        async with session_scope(self.engine) as session:
            statement = select(model).order_by(*model.__table__.primary_key.columns)
            result = await session.exec(statement)
            rows = list(result.all())
        logger.info(f"Retrieved {len(rows)} {kind}")
        return rows

    def entity_fetchers(self) -> dict[str, Fetcher]:
        return {kind: (lambda kind=kind: self.fetch_all(kind)) for kind in ENTITY_MODELS}

    # =========================================================================
    # Relationships
    # =========================================================================

    async def _fetch_pairs(self, kind: str, statement, row_type: type[NamedTuple]) -> list[Any]:
        logger.info(f"Fetching {kind}...")
        async with session_scope(self.engine) as session:
            result = await session.exec(statement)
            rows = [row_type(*row) for row in result.all()]
        logger.info(f"Retrieved {len(rows)} {kind}")
        return rows

    async def _fetch_optional(self, kind: str, statement, row_type: type[NamedTuple] | None = None) -> list[Any]:
        """Like ``_fetch_pairs`` but an absent table or failing query yields ``[]``."""
        logger.info(f"Fetching {kind}...")
        try:
            async with session_scope(self.engine) as session:
                result = await session.exec(statement)
                rows = [row_type(*row) if row_type else row for row in result.all()]
        except SQLAlchemyError as e:
            logger.warning(f"Could not fetch {kind}, continuing without them: {e}")
            return []
        logger.info(f"Retrieved {len(rows)} {kind}")
        return rows

    async def fetch_user_profiles(self) -> list[UserProfileRow]:
        statement = select(Profile.user_id, Profile.id).order_by(Profile.user_id, Profile.id)
        return await self._fetch_pairs("user profiles", statement, UserProfileRow)

    async def fetch_profile_watch_lists(self) -> list[ProfileWatchListRow]:
        # A watchlist is keyed by its profile id
        watch_lists = await self.fetch_all("watch_lists")
        return [ProfileWatchListRow(w.profile_id, w.profile_id) for w in watch_lists]

    async def fetch_media_episodes(self) -> list[MediaEpisodeRow]:
        statement = select(Episode.media_id, Episode.id).order_by(Episode.media_id, Episode.id)
        return await self._fetch_pairs("media episodes", statement, MediaEpisodeRow)

    async def fetch_watch_list_medias(self) -> list[WatchListMediaRow]:
        statement = select(WatchListMediaLink.watch_list_id, WatchListMediaLink.media_id).order_by(
            WatchListMediaLink.watch_list_id, WatchListMediaLink.media_id
        )
        return await self._fetch_optional("watchlist medias", statement, WatchListMediaRow)

    async def fetch_media_genres(self) -> list[MediaGenreRow]:
        statement = select(MediaGenreLink.media_id, MediaGenreLink.genre_id).order_by(
            MediaGenreLink.media_id, MediaGenreLink.genre_id
        )
        return await self._fetch_optional("media genres", statement, MediaGenreRow)

    async def fetch_person_media_roles(self) -> list[PersonMediaRoleRow]:
        statement = select(
            MediaPersonRoleLink.person_id,
            MediaPersonRoleLink.media_id,
            MediaPersonRoleLink.role_id,
        ).order_by(MediaPersonRoleLink.media_id, MediaPersonRoleLink.person_id, MediaPersonRoleLink.role_id)
        return await self._fetch_optional("person media roles", statement, PersonMediaRoleRow)

    async def fetch_reviews(self) -> list[Review]:
        statement = select(Review).order_by(Review.profile_id, Review.media_id)
        return await self._fetch_optional("reviews", statement)

    async def fetch_user_subscriptions(self) -> list[UserSubscriptionRow]:
        statement = select(UserSubscriptionLink.user_id, UserSubscriptionLink.subscription_id).order_by(
            UserSubscriptionLink.user_id, UserSubscriptionLink.subscription_id
        )
        return await self._fetch_optional("user subscriptions", statement, UserSubscriptionRow)

    async def fetch_subscription_genres(self) -> list[SubscriptionGenreRow]:
        statement = select(GenreSubscriptionLink.subscription_id, GenreSubscriptionLink.genre_id).order_by(
            GenreSubscriptionLink.subscription_id, GenreSubscriptionLink.genre_id
        )
        return await self._fetch_optional("subscription genres", statement, SubscriptionGenreRow)

    async def fetch_user_privileges(self) -> list[UserPrivilegeRow]:
        statement = select(UserPrivilegeLink.user_id, UserPrivilegeLink.privilege_id).order_by(
            UserPrivilegeLink.user_id, UserPrivilegeLink.privilege_id
        )
        return await self._fetch_optional("user privileges", statement, UserPrivilegeRow)

    def relationship_fetchers(self) -> dict[str, Fetcher]:
        return {
            "user_profiles": self.fetch_user_profiles,
            "profile_watch_lists": self.fetch_profile_watch_lists,
            "watch_list_medias": self.fetch_watch_list_medias,
            "media_episodes": self.fetch_media_episodes,
            "media_genres": self.fetch_media_genres,
            "person_media_roles": self.fetch_person_media_roles,
            "reviews": self.fetch_reviews,
            "user_subscriptions": self.fetch_user_subscriptions,
            "subscription_genres": self.fetch_subscription_genres,
            "user_privileges": self.fetch_user_privileges,
        }

    # =========================================================================
    # Counts (status command)
    # =========================================================================

    async def count_entities(self) -> dict[str, int]:
        counts = {}
        async with session_scope(self.engine) as session:
            for kind, model in ENTITY_MODELS.items():
                counts[kind] = await session.scalar(select(func.count()).select_from(model)) or 0
        return counts
