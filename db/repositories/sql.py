"""
Relational backend: the system of record itself.

Aggregates are assembled per call from the normalized tables with one query
per relation, batched over all requested parents.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import delete as sa_delete
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from db.config import settings
from db.database import session_scope
from db.enums import Tenant
from db.exceptions import EntityNotFoundError
from db.models import (
    Episode,
    Genre,
    Media,
    MediaGenreLink,
    MediaPersonRoleLink,
    Privilege,
    Profile,
    Review,
    Role,
    User,
    UserPrivilegeLink,
    UserSubscriptionLink,
    WatchList,
    WatchListMediaLink,
)
from db.repositories.base import MediaRepository, ensure_can_add_to_watchlist
from db.schemas import (
    EpisodeCreate,
    EpisodeData,
    MediaCreate,
    MediaData,
    MediaUpdate,
    ProfileData,
    ReviewData,
    UserCreate,
    UserData,
    WatchListData,
    group_credits,
)

logger = logging.getLogger(__name__)


def _episode_data(episode: Episode) -> EpisodeData:
    return EpisodeData(
        id=episode.id,
        name=episode.name,
        season_count=episode.season_count,
        episode_count=episode.episode_count,
        runtime=episode.runtime,
        description=episode.description,
        release=episode.release,
    )


class SqlRepository(MediaRepository):
    tenant = Tenant.SQL

    def __init__(self, engine: AsyncEngine, restricted_age_limit: int | None = None):
        self.engine = engine
        self.restricted_age_limit = restricted_age_limit or settings.restricted_age_limit

    # =========================================================================
    # MEDIA
    # =========================================================================

    async def _media_data(self, session: AsyncSession, medias: Sequence[Media]) -> list[MediaData]:
        media_ids = [media.id for media in medias]

        genres: dict[int, list[str]] = defaultdict(list)
        result = await session.exec(
            select(MediaGenreLink.media_id, Genre.name)
            .join(Genre, Genre.id == MediaGenreLink.genre_id)
            .where(MediaGenreLink.media_id.in_(media_ids))
            .order_by(Genre.name)
        )
        for media_id, genre_name in result.all():
            genres[media_id].append(genre_name)

        episodes: dict[int, list[int]] = defaultdict(list)
        result = await session.exec(
            select(Episode.media_id, Episode.id).where(Episode.media_id.in_(media_ids)).order_by(Episode.id)
        )
        for media_id, episode_id in result.all():
            episodes[media_id].append(episode_id)

        credits: dict[int, list[tuple[int, str]]] = defaultdict(list)
        result = await session.exec(
            select(MediaPersonRoleLink.media_id, MediaPersonRoleLink.person_id, Role.name)
            .join(Role, Role.id == MediaPersonRoleLink.role_id)
            .where(MediaPersonRoleLink.media_id.in_(media_ids))
            .order_by(MediaPersonRoleLink.person_id, Role.id)
        )
        for media_id, person_id, role_name in result.all():
            credits[media_id].append((person_id, role_name))

        return [
            MediaData(
                id=media.id,
                name=media.name,
                type=media.type,
                runtime=media.runtime,
                description=media.description,
                cover=media.cover,
                age_limit=media.age_limit,
                release=media.release,
                genres=genres.get(media.id, []),
                episodes=episodes.get(media.id, []),
                credits=group_credits(credits.get(media.id, [])),
            )
            for media in medias
        ]

    async def _get_media(self, session: AsyncSession, media_id: int) -> Media:
        media = await session.get(Media, media_id)
        if media is None:
            raise EntityNotFoundError("Media", media_id)
        return media

    async def _link_genres(self, session: AsyncSession, media_id: int, names: list[str]) -> None:
        """Link genres by name, creating the ones that do not exist yet."""
        names = list(dict.fromkeys(name for name in names if name))
        if not names:
            return
        result = await session.exec(select(Genre).where(Genre.name.in_(names)))
        existing = {genre.name: genre for genre in result.all()}
        for name in names:
            genre = existing.get(name)
            if genre is None:
                genre = Genre(name=name)
                session.add(genre)
                await session.flush()
            session.add(MediaGenreLink(media_id=media_id, genre_id=genre.id))

    async def get_all_media(self) -> list[MediaData]:
        async with session_scope(self.engine) as session:
            result = await session.exec(select(Media).order_by(Media.id))
            return await self._media_data(session, result.all())

    async def get_media_by_id(self, media_id: int) -> MediaData:
        async with session_scope(self.engine) as session:
            media = await self._get_media(session, media_id)
            return (await self._media_data(session, [media]))[0]

    async def create_media(self, data: MediaCreate) -> MediaData:
        async with session_scope(self.engine) as session:
            media = Media(**data.model_dump(exclude={"genres"}))
            session.add(media)
            await session.flush()
            await self._link_genres(session, media.id, data.genres)
            await session.commit()
            media_id = media.id
        logger.info(f"Created media {media_id}")
        return await self.get_media_by_id(media_id)

    async def update_media(self, media_id: int, data: MediaUpdate) -> MediaData:
        async with session_scope(self.engine) as session:
            media = await self._get_media(session, media_id)
            for key, value in data.model_dump(exclude={"genres"}).items():
                setattr(media, key, value)
            session.add(media)
            await session.execute(sa_delete(MediaGenreLink).where(MediaGenreLink.media_id == media_id))
            await self._link_genres(session, media_id, data.genres)
            await session.commit()
        return await self.get_media_by_id(media_id)

    async def delete_media(self, media_id: int) -> None:
        async with session_scope(self.engine) as session:
            media = await self._get_media(session, media_id)
            for statement in (
                sa_delete(MediaGenreLink).where(MediaGenreLink.media_id == media_id),
                sa_delete(WatchListMediaLink).where(WatchListMediaLink.media_id == media_id),
                sa_delete(MediaPersonRoleLink).where(MediaPersonRoleLink.media_id == media_id),
                sa_delete(Review).where(Review.media_id == media_id),
                sa_delete(Episode).where(Episode.media_id == media_id),
            ):
                await session.execute(statement)
            await session.delete(media)
            await session.commit()
        logger.info(f"Deleted media {media_id}")

    # =========================================================================
    # EPISODES
    # =========================================================================

    async def get_media_episodes(self, media_id: int) -> list[EpisodeData]:
        async with session_scope(self.engine) as session:
            await self._get_media(session, media_id)
            result = await session.exec(select(Episode).where(Episode.media_id == media_id).order_by(Episode.id))
            return [_episode_data(episode) for episode in result.all()]

    async def get_media_episode(self, media_id: int, episode_id: int) -> EpisodeData:
        async with session_scope(self.engine) as session:
            await self._get_media(session, media_id)
            result = await session.exec(select(Episode).where(Episode.id == episode_id, Episode.media_id == media_id))
            episode = result.first()
            if episode is None:
                raise EntityNotFoundError("Episode", episode_id)
            return _episode_data(episode)

    async def create_episode(self, media_id: int, data: EpisodeCreate) -> EpisodeData:
        async with session_scope(self.engine) as session:
            await self._get_media(session, media_id)
            episode = Episode(media_id=media_id, **data.model_dump())
            session.add(episode)
            await session.commit()
            await session.refresh(episode)
            return _episode_data(episode)

    # =========================================================================
    # USERS
    # =========================================================================

    async def _user_data(self, session: AsyncSession, users: Sequence[User]) -> list[UserData]:
        user_ids = [user.id for user in users]

        result = await session.exec(select(Profile).where(Profile.user_id.in_(user_ids)).order_by(Profile.id))
        profiles = result.all()
        profile_ids = [profile.id for profile in profiles]

        result = await session.exec(select(WatchList).where(WatchList.profile_id.in_(profile_ids)))
        locked = {watch_list.profile_id: bool(watch_list.is_locked) for watch_list in result.all()}

        watch_list_medias: dict[int, list[int]] = defaultdict(list)
        result = await session.exec(
            select(WatchListMediaLink.watch_list_id, WatchListMediaLink.media_id)
            .where(WatchListMediaLink.watch_list_id.in_(profile_ids))
            .order_by(WatchListMediaLink.media_id)
        )
        for watch_list_id, media_id in result.all():
            watch_list_medias[watch_list_id].append(media_id)

        reviews: dict[int, list[Review]] = defaultdict(list)
        result = await session.exec(
            select(Review).where(Review.profile_id.in_(profile_ids)).order_by(Review.profile_id, Review.media_id)
        )
        for review in result.all():
            reviews[review.profile_id].append(review)

        subscriptions: dict[int, list[int]] = defaultdict(list)
        result = await session.exec(
            select(UserSubscriptionLink.user_id, UserSubscriptionLink.subscription_id)
            .where(UserSubscriptionLink.user_id.in_(user_ids))
            .order_by(UserSubscriptionLink.subscription_id)
        )
        for user_id, subscription_id in result.all():
            subscriptions[user_id].append(subscription_id)

        privileges: dict[int, list[str]] = defaultdict(list)
        result = await session.exec(
            select(UserPrivilegeLink.user_id, Privilege.name)
            .join(Privilege, Privilege.id == UserPrivilegeLink.privilege_id)
            .where(UserPrivilegeLink.user_id.in_(user_ids))
            .order_by(Privilege.id)
        )
        for user_id, privilege_name in result.all():
            privileges[user_id].append(privilege_name)

        profiles_by_user: dict[int, list[ProfileData]] = defaultdict(list)
        for profile in profiles:
            profiles_by_user[profile.user_id].append(
                ProfileData(
                    id=profile.id,
                    name=profile.name,
                    is_child=bool(profile.is_child),
                    watchlist=WatchListData(
                        is_locked=locked.get(profile.id, False),
                        medias=watch_list_medias.get(profile.id, []),
                    ),
                    reviews=[
                        ReviewData(id=index, media_id=r.media_id, rating=r.rating, description=r.description)
                        for index, r in enumerate(reviews.get(profile.id, []), start=1)
                    ],
                )
            )

        return [
            UserData(
                id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                subscriptions=subscriptions.get(user.id, []),
                privileges=privileges.get(user.id, []),
                profiles=profiles_by_user.get(user.id, []),
            )
            for user in users
        ]

    async def get_all_users(self) -> list[UserData]:
        async with session_scope(self.engine) as session:
            result = await session.exec(select(User).order_by(User.id))
            return await self._user_data(session, result.all())

    async def get_user_by_id(self, user_id: int) -> UserData:
        async with session_scope(self.engine) as session:
            user = await session.get(User, user_id)
            if user is None:
                raise EntityNotFoundError("User", user_id)
            return (await self._user_data(session, [user]))[0]

    async def create_user(self, data: UserCreate) -> UserData:
        async with session_scope(self.engine) as session:
            user = User(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                password_hash=data.password_hash,
            )
            session.add(user)
            await session.flush()
            profile = Profile(user_id=user.id, name=data.profile_name, is_child=data.is_child)
            session.add(profile)
            await session.flush()
            session.add(WatchList(profile_id=profile.id, is_locked=False))
            await session.commit()
            user_id = user.id
        logger.info(f"Created user {user_id}")
        return await self.get_user_by_id(user_id)

    async def delete_user(self, user_id: int) -> None:
        async with session_scope(self.engine) as session:
            user = await session.get(User, user_id)
            if user is None:
                raise EntityNotFoundError("User", user_id)
            result = await session.exec(select(Profile.id).where(Profile.user_id == user_id))
            profile_ids = list(result.all())
            for statement in (
                sa_delete(WatchListMediaLink).where(WatchListMediaLink.watch_list_id.in_(profile_ids)),
                sa_delete(Review).where(Review.profile_id.in_(profile_ids)),
                sa_delete(WatchList).where(WatchList.profile_id.in_(profile_ids)),
                sa_delete(Profile).where(Profile.user_id == user_id),
                sa_delete(UserSubscriptionLink).where(UserSubscriptionLink.user_id == user_id),
                sa_delete(UserPrivilegeLink).where(UserPrivilegeLink.user_id == user_id),
            ):
                await session.execute(statement)
            await session.delete(user)
            await session.commit()
        logger.info(f"Deleted user {user_id}")

    async def add_media_to_watchlist(self, user_id: int, profile_id: int, media_id: int) -> UserData:
        async with session_scope(self.engine) as session:
            if await session.get(User, user_id) is None:
                raise EntityNotFoundError("User", user_id)
            profile = await session.get(Profile, profile_id)
            if profile is None or profile.user_id != user_id:
                raise EntityNotFoundError("Profile", profile_id)
            watch_list = await session.get(WatchList, profile_id)
            if watch_list is None:
                raise EntityNotFoundError("WatchList", profile_id)
            media = await self._get_media(session, media_id)

            result = await session.exec(
                select(WatchListMediaLink).where(
                    WatchListMediaLink.watch_list_id == profile_id,
                    WatchListMediaLink.media_id == media_id,
                )
            )
            ensure_can_add_to_watchlist(
                media_id=media_id,
                is_child=bool(profile.is_child),
                is_locked=bool(watch_list.is_locked),
                age_limit=media.age_limit,
                already_listed=result.first() is not None,
                restricted_age_limit=self.restricted_age_limit,
            )
            session.add(WatchListMediaLink(watch_list_id=profile_id, media_id=media_id))
            await session.commit()
        return await self.get_user_by_id(user_id)
