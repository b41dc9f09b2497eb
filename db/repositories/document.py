"""
Document backend over the migrated ``users``/``medias``/``episodes`` collections.

Aggregates are read whole and validated through the ``db.schemas.documents``
models. A profile has no id of its own here: ``profile_id`` is its 1-based
position in the user's ``profiles`` array.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from db.config import settings
from db.enums import DocumentCollection, Sequence, Tenant
from db.exceptions import EntityNotFoundError, ValidationRejectedError
from db.identity import DocumentCounterAllocator
from db.repositories.base import MediaRepository, ensure_can_add_to_watchlist
from db.schemas import (
    EpisodeCreate,
    EpisodeData,
    EpisodeDocument,
    MediaCreate,
    MediaData,
    MediaDocument,
    MediaUpdate,
    ProfileData,
    ProfileDocument,
    ReviewData,
    UserCreate,
    UserData,
    UserDocument,
    WatchListData,
)

logger = logging.getLogger(__name__)


def media_data(document: MediaDocument) -> MediaData:
    return MediaData.model_validate(document.model_dump())


def episode_data(document: EpisodeDocument) -> EpisodeData:
    return EpisodeData.model_validate(document.model_dump())


def user_data(document: UserDocument) -> UserData:
    return UserData(
        id=document.id,
        first_name=document.first_name,
        last_name=document.last_name,
        email=document.email,
        subscriptions=document.subscriptions,
        privileges=document.privileges,
        profiles=[
            ProfileData(
                id=position,
                name=profile.name,
                is_child=profile.is_child,
                watchlist=WatchListData(is_locked=profile.watchlist.is_locked, medias=profile.watchlist.medias),
                reviews=[
                    ReviewData(id=r.id, media_id=r.media_id, rating=r.rating, description=r.description or None)
                    for r in profile.reviews
                ],
            )
            for position, profile in enumerate(document.profiles, start=1)
        ],
    )


class DocumentRepository(MediaRepository):
    tenant = Tenant.MONGO

    def __init__(self, database: AsyncIOMotorDatabase, restricted_age_limit: int | None = None):
        self.database = database
        self.restricted_age_limit = restricted_age_limit or settings.restricted_age_limit
        self.counters = DocumentCounterAllocator(database)
        self.users = database[DocumentCollection.USERS]
        self.medias = database[DocumentCollection.MEDIAS]
        self.episodes = database[DocumentCollection.EPISODES]

    async def _find_media(self, media_id: int) -> MediaDocument:
        raw = await self.medias.find_one({"_id": media_id})
        if raw is None:
            raise EntityNotFoundError("Media", media_id)
        return MediaDocument.model_validate(raw)

    async def _find_user(self, user_id: int) -> UserDocument:
        raw = await self.users.find_one({"_id": user_id})
        if raw is None:
            raise EntityNotFoundError("User", user_id)
        return UserDocument.model_validate(raw)

    # Media

    async def get_all_media(self) -> list[MediaData]:
        raws = await self.medias.find({}).sort("_id", 1).to_list(length=None)
        return [media_data(MediaDocument.model_validate(raw)) for raw in raws]

    async def get_media_by_id(self, media_id: int) -> MediaData:
        return media_data(await self._find_media(media_id))

    async def create_media(self, data: MediaCreate) -> MediaData:
        media_id = await self.counters.next_value(Sequence.MEDIA_ID)
        document = MediaDocument(id=media_id, **data.model_dump())
        await self.medias.insert_one(document.to_mongo())
        logger.info(f"Created media {media_id}")
        return media_data(document)

    async def update_media(self, media_id: int, data: MediaUpdate) -> MediaData:
        result = await self.medias.update_one({"_id": media_id}, {"$set": data.model_dump(by_alias=True, mode="json")})
        if result.matched_count == 0:
            raise EntityNotFoundError("Media", media_id)
        return await self.get_media_by_id(media_id)

    async def delete_media(self, media_id: int) -> None:
        document = await self._find_media(media_id)
        await self.episodes.delete_many({"_id": {"$in": document.episodes}})
        await self.medias.delete_one({"_id": media_id})
        await self.users.update_many(
            {},
            {
                "$pull": {
                    "profiles.$[].watchlist.medias": media_id,
                    "profiles.$[].reviews": {"mediaId": media_id},
                }
            },
        )
        logger.info(f"Deleted media {media_id}")

    # Episodes

    async def get_media_episodes(self, media_id: int) -> list[EpisodeData]:
        document = await self._find_media(media_id)
        raws = await self.episodes.find({"_id": {"$in": document.episodes}}).sort("_id", 1).to_list(length=None)
        return [episode_data(EpisodeDocument.model_validate(raw)) for raw in raws]

    async def get_media_episode(self, media_id: int, episode_id: int) -> EpisodeData:
        document = await self._find_media(media_id)
        raw = await self.episodes.find_one({"_id": episode_id}) if episode_id in document.episodes else None
        if raw is None:
            raise EntityNotFoundError("Episode", episode_id)
        return episode_data(EpisodeDocument.model_validate(raw))

    async def create_episode(self, media_id: int, data: EpisodeCreate) -> EpisodeData:
        await self._find_media(media_id)
        episode_id = await self.counters.next_value(Sequence.EPISODE_ID)
        values = data.model_dump()
        if values["season_count"] is None:
            values["season_count"] = 1
        document = EpisodeDocument(id=episode_id, **values)
        await self.episodes.insert_one(document.to_mongo())
        await self.medias.update_one({"_id": media_id}, {"$push": {"episodes": episode_id}})
        return episode_data(document)

    # Users

    async def get_all_users(self) -> list[UserData]:
        raws = await self.users.find({}).sort("_id", 1).to_list(length=None)
        return [user_data(UserDocument.model_validate(raw)) for raw in raws]

    async def get_user_by_id(self, user_id: int) -> UserData:
        return user_data(await self._find_user(user_id))

    async def create_user(self, data: UserCreate) -> UserData:
        user_id = await self.counters.next_value(Sequence.USER_ID)
        document = UserDocument(
            id=user_id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password_hash=data.password_hash,
            profiles=[ProfileDocument(name=data.profile_name, is_child=data.is_child)],
        )
        await self.users.insert_one(document.to_mongo())
        logger.info(f"Created user {user_id}")
        return user_data(document)

    async def delete_user(self, user_id: int) -> None:
        result = await self.users.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise EntityNotFoundError("User", user_id)
        logger.info(f"Deleted user {user_id}")

    async def add_media_to_watchlist(self, user_id: int, profile_id: int, media_id: int) -> UserData:
        user = await self._find_user(user_id)
        if not 1 <= profile_id <= len(user.profiles):
            raise EntityNotFoundError("Profile", profile_id)
        profile = user.profiles[profile_id - 1]
        media = await self._find_media(media_id)

        ensure_can_add_to_watchlist(
            media_id=media_id,
            is_child=profile.is_child,
            is_locked=profile.watchlist.is_locked,
            age_limit=media.age_limit,
            already_listed=media_id in profile.watchlist.medias,
            restricted_age_limit=self.restricted_age_limit,
        )

        # Guarded single-document update; a concurrent add or lock makes it match nothing
        watchlist = f"profiles.{profile_id - 1}.watchlist"
        result = await self.users.update_one(
            {
                "_id": user_id,
                f"{watchlist}.medias": {"$ne": media_id},
                f"{watchlist}.isLocked": {"$ne": True},
            },
            {"$push": {f"{watchlist}.medias": media_id}},
        )
        if result.modified_count == 0:
            raise ValidationRejectedError(f"Watchlist of profile {profile_id} changed, media {media_id} not added")
        return await self.get_user_by_id(user_id)
