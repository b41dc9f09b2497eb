"""
Repository contract served by every storage backend.

Reads return canonical DTOs from ``db.schemas`` regardless of how the backend
stores the data. Missing entities raise ``EntityNotFoundError``; requests that
break a domain rule raise ``ValidationRejectedError`` and write nothing.
"""

from abc import ABC, abstractmethod

from db.enums import Tenant
from db.exceptions import ValidationRejectedError
from db.schemas import (
    EpisodeCreate,
    EpisodeData,
    MediaCreate,
    MediaData,
    MediaUpdate,
    UserCreate,
    UserData,
)


def ensure_can_add_to_watchlist(
    *,
    media_id: int,
    is_child: bool,
    is_locked: bool,
    age_limit: int | None,
    already_listed: bool,
    restricted_age_limit: int,
) -> None:
    """Raise ``ValidationRejectedError`` if the media may not be added."""
    if is_locked:
        raise ValidationRejectedError("Watchlist is locked")
    if is_child and age_limit is not None and age_limit >= restricted_age_limit:
        raise ValidationRejectedError(f"Media {media_id} is restricted to ages {age_limit}+ and the profile is a child")
    if already_listed:
        raise ValidationRejectedError(f"Media {media_id} is already in the watchlist")


class MediaRepository(ABC):
    tenant: Tenant

    # Media

    @abstractmethod
    async def get_all_media(self) -> list[MediaData]:
        raise NotImplementedError

    @abstractmethod
    async def get_media_by_id(self, media_id: int) -> MediaData:
        raise NotImplementedError

    @abstractmethod
    async def create_media(self, data: MediaCreate) -> MediaData:
        raise NotImplementedError

    @abstractmethod
    async def update_media(self, media_id: int, data: MediaUpdate) -> MediaData:
        raise NotImplementedError

    @abstractmethod
    async def delete_media(self, media_id: int) -> None:
        raise NotImplementedError

    # Episodes

    @abstractmethod
    async def get_media_episodes(self, media_id: int) -> list[EpisodeData]:
        raise NotImplementedError

    @abstractmethod
    async def get_media_episode(self, media_id: int, episode_id: int) -> EpisodeData:
        raise NotImplementedError

    @abstractmethod
    async def create_episode(self, media_id: int, data: EpisodeCreate) -> EpisodeData:
        raise NotImplementedError

    # Users

    @abstractmethod
    async def get_all_users(self) -> list[UserData]:
        raise NotImplementedError

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> UserData:
        raise NotImplementedError

    @abstractmethod
    async def create_user(self, data: UserCreate) -> UserData:
        raise NotImplementedError

    @abstractmethod
    async def delete_user(self, user_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def add_media_to_watchlist(self, user_id: int, profile_id: int, media_id: int) -> UserData:
        """Append a media to a profile's watchlist in one atomic store operation."""
        raise NotImplementedError
