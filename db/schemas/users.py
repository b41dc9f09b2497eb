"""Canonical user DTOs shared by every repository backend."""

from pydantic import Field

from db.schemas.base import CamelModel


class ReviewData(CamelModel):
    # 1-based and local to the owning profile
    id: int
    media_id: int
    rating: int
    description: str | None = None


class WatchListData(CamelModel):
    is_locked: bool = False
    medias: list[int] = Field(default_factory=list)


class ProfileData(CamelModel):
    """A user's profile.

    ``id`` is the relational profile id for the sql and graph backends and the
    1-based position in the user's ``profiles`` array for the document backend.
    """

    id: int
    name: str
    is_child: bool = False
    watchlist: WatchListData = Field(default_factory=WatchListData)
    reviews: list[ReviewData] = Field(default_factory=list)


class UserData(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    subscriptions: list[int] = Field(default_factory=list)
    privileges: list[str] = Field(default_factory=list)
    profiles: list[ProfileData] = Field(default_factory=list)


class UserCreate(CamelModel):
    first_name: str
    last_name: str
    email: str
    password_hash: str
    profile_name: str = "Default"
    is_child: bool = False
