"""Typed shapes of the embedded-document projection.

Every stored document goes through one of these models on the way in
(``to_mongo``) and on the way out (``model_validate``). Decoding fails with a
``ValidationError`` when a required field is missing. Optional arrays default
to empty, ``ageLimit`` to ``None``, ``seasonCount`` to 1 and review
descriptions to ``""``.
"""

from datetime import date
from typing import Any

from pydantic import Field

from db.schemas.base import CamelModel


class MongoModel(CamelModel):
    def to_mongo(self) -> dict[str, Any]:
        # Dates are stored as ISO "yyyy-mm-dd" strings
        return self.model_dump(by_alias=True, mode="json")


class ReviewDocument(MongoModel):
    id: int
    media_id: int
    rating: int
    description: str = ""


class WatchListDocument(MongoModel):
    is_locked: bool = False
    medias: list[int] = Field(default_factory=list)


class ProfileDocument(MongoModel):
    name: str
    is_child: bool = False
    watchlist: WatchListDocument = Field(default_factory=WatchListDocument)
    reviews: list[ReviewDocument] = Field(default_factory=list)


class UserDocument(MongoModel):
    """``users`` collection: one aggregate per account."""

    id: int = Field(alias="_id")
    first_name: str
    last_name: str
    email: str
    password_hash: str = Field(alias="password")
    subscriptions: list[int] = Field(default_factory=list)
    privileges: list[str] = Field(default_factory=list)
    profiles: list[ProfileDocument] = Field(default_factory=list)


class CreditDocument(MongoModel):
    person_id: int
    roles: list[str] = Field(default_factory=list)


class MediaDocument(MongoModel):
    """``medias`` collection with embedded genres, episode ids and credits."""

    id: int = Field(alias="_id")
    name: str
    type: str
    runtime: int
    description: str
    cover: str
    age_limit: int | None = None
    release: date
    genres: list[str] = Field(default_factory=list)
    episodes: list[int] = Field(default_factory=list)
    credits: list[CreditDocument] = Field(default_factory=list)


class EpisodeDocument(MongoModel):
    id: int = Field(alias="_id")
    name: str
    season_count: int = 1
    episode_count: int
    runtime: int
    description: str
    release: date


class PersonDocument(MongoModel):
    id: int = Field(alias="_id")
    first_name: str
    last_name: str
    gender: str
    birth_date: date


class SubscriptionDocument(MongoModel):
    id: int = Field(alias="_id")
    name: str
    price: int
