"""Canonical media DTOs shared by every repository backend."""

from collections.abc import Iterable
from datetime import date

from pydantic import Field

from db.schemas.base import CamelModel


class CreditData(CamelModel):
    """All roles one person holds on a media item."""

    person_id: int
    roles: list[str] = Field(default_factory=list)


class EpisodeData(CamelModel):
    id: int
    name: str
    season_count: int | None = None
    episode_count: int
    runtime: int
    description: str
    release: date


class EpisodeCreate(CamelModel):
    name: str
    season_count: int | None = 1
    episode_count: int
    runtime: int
    description: str
    release: date


class MediaData(CamelModel):
    id: int
    name: str
    type: str
    runtime: int
    description: str
    cover: str
    age_limit: int | None = None
    release: date
    genres: list[str] = Field(default_factory=list)
    episodes: list[int] = Field(default_factory=list)
    credits: list[CreditData] = Field(default_factory=list)


class MediaCreate(CamelModel):
    name: str
    type: str
    runtime: int
    description: str
    cover: str
    age_limit: int | None = None
    release: date
    genres: list[str] = Field(default_factory=list)


class MediaUpdate(MediaCreate):
    """Full replacement of a media item's scalar fields and genre set."""


def group_credits(pairs: Iterable[tuple[int, str]]) -> list[CreditData]:
    """Group flat (person_id, role_name) pairs into one credit per person.

    Role names stay distinct per person and keep first-seen order. Credits are
    returned ordered by person id.
    """
    roles_by_person: dict[int, list[str]] = {}
    for person_id, role_name in pairs:
        roles = roles_by_person.setdefault(person_id, [])
        if role_name not in roles:
            roles.append(role_name)
    return [CreditData(person_id=person_id, roles=roles) for person_id, roles in sorted(roles_by_person.items())]
