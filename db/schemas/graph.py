"""Typed node and edge records of the property-graph projection."""

from datetime import date, datetime
from typing import Any

from pydantic import model_validator

from db.schemas.base import CamelModel


class GraphRecord(CamelModel):
    @model_validator(mode="before")
    @classmethod
    def _native_temporals(cls, data: Any) -> Any:
        # neo4j.time.Date / DateTime come back from reads; pydantic wants stdlib types
        if isinstance(data, dict):
            return {
                key: value.to_native() if hasattr(value, "to_native") else value for key, value in data.items()
            }
        return data

    def to_record(self) -> dict[str, Any]:
        """Flat parameter row with ISO dates and explicit nulls."""
        return self.model_dump(by_alias=True, mode="json")


class UserNode(GraphRecord):
    id: int
    first_name: str
    last_name: str
    email: str
    password: str


class ProfileNode(GraphRecord):
    id: int
    name: str
    is_child: bool = False


class WatchListNode(GraphRecord):
    # Shares its id with the owning profile
    id: int
    is_locked: bool = False


class MediaNode(GraphRecord):
    id: int
    name: str
    type: str
    runtime: int
    description: str
    cover: str
    age_limit: int | None = None
    release: date


class EpisodeNode(GraphRecord):
    id: int
    name: str
    season_count: int | None = None
    episode_count: int
    runtime: int
    description: str
    release: date


class PersonNode(GraphRecord):
    id: int
    first_name: str
    last_name: str
    birth_date: date
    gender: str


class GenreNode(GraphRecord):
    id: int
    name: str


class RoleNode(GraphRecord):
    id: int
    name: str


class SubscriptionNode(GraphRecord):
    id: int
    name: str
    price: int


class PrivilegeNode(GraphRecord):
    id: int
    name: str


class EdgeRecord(GraphRecord):
    from_id: int
    to_id: int


class WorkedOnEdge(EdgeRecord):
    role: str


class ReviewedEdge(EdgeRecord):
    rating: int
    description: str | None = None
    created_at: datetime
