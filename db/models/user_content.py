"""User generated content."""

from sqlalchemy import Column, SmallInteger, Text
from sqlmodel import Field

from db.models.base import TimestampMixin


class Review(TimestampMixin, table=True):
    """One review per (media, profile) pair."""

    __tablename__ = "reviews"

    media_id: int = Field(foreign_key="medias.id", primary_key=True, ondelete="CASCADE")
    profile_id: int = Field(foreign_key="profiles.id", primary_key=True, index=True, ondelete="CASCADE")
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    rating: int = Field(sa_column=Column(SmallInteger, nullable=False))
