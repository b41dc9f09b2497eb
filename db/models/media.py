"""Media catalogue tables: media, episodes, people, genres and roles."""

from datetime import date

from sqlalchemy import Column, SmallInteger, Text
from sqlmodel import Field, SQLModel

from db.models.base import TimestampMixin


class Media(TimestampMixin, table=True):
    """A movie or series in the catalogue."""

    __tablename__ = "medias"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    type: str = Field(max_length=255)
    runtime: int
    description: str = Field(sa_column=Column(Text, nullable=False))
    cover: str = Field(sa_column=Column(Text, nullable=False))
    age_limit: int | None = Field(default=None, sa_column=Column(SmallInteger, nullable=True))
    release: date


class Episode(TimestampMixin, table=True):
    __tablename__ = "episodes"

    id: int | None = Field(default=None, primary_key=True)
    media_id: int = Field(foreign_key="medias.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=255)
    season_count: int | None = Field(default=None, sa_column=Column(SmallInteger, nullable=True))
    episode_count: int = Field(sa_column=Column(SmallInteger, nullable=False))
    runtime: int
    description: str = Field(sa_column=Column(Text, nullable=False))
    release: date


class Person(TimestampMixin, table=True):
    """Cast or crew member credited on media."""

    __tablename__ = "persons"

    id: int | None = Field(default=None, primary_key=True)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    birth_date: date
    gender: str = Field(max_length=255)


class Genre(SQLModel, table=True):
    __tablename__ = "genres"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)


class Role(SQLModel, table=True):
    __tablename__ = "roles"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
