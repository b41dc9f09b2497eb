"""User accounts, profiles, watchlists and their reference tables."""

from sqlalchemy import Column, SmallInteger, Text
from sqlmodel import Field, SQLModel

from db.models.base import TimestampMixin


class User(TimestampMixin, table=True):
    """User account table."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    email: str = Field(max_length=255, index=True)
    # Stored already hashed; hashing happens outside this service
    password_hash: str = Field(sa_column=Column("password", Text, nullable=False))


class Profile(TimestampMixin, table=True):
    """A viewing profile owned by a user."""

    __tablename__ = "profiles"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=255)
    is_child: bool | None = Field(default=None)


class WatchList(TimestampMixin, table=True):
    """Exactly one watchlist per profile, keyed by the profile id."""

    __tablename__ = "watch_lists"

    profile_id: int = Field(foreign_key="profiles.id", primary_key=True, ondelete="CASCADE")
    is_locked: bool | None = Field(default=None)


class Privilege(SQLModel, table=True):
    __tablename__ = "privileges"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)


class Subscription(SQLModel, table=True):
    __tablename__ = "subscriptions"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    price: int = Field(sa_column=Column(SmallInteger, nullable=False))
