"""
Database models package.

This module re-exports all models for easy importing:
    from db.models import User, Media, MediaGenreLink, ...

These tables are the relational system of record that the document and graph
projections are rebuilt from.
"""

# Base and mixins
from db.models.base import TimestampMixin

# Link tables (junction tables for many-to-many)
from db.models.links import (
    GenreSubscriptionLink,
    MediaGenreLink,
    MediaPersonRoleLink,
    UserPrivilegeLink,
    UserSubscriptionLink,
    WatchListMediaLink,
)

# Media models
from db.models.media import (
    Episode,
    Genre,
    Media,
    Person,
    Role,
)

# User content
from db.models.user_content import Review

# User models
from db.models.users import (
    Privilege,
    Profile,
    Subscription,
    User,
    WatchList,
)

__all__ = [
    "TimestampMixin",
    "GenreSubscriptionLink",
    "MediaGenreLink",
    "MediaPersonRoleLink",
    "UserPrivilegeLink",
    "UserSubscriptionLink",
    "WatchListMediaLink",
    "Episode",
    "Genre",
    "Media",
    "Person",
    "Role",
    "Review",
    "Privilege",
    "Profile",
    "Subscription",
    "User",
    "WatchList",
]
