"""
Database schemas package.

This module re-exports all Pydantic schemas for easy importing:
    from db.schemas import MediaData, UserDocument, MediaNode, ...
"""

from db.schemas.base import CamelModel

# Document projection shapes
from db.schemas.documents import (
    CreditDocument,
    EpisodeDocument,
    MediaDocument,
    MongoModel,
    PersonDocument,
    ProfileDocument,
    ReviewDocument,
    SubscriptionDocument,
    UserDocument,
    WatchListDocument,
)

# Graph projection records
from db.schemas.graph import (
    EdgeRecord,
    EpisodeNode,
    GenreNode,
    GraphRecord,
    MediaNode,
    PersonNode,
    PrivilegeNode,
    ProfileNode,
    ReviewedEdge,
    RoleNode,
    SubscriptionNode,
    UserNode,
    WatchListNode,
    WorkedOnEdge,
)

# Canonical DTOs
from db.schemas.media import (
    CreditData,
    EpisodeCreate,
    EpisodeData,
    MediaCreate,
    MediaData,
    MediaUpdate,
    group_credits,
)
from db.schemas.users import (
    ProfileData,
    ReviewData,
    UserCreate,
    UserData,
    WatchListData,
)

__all__ = [
    "CamelModel",
    "CreditDocument",
    "EpisodeDocument",
    "MediaDocument",
    "MongoModel",
    "PersonDocument",
    "ProfileDocument",
    "ReviewDocument",
    "SubscriptionDocument",
    "UserDocument",
    "WatchListDocument",
    "EdgeRecord",
    "EpisodeNode",
    "GenreNode",
    "GraphRecord",
    "MediaNode",
    "PersonNode",
    "PrivilegeNode",
    "ProfileNode",
    "ReviewedEdge",
    "RoleNode",
    "SubscriptionNode",
    "UserNode",
    "WatchListNode",
    "WorkedOnEdge",
    "CreditData",
    "EpisodeCreate",
    "EpisodeData",
    "MediaCreate",
    "MediaData",
    "MediaUpdate",
    "group_credits",
    "ProfileData",
    "ReviewData",
    "UserCreate",
    "UserData",
    "WatchListData",
]
