"""Base models and mixins for all database models."""

from datetime import datetime

import pytz
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class TimestampMixin(SQLModel):
    """Mixin that adds the created_at timestamp."""

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(pytz.UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
