"""Junction/link tables for many-to-many relationships.

The pairwise join tables keep the PascalCase column names generated by the
original ORM (``"MediasId"``, ``"GenresId"`` ...), so their fields map onto
explicit columns. The ternary credit table uses plain snake_case columns.
"""

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field, SQLModel


def _link_column(name: str, target: str) -> Column:
    return Column(name, Integer, ForeignKey(target, ondelete="CASCADE"), primary_key=True)


class MediaGenreLink(SQLModel, table=True):
    """Link between media and genres."""

    __tablename__ = "medias_genres"

    genre_id: int = Field(sa_column=_link_column("GenresId", "genres.id"))
    media_id: int = Field(sa_column=_link_column("MediasId", "medias.id"))


class WatchListMediaLink(SQLModel, table=True):
    """Media saved on a profile's watchlist."""

    __tablename__ = "watch_lists_medias"

    media_id: int = Field(sa_column=_link_column("MediasId", "medias.id"))
    watch_list_id: int = Field(sa_column=_link_column("WatchListsProfileId", "watch_lists.profile_id"))


class UserPrivilegeLink(SQLModel, table=True):
    __tablename__ = "users_privileges"

    privilege_id: int = Field(sa_column=_link_column("PrivilegesId", "privileges.id"))
    user_id: int = Field(sa_column=_link_column("UsersId", "users.id"))


class UserSubscriptionLink(SQLModel, table=True):
    __tablename__ = "users_subscriptions"

    subscription_id: int = Field(sa_column=_link_column("SubscriptionsId", "subscriptions.id"))
    user_id: int = Field(sa_column=_link_column("UsersId", "users.id"))


class GenreSubscriptionLink(SQLModel, table=True):
    """Genres unlocked by a subscription.

    Not every deployed schema has this table; readers treat it as optional.
    """

    __tablename__ = "genres_subscriptions"

    genre_id: int = Field(sa_column=_link_column("GenresId", "genres.id"))
    subscription_id: int = Field(sa_column=_link_column("SubscriptionsId", "subscriptions.id"))


class MediaPersonRoleLink(SQLModel, table=True):
    """Ternary credit relation: a person worked on a media in a role."""

    __tablename__ = "medias_persons_roles"

    media_id: int = Field(foreign_key="medias.id", primary_key=True, ondelete="CASCADE")
    person_id: int = Field(foreign_key="persons.id", primary_key=True, index=True, ondelete="CASCADE")
    role_id: int = Field(foreign_key="roles.id", primary_key=True, index=True, ondelete="CASCADE")
