"""
Relational rows -> property-graph node and edge records.

Nodes are flat camelCase property rows carrying the relational primary key as
``id``; dates become ISO strings and nullable numbers stay as explicit ``None``.
Edges are ``{fromId, toId, ...}`` rows in the canonical direction of their type.
"""

import logging
from typing import Any

from db.enums import NodeLabel, RelationshipType
from db.models import Episode, Genre, Media, Person, Privilege, Profile, Role, Subscription, User, WatchList
from db.schemas import (
    EdgeRecord,
    EpisodeNode,
    GenreNode,
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
from migrations.sql_to_polyglot.extractor import SourceEntities, SourceRelationships

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def user_node(user: User) -> UserNode:
    return UserNode(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        password=user.password_hash,
    )


def profile_node(profile: Profile) -> ProfileNode:
    return ProfileNode(id=profile.id, name=profile.name, is_child=bool(profile.is_child))


def watch_list_node(watch_list: WatchList) -> WatchListNode:
    return WatchListNode(id=watch_list.profile_id, is_locked=bool(watch_list.is_locked))


def media_node(media: Media) -> MediaNode:
    return MediaNode(
        id=media.id,
        name=media.name,
        type=media.type,
        runtime=media.runtime,
        description=media.description,
        cover=media.cover,
        age_limit=media.age_limit,
        release=media.release,
    )


def episode_node(episode: Episode) -> EpisodeNode:
    return EpisodeNode(
        id=episode.id,
        name=episode.name,
        season_count=episode.season_count,
        episode_count=episode.episode_count,
        runtime=episode.runtime,
        description=episode.description,
        release=episode.release,
    )


def person_node(person: Person) -> PersonNode:
    return PersonNode(
        id=person.id,
        first_name=person.first_name,
        last_name=person.last_name,
        birth_date=person.birth_date,
        gender=person.gender,
    )


def genre_node(genre: Genre) -> GenreNode:
    return GenreNode(id=genre.id, name=genre.name)


def role_node(role: Role) -> RoleNode:
    return RoleNode(id=role.id, name=role.name)


def subscription_node(subscription: Subscription) -> SubscriptionNode:
    return SubscriptionNode(id=subscription.id, name=subscription.name, price=subscription.price)


def privilege_node(privilege: Privilege) -> PrivilegeNode:
    return PrivilegeNode(id=privilege.id, name=privilege.name)


def _edges(pairs) -> list[Record]:
    return [EdgeRecord(from_id=from_id, to_id=to_id).to_record() for from_id, to_id in pairs]


class GraphModelBuilder:
    """Maps one full extraction to node and edge parameter rows."""

    def __init__(self, entities: SourceEntities):
        self.entities = entities
        self.person_ids = {person.id for person in entities.persons}
        self.role_names = {role.id: role.name for role in entities.roles}

    def nodes(self) -> dict[NodeLabel, list[Record]]:
        """Node rows per label, in load order."""
        e = self.entities
        return {
            NodeLabel.USER: [user_node(x).to_record() for x in e.users],
            NodeLabel.PROFILE: [profile_node(x).to_record() for x in e.profiles],
            NodeLabel.WATCHLIST: [watch_list_node(x).to_record() for x in e.watch_lists],
            NodeLabel.MEDIA: [media_node(x).to_record() for x in e.medias],
            NodeLabel.EPISODE: [episode_node(x).to_record() for x in e.episodes],
            NodeLabel.PERSON: [person_node(x).to_record() for x in e.persons],
            NodeLabel.GENRE: [genre_node(x).to_record() for x in e.genres],
            NodeLabel.ROLE: [role_node(x).to_record() for x in e.roles],
            NodeLabel.SUBSCRIPTION: [subscription_node(x).to_record() for x in e.subscriptions],
            NodeLabel.PRIVILEGE: [privilege_node(x).to_record() for x in e.privileges],
        }

    def worked_on_edges(self, relationships: SourceRelationships) -> list[Record]:
        edges = []
        for row in relationships.person_media_roles:
            if row.person_id not in self.person_ids or row.role_id not in self.role_names:
                logger.debug(f"Skipping credit {row}: person or role not found")
                continue
            edges.append(
                WorkedOnEdge(from_id=row.person_id, to_id=row.media_id, role=self.role_names[row.role_id]).to_record()
            )
        return edges

    def relationships(self, relationships: SourceRelationships) -> dict[RelationshipType, list[Record]]:
        """Edge rows per relationship type, in load order."""
        r = relationships
        return {
            RelationshipType.OWNS: _edges((x.user_id, x.profile_id) for x in r.user_profiles),
            RelationshipType.HAS_WATCHLIST: _edges((x.profile_id, x.watch_list_id) for x in r.profile_watch_lists),
            RelationshipType.CONTAINS: _edges((x.watch_list_id, x.media_id) for x in r.watch_list_medias),
            RelationshipType.HAS_EPISODE: _edges((x.media_id, x.episode_id) for x in r.media_episodes),
            RelationshipType.BELONGS_TO_GENRE: _edges((x.media_id, x.genre_id) for x in r.media_genres),
            RelationshipType.WORKED_ON: self.worked_on_edges(r),
            RelationshipType.REVIEWED: [
                ReviewedEdge(
                    from_id=x.profile_id,
                    to_id=x.media_id,
                    rating=x.rating,
                    description=x.description,
                    created_at=x.created_at,
                ).to_record()
                for x in r.reviews
            ],
            RelationshipType.SUBSCRIBES_TO: _edges((x.user_id, x.subscription_id) for x in r.user_subscriptions),
            RelationshipType.GIVES_ACCESS_TO: _edges((x.subscription_id, x.genre_id) for x in r.subscription_genres),
            RelationshipType.HAS_PRIVILEGE: _edges((x.user_id, x.privilege_id) for x in r.user_privileges),
        }
