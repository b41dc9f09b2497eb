"""
Relational rows -> embedded-document aggregates.

Everything here is pure. ``DocumentModelBuilder`` indexes the extracted rows
once and then produces one document per user, media, episode, person and
subscription:

- users embed their profiles (ordered by profile id); each profile embeds its
  watchlist and its reviews, numbered 1..n per profile in media id order
- medias embed genre names, episode ids and credits grouped by person
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from db.enums import DocumentCollection
from db.models import Episode, Media, Person, Profile, Review, Subscription, User, WatchList
from db.schemas import (
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
    group_credits,
)
from migrations.sql_to_polyglot.extractor import PersonMediaRoleRow, SourceEntities, SourceRelationships

logger = logging.getLogger(__name__)


def build_credit_documents(
    rows: Iterable[PersonMediaRoleRow],
    person_ids: set[int],
    role_names: dict[int, str],
) -> list[CreditDocument]:
    """Group credit rows of one media by person, dropping rows with unknown people or roles."""
    pairs = []
    for row in rows:
        if row.person_id not in person_ids or row.role_id not in role_names:
            logger.debug(f"Skipping credit {row}: person or role not found")
            continue
        pairs.append((row.person_id, role_names[row.role_id]))
    return [CreditDocument(person_id=credit.person_id, roles=credit.roles) for credit in group_credits(pairs)]


def build_review_documents(reviews: Iterable[Review]) -> list[ReviewDocument]:
    ordered = sorted(reviews, key=lambda review: review.media_id)
    return [
        ReviewDocument(
            id=index,
            media_id=review.media_id,
            rating=review.rating,
            description=review.description or "",
        )
        for index, review in enumerate(ordered, start=1)
    ]


def build_profile_document(
    profile: Profile,
    watch_list: WatchList | None,
    media_ids: list[int],
    reviews: Iterable[Review],
) -> ProfileDocument:
    return ProfileDocument(
        name=profile.name,
        is_child=bool(profile.is_child),
        watchlist=WatchListDocument(
            is_locked=bool(watch_list.is_locked) if watch_list else False,
            medias=list(media_ids),
        ),
        reviews=build_review_documents(reviews),
    )


def build_user_document(
    user: User,
    profiles: list[ProfileDocument],
    subscription_ids: list[int],
    privilege_names: list[str],
) -> UserDocument:
    return UserDocument(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        password_hash=user.password_hash,
        subscriptions=subscription_ids,
        privileges=privilege_names,
        profiles=profiles,
    )


def build_media_document(
    media: Media,
    genre_names: list[str],
    episode_ids: list[int],
    credits: list[CreditDocument],
) -> MediaDocument:
    return MediaDocument(
        id=media.id,
        name=media.name,
        type=media.type,
        runtime=media.runtime,
        description=media.description,
        cover=media.cover,
        age_limit=media.age_limit,
        release=media.release,
        genres=genre_names,
        episodes=episode_ids,
        credits=credits,
    )


def build_episode_document(episode: Episode) -> EpisodeDocument:
    return EpisodeDocument(
        id=episode.id,
        name=episode.name,
        season_count=episode.season_count if episode.season_count is not None else 1,
        episode_count=episode.episode_count,
        runtime=episode.runtime,
        description=episode.description,
        release=episode.release,
    )


def build_person_document(person: Person) -> PersonDocument:
    return PersonDocument(
        id=person.id,
        first_name=person.first_name,
        last_name=person.last_name,
        gender=person.gender,
        birth_date=person.birth_date,
    )


def build_subscription_document(subscription: Subscription) -> SubscriptionDocument:
    return SubscriptionDocument(id=subscription.id, name=subscription.name, price=subscription.price)


class DocumentModelBuilder:
    """Cross-references one full extraction into document aggregates."""

    def __init__(self, entities: SourceEntities, relationships: SourceRelationships):
        self.entities = entities
        self.relationships = relationships

        self.genre_names = {genre.id: genre.name for genre in entities.genres}
        self.role_names = {role.id: role.name for role in entities.roles}
        self.privilege_names = {privilege.id: privilege.name for privilege in entities.privileges}
        self.person_ids = {person.id for person in entities.persons}
        self.watch_lists = {watch_list.profile_id: watch_list for watch_list in entities.watch_lists}

        self.profiles_by_user: dict[int, list[Profile]] = defaultdict(list)
        for profile in sorted(entities.profiles, key=lambda p: p.id):
            self.profiles_by_user[profile.user_id].append(profile)

        self.medias_by_watch_list: dict[int, list[int]] = defaultdict(list)
        for row in relationships.watch_list_medias:
            self.medias_by_watch_list[row.watch_list_id].append(row.media_id)

        self.reviews_by_profile: dict[int, list[Review]] = defaultdict(list)
        for review in relationships.reviews:
            self.reviews_by_profile[review.profile_id].append(review)

        self.subscriptions_by_user: dict[int, list[int]] = defaultdict(list)
        for row in relationships.user_subscriptions:
            self.subscriptions_by_user[row.user_id].append(row.subscription_id)

        self.privileges_by_user: dict[int, list[str]] = defaultdict(list)
        for row in relationships.user_privileges:
            if row.privilege_id in self.privilege_names:
                self.privileges_by_user[row.user_id].append(self.privilege_names[row.privilege_id])

        self.genres_by_media: dict[int, list[str]] = defaultdict(list)
        for row in relationships.media_genres:
            if row.genre_id in self.genre_names:
                self.genres_by_media[row.media_id].append(self.genre_names[row.genre_id])

        self.episodes_by_media: dict[int, list[int]] = defaultdict(list)
        for row in relationships.media_episodes:
            self.episodes_by_media[row.media_id].append(row.episode_id)

        self.credits_by_media: dict[int, list[PersonMediaRoleRow]] = defaultdict(list)
        for row in relationships.person_media_roles:
            self.credits_by_media[row.media_id].append(row)

    def users(self) -> list[UserDocument]:
        documents = []
        for user in self.entities.users:
            profiles = [
                build_profile_document(
                    profile,
                    self.watch_lists.get(profile.id),
                    self.medias_by_watch_list.get(profile.id, []),
                    self.reviews_by_profile.get(profile.id, []),
                )
                for profile in self.profiles_by_user.get(user.id, [])
            ]
            documents.append(
                build_user_document(
                    user,
                    profiles,
                    self.subscriptions_by_user.get(user.id, []),
                    self.privileges_by_user.get(user.id, []),
                )
            )
        return documents

    def medias(self) -> list[MediaDocument]:
        return [
            build_media_document(
                media,
                self.genres_by_media.get(media.id, []),
                self.episodes_by_media.get(media.id, []),
                build_credit_documents(self.credits_by_media.get(media.id, []), self.person_ids, self.role_names),
            )
            for media in self.entities.medias
        ]

    def episodes(self) -> list[EpisodeDocument]:
        return [build_episode_document(episode) for episode in self.entities.episodes]

    def persons(self) -> list[PersonDocument]:
        return [build_person_document(person) for person in self.entities.persons]

    def subscriptions(self) -> list[SubscriptionDocument]:
        return [build_subscription_document(subscription) for subscription in self.entities.subscriptions]

    def build(self) -> dict[DocumentCollection, list[MongoModel]]:
        """All collections in load order."""
        return {
            DocumentCollection.SUBSCRIPTIONS: self.subscriptions(),
            DocumentCollection.USERS: self.users(),
            DocumentCollection.MEDIAS: self.medias(),
            DocumentCollection.PERSONS: self.persons(),
            DocumentCollection.EPISODES: self.episodes(),
        }
