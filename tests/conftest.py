"""
Pytest configuration and shared fixtures.

The relational source is a temporary SQLite file driven by the real SQLModel
models. MongoDB and Neo4j are replaced by the in-memory fakes below, which
implement only the motor and neo4j calls the code makes.
"""

import copy
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import BulkWriteError, DuplicateKeyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from db.models import (
    Episode,
    Genre,
    GenreSubscriptionLink,
    Media,
    MediaGenreLink,
    MediaPersonRoleLink,
    Person,
    Privilege,
    Profile,
    Review,
    Role,
    Subscription,
    User,
    UserPrivilegeLink,
    UserSubscriptionLink,
    WatchList,
    WatchListMediaLink,
)
from migrations.sql_to_polyglot.extractor import (
    MediaEpisodeRow,
    MediaGenreRow,
    PersonMediaRoleRow,
    ProfileWatchListRow,
    SourceEntities,
    SourceRelationships,
    SubscriptionGenreRow,
    UserPrivilegeRow,
    UserProfileRow,
    UserSubscriptionRow,
    WatchListMediaRow,
)

REVIEWED_AT = datetime(2024, 3, 1, 12, 30)


# ---------------------------------------------------------------------------
# Sample dataset
# ---------------------------------------------------------------------------
#
# Users: 1 Alice (profiles 1 "Alice" and 2 "Kid", a child), 2 Bob (profile 3,
# locked watchlist). Media: 1 Inception (13+), 3 Up (no age limit),
# 7 Breaking Bad (18+, episodes 10 and 11).


def sample_entities() -> SourceEntities:
    return SourceEntities(
        users=[
            User(id=1, first_name="Alice", last_name="Smith", email="alice@example.com", password_hash="hash-a"),
            User(id=2, first_name="Bob", last_name="Jones", email="bob@example.com", password_hash="hash-b"),
        ],
        profiles=[
            Profile(id=1, user_id=1, name="Alice", is_child=False),
            Profile(id=2, user_id=1, name="Kid", is_child=True),
            Profile(id=3, user_id=2, name="Bob", is_child=None),
        ],
        watch_lists=[
            WatchList(profile_id=1, is_locked=False),
            WatchList(profile_id=2, is_locked=False),
            WatchList(profile_id=3, is_locked=True),
        ],
        medias=[
            Media(
                id=1,
                name="Inception",
                type="Movie",
                runtime=148,
                description="Dreams within dreams",
                cover="inception.jpg",
                age_limit=13,
                release=date(2010, 7, 16),
            ),
            Media(
                id=3,
                name="Up",
                type="Movie",
                runtime=96,
                description="Balloons",
                cover="up.jpg",
                age_limit=None,
                release=date(2009, 5, 29),
            ),
            Media(
                id=7,
                name="Breaking Bad",
                type="Series",
                runtime=47,
                description="Chemist turns to crime",
                cover="bb.jpg",
                age_limit=18,
                release=date(2008, 1, 20),
            ),
        ],
        episodes=[
            Episode(
                id=10,
                media_id=7,
                name="Pilot",
                season_count=1,
                episode_count=7,
                runtime=58,
                description="First episode",
                release=date(2008, 1, 20),
            ),
            Episode(
                id=11,
                media_id=7,
                name="Cat's in the Bag",
                season_count=None,
                episode_count=7,
                runtime=48,
                description="Second episode",
                release=date(2008, 1, 27),
            ),
        ],
        persons=[
            Person(id=1, first_name="Bryan", last_name="Cranston", birth_date=date(1956, 3, 7), gender="Male"),
            Person(id=2, first_name="Anna", last_name="Gunn", birth_date=date(1968, 8, 11), gender="Female"),
        ],
        genres=[Genre(id=1, name="Drama"), Genre(id=2, name="Crime"), Genre(id=3, name="Animation")],
        roles=[Role(id=1, name="Actor"), Role(id=2, name="Director")],
        subscriptions=[Subscription(id=1, name="Basic", price=5), Subscription(id=2, name="Premium", price=10)],
        privileges=[Privilege(id=1, name="admin")],
    )


def sample_reviews() -> list[Review]:
    return [
        Review(media_id=1, profile_id=1, rating=4, description=None, created_at=REVIEWED_AT),
        Review(media_id=7, profile_id=1, rating=5, description="Great", created_at=REVIEWED_AT),
    ]


def sample_relationships() -> SourceRelationships:
    return SourceRelationships(
        user_profiles=[UserProfileRow(1, 1), UserProfileRow(1, 2), UserProfileRow(2, 3)],
        profile_watch_lists=[ProfileWatchListRow(1, 1), ProfileWatchListRow(2, 2), ProfileWatchListRow(3, 3)],
        watch_list_medias=[WatchListMediaRow(1, 1)],
        media_episodes=[MediaEpisodeRow(7, 10), MediaEpisodeRow(7, 11)],
        media_genres=[MediaGenreRow(1, 1), MediaGenreRow(3, 3), MediaGenreRow(7, 1), MediaGenreRow(7, 2)],
        person_media_roles=[
            PersonMediaRoleRow(2, 1, 2),
            PersonMediaRoleRow(1, 7, 1),
            PersonMediaRoleRow(1, 7, 2),
            PersonMediaRoleRow(2, 7, 1),
        ],
        reviews=sample_reviews(),
        user_subscriptions=[UserSubscriptionRow(1, 2)],
        subscription_genres=[SubscriptionGenreRow(2, 2)],
        user_privileges=[UserPrivilegeRow(1, 1)],
    )


def sample_links(relationships: SourceRelationships) -> list[SQLModel]:
    r = relationships
    return [
        *(WatchListMediaLink(watch_list_id=x.watch_list_id, media_id=x.media_id) for x in r.watch_list_medias),
        *(MediaGenreLink(media_id=x.media_id, genre_id=x.genre_id) for x in r.media_genres),
        *(
            MediaPersonRoleLink(media_id=x.media_id, person_id=x.person_id, role_id=x.role_id)
            for x in r.person_media_roles
        ),
        *(UserSubscriptionLink(user_id=x.user_id, subscription_id=x.subscription_id) for x in r.user_subscriptions),
        *(GenreSubscriptionLink(subscription_id=x.subscription_id, genre_id=x.genre_id) for x in r.subscription_genres),
        *(UserPrivilegeLink(user_id=x.user_id, privilege_id=x.privilege_id) for x in r.user_privileges),
    ]


# ---------------------------------------------------------------------------
# Relational source (SQLite)
# ---------------------------------------------------------------------------


@pytest.fixture
async def sqlite_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'source.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def seeded_engine(sqlite_engine):
    """SQLite source holding the sample dataset."""
    from sqlmodel.ext.asyncio.session import AsyncSession

    entities = sample_entities()
    relationships = sample_relationships()
    async with AsyncSession(sqlite_engine) as session:
        for rows in (
            entities.users,
            entities.medias,
            entities.persons,
            entities.genres,
            entities.roles,
            entities.subscriptions,
            entities.privileges,
        ):
            session.add_all(rows)
        await session.flush()
        session.add_all(entities.profiles)
        session.add_all(entities.episodes)
        await session.flush()
        session.add_all(entities.watch_lists)
        session.add_all(relationships.reviews)
        await session.flush()
        session.add_all(sample_links(relationships))
        await session.commit()
    return sqlite_engine


# ---------------------------------------------------------------------------
# MongoDB fake
# ---------------------------------------------------------------------------


def _resolve(document: Any, path: str) -> Any:
    value = document
    for part in path.split("."):
        if isinstance(value, list) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        elif isinstance(value, dict):
            value = value.get(part)
        else:
            return None
    return value


def _set(document: dict, path: str, value: Any) -> None:
    *parents, last = path.split(".")
    target = document
    for part in parents:
        target = target[int(part)] if isinstance(target, list) else target.setdefault(part, {})
    if isinstance(target, list):
        target[int(last)] = value
    else:
        target[last] = value


def _matches(document: dict, query: dict | None) -> bool:
    for path, condition in (query or {}).items():
        value = _resolve(document, path)
        if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
            for operator, operand in condition.items():
                if operator == "$ne":
                    if (operand in value) if isinstance(value, list) else (value == operand):
                        return False
                elif operator == "$in":
                    if value not in operand:
                        return False
                else:
                    raise NotImplementedError(operator)
        elif isinstance(value, list) and not isinstance(condition, list):
            if condition not in value:
                return False
        elif value != condition:
            return False
    return True


def _pull(document: Any, path: str, condition: Any) -> None:
    if ".$[]." in path:
        prefix, rest = path.split(".$[].", 1)
        for element in _resolve(document, prefix) or []:
            _pull(element, rest, condition)
        return
    values = _resolve(document, path)
    if not isinstance(values, list):
        return

    def pulled(item):
        if isinstance(condition, dict) and isinstance(item, dict):
            return all(item.get(key) == expected for key, expected in condition.items())
        return item == condition

    values[:] = [item for item in values if not pulled(item)]


def _apply(document: dict, update: dict) -> None:
    for operator, fields in update.items():
        for path, value in fields.items():
            if operator == "$set":
                _set(document, path, copy.deepcopy(value))
            elif operator == "$inc":
                _set(document, path, (_resolve(document, path) or 0) + value)
            elif operator == "$max":
                current = _resolve(document, path)
                if current is None or value > current:
                    _set(document, path, value)
            elif operator == "$push":
                _resolve(document, path).append(copy.deepcopy(value))
            elif operator == "$pull":
                _pull(document, path, value)
            else:
                raise NotImplementedError(operator)


class FakeCursor:
    def __init__(self, documents: list[dict]):
        self.documents = documents

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self.documents.sort(key=lambda d: _resolve(d, key), reverse=direction < 0)
        return self

    async def to_list(self, length: int | None = None) -> list[dict]:
        return self.documents if length is None else self.documents[:length]


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.documents: list[dict] = []
        self.insert_calls: list[int] = []
        self.indexes: list = []
        # insert_many call index (0-based) that raises
        self.fail_on_insert: int | None = None

    def _find(self, query: dict | None) -> list[dict]:
        return [d for d in self.documents if _matches(d, query)]

    def _insert(self, document: dict) -> None:
        if any(d["_id"] == document["_id"] for d in self.documents):
            raise DuplicateKeyError(f"duplicate _id {document['_id']} in {self.name}")
        self.documents.append(copy.deepcopy(document))

    async def insert_one(self, document: dict):
        self._insert(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def insert_many(self, documents: list[dict], ordered: bool = True):
        call = len(self.insert_calls)
        self.insert_calls.append(len(documents))
        if self.fail_on_insert == call:
            raise DuplicateKeyError(f"insert_many call {call} failed")
        if ordered:
            for document in documents:
                self._insert(document)
            return SimpleNamespace(inserted_ids=[d["_id"] for d in documents])
        inserted, write_errors = [], []
        for position, document in enumerate(documents):
            try:
                self._insert(document)
            except DuplicateKeyError as e:
                write_errors.append({"index": position, "code": 11000, "errmsg": str(e)})
            else:
                inserted.append(document["_id"])
        if write_errors:
            raise BulkWriteError({"nInserted": len(inserted), "writeErrors": write_errors})
        return SimpleNamespace(inserted_ids=inserted)

    async def find_one(self, query: dict | None = None, projection: dict | None = None, sort: list | None = None):
        found = self._find(query)
        for key, direction in reversed(sort or []):
            found.sort(key=lambda d: _resolve(d, key), reverse=direction < 0)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query: dict | None = None) -> FakeCursor:
        return FakeCursor(copy.deepcopy(self._find(query)))

    async def find_one_and_update(self, query: dict, update: dict, upsert: bool = False, return_document=None):
        found = self._find(query)
        if not found:
            if not upsert:
                return None
            document = {"_id": query["_id"]}
            self.documents.append(document)
            found = [document]
        _apply(found[0], update)
        return copy.deepcopy(found[0])

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        found = self._find(query)
        if found:
            before = copy.deepcopy(found[0])
            _apply(found[0], update)
            return SimpleNamespace(matched_count=1, modified_count=int(before != found[0]))
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def update_many(self, query: dict, update: dict):
        found = self._find(query)
        for document in found:
            _apply(document, update)
        return SimpleNamespace(matched_count=len(found), modified_count=len(found))

    async def delete_one(self, query: dict):
        found = self._find(query)
        if found:
            self.documents.remove(found[0])
        return SimpleNamespace(deleted_count=len(found[:1]))

    async def delete_many(self, query: dict):
        found = self._find(query)
        self.documents = [d for d in self.documents if d not in found]
        return SimpleNamespace(deleted_count=len(found))

    async def count_documents(self, query: dict) -> int:
        return len(self._find(query))

    async def create_indexes(self, indexes: list):
        self.indexes.extend(indexes)
        return [index.document["name"] for index in indexes]


class FakeDatabase:
    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}
        self.dropped: list[str] = []

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(str(name), FakeCollection(str(name)))

    async def drop_collection(self, name: str):
        self.dropped.append(name)
        self.collections.pop(name, None)

    async def command(self, name: str):
        return {"ok": 1.0}


class FakeMongoClient:
    def __init__(self, database: FakeDatabase):
        self.database = database
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        return self.database

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Neo4j fake
# ---------------------------------------------------------------------------


class FakeResult:
    def __init__(self, records: list[dict]):
        self.records = records

    async def single(self):
        return self.records[0] if self.records else None

    async def consume(self):
        return None


class FakeGraphSession:
    def __init__(self, driver: "FakeGraphDriver"):
        self.driver = driver

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def run(self, query: str, **params):
        return FakeResult(self.driver.handle(query, params))

    async def execute_write(self, work, *args):
        return await work(self, *args)


class FakeGraphDriver:
    """Records every query; ``handler(query, params)`` supplies result records."""

    def __init__(self, handler=None):
        self.handler = handler or (lambda query, params: [])
        self.queries: list[tuple[str, dict]] = []
        self.unreachable: Exception | None = None
        self.closed = False

    def handle(self, query: str, params: dict) -> list[dict]:
        self.queries.append((query, params))
        return self.handler(query, params)

    async def execute_query(self, query: str, parameters: dict | None = None, **kwargs):
        params = {key: value for key, value in kwargs.items() if not key.endswith("_")}
        params.update(parameters or {})
        return self.handle(query, params), None, None

    def session(self, database: str | None = None) -> FakeGraphSession:
        return FakeGraphSession(self)

    async def verify_connectivity(self):
        if self.unreachable is not None:
            raise self.unreachable

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_mongo() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_graph() -> FakeGraphDriver:
    return FakeGraphDriver()
