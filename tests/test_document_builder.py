"""
Tests for the relational -> document transform in
migrations/sql_to_polyglot/document_builder.py

Covers:
- User aggregates with embedded profiles, watchlists and numbered reviews
- Media aggregates with genre names, episode ids and grouped credits
- Defaults for nullable source columns
- Stored (camelCase, ISO date) document shape
"""

from db.enums import DocumentCollection
from migrations.sql_to_polyglot.document_builder import DocumentModelBuilder, build_credit_documents
from migrations.sql_to_polyglot.extractor import PersonMediaRoleRow
from tests.conftest import sample_entities, sample_relationships


def build() -> DocumentModelBuilder:
    return DocumentModelBuilder(sample_entities(), sample_relationships())


class TestUserDocuments:
    """Users embed profiles, watchlists and reviews"""

    def test_profiles_ordered_by_id(self):
        alice = build().users()[0]
        assert [p.name for p in alice.profiles] == ["Alice", "Kid"]
        assert [p.is_child for p in alice.profiles] == [False, True]

    def test_reviews_numbered_per_profile_in_media_order(self):
        profile = build().users()[0].profiles[0]
        assert [(r.id, r.media_id, r.rating) for r in profile.reviews] == [(1, 1, 4), (2, 7, 5)]
        # Null description defaults to empty string
        assert profile.reviews[0].description == ""

    def test_watchlist_embedded(self):
        users = build().users()
        assert users[0].profiles[0].watchlist.medias == [1]
        assert users[1].profiles[0].watchlist.is_locked is True

    def test_subscriptions_and_privileges(self):
        alice, bob = build().users()
        assert alice.subscriptions == [2]
        assert alice.privileges == ["admin"]
        assert bob.subscriptions == []
        assert bob.privileges == []

    def test_stored_shape(self):
        stored = build().users()[0].to_mongo()
        assert stored["_id"] == 1
        assert stored["password"] == "hash-a"
        assert stored["firstName"] == "Alice"
        assert stored["profiles"][1]["isChild"] is True
        assert stored["profiles"][0]["reviews"][1] == {"id": 2, "mediaId": 7, "rating": 5, "description": "Great"}


class TestMediaDocuments:
    """Medias embed genres, episode ids and credits"""

    def test_series_aggregate(self):
        medias = {m.id: m for m in build().medias()}
        series = medias[7]
        assert series.genres == ["Drama", "Crime"]
        assert series.episodes == [10, 11]
        assert [(c.person_id, c.roles) for c in series.credits] == [(1, ["Actor", "Director"]), (2, ["Actor"])]

    def test_media_without_relations(self):
        medias = {m.id: m for m in build().medias()}
        assert medias[3].episodes == []
        assert medias[3].credits == []

    def test_null_age_limit_kept(self):
        stored = {m.id: m.to_mongo() for m in build().medias()}
        assert stored[3]["ageLimit"] is None
        assert stored[7]["ageLimit"] == 18
        assert stored[7]["release"] == "2008-01-20"

    def test_unknown_person_or_role_skipped(self):
        rows = [PersonMediaRoleRow(1, 7, 1), PersonMediaRoleRow(99, 7, 1), PersonMediaRoleRow(1, 7, 99)]
        credits = build_credit_documents(rows, {1}, {1: "Actor"})
        assert [(c.person_id, c.roles) for c in credits] == [(1, ["Actor"])]


class TestOtherCollections:
    def test_episode_season_count_defaults_to_one(self):
        episodes = {e.id: e for e in build().episodes()}
        assert episodes[10].season_count == 1
        assert episodes[11].season_count == 1
        assert episodes[11].to_mongo()["seasonCount"] == 1

    def test_build_load_order(self):
        documents = build().build()
        assert list(documents) == [
            DocumentCollection.SUBSCRIPTIONS,
            DocumentCollection.USERS,
            DocumentCollection.MEDIAS,
            DocumentCollection.PERSONS,
            DocumentCollection.EPISODES,
        ]
        assert [len(docs) for docs in documents.values()] == [2, 2, 3, 2, 2]

    def test_person_birth_date_iso(self):
        person = build().persons()[0].to_mongo()
        assert person == {
            "_id": 1,
            "firstName": "Bryan",
            "lastName": "Cranston",
            "gender": "Male",
            "birthDate": "1956-03-07",
        }
