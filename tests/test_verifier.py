"""
Tests for round-trip verification across stores.
"""

import pytest

from db.repositories import DocumentRepository, SqlRepository
from migrations.sql_to_polyglot.document_builder import DocumentModelBuilder
from migrations.sql_to_polyglot.verifier import MigrationVerifier
from tests.conftest import sample_entities, sample_relationships


@pytest.fixture
def document_repository(fake_mongo) -> DocumentRepository:
    for collection, documents in DocumentModelBuilder(sample_entities(), sample_relationships()).build().items():
        fake_mongo[collection].documents.extend(document.to_mongo() for document in documents)
    return DocumentRepository(fake_mongo)


class TestMigrationVerifier:
    async def test_matching_stores(self, seeded_engine, document_repository):
        verifier = MigrationVerifier(SqlRepository(seeded_engine), {"MongoDB": document_repository}, sample_size=3)
        assert await verifier.verify_migration() is True
        assert verifier.verification_results["MongoDB"]["issues"] == []

    async def test_genre_mismatch_reported(self, seeded_engine, document_repository, fake_mongo):
        await fake_mongo["medias"].update_one({"_id": 7}, {"$set": {"genres": ["Drama"]}})
        verifier = MigrationVerifier(SqlRepository(seeded_engine), {"MongoDB": document_repository}, sample_size=3)

        assert await verifier.verify_migration() is False
        assert verifier.verification_results["MongoDB"]["issues"] == ["media 7 genres: missing=['Crime'] extra=[]"]

    async def test_missing_media_reported(self, seeded_engine, document_repository, fake_mongo):
        await fake_mongo["medias"].delete_one({"_id": 1})
        verifier = MigrationVerifier(SqlRepository(seeded_engine), {"MongoDB": document_repository}, sample_size=1)

        assert await verifier.verify_migration() is False
        assert verifier.verification_results["MongoDB"]["issues"] == ["media 1 is missing"]
