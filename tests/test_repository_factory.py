"""
Tests for tenant resolution and backend selection.
"""

import pytest

from db.config import settings
from db.enums import Tenant
from db.repositories import (
    DocumentRepository,
    GraphRepository,
    RepositoryFactory,
    SqlRepository,
    resolve_tenant,
)


class TestResolveTenant:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("sql", Tenant.SQL),
            ("postgres", Tenant.SQL),
            ("mongo", Tenant.MONGO),
            ("MongoDB", Tenant.MONGO),
            ("neo4j", Tenant.NEO4J),
            (" graph ", Tenant.NEO4J),
        ],
    )
    def test_known_names(self, value, expected):
        assert resolve_tenant(value) == expected

    @pytest.mark.parametrize("value", [None, "", "oracle", "  "])
    def test_unknown_or_missing_uses_default(self, value):
        assert resolve_tenant(value) == Tenant.SQL

    def test_configured_default(self, monkeypatch):
        monkeypatch.setattr(settings, "default_tenant", "neo4j")
        assert resolve_tenant("cassandra") == Tenant.NEO4J
        assert resolve_tenant(None) == Tenant.NEO4J


class TestRepositoryFactory:
    @pytest.mark.parametrize(
        "tenant, repository_type",
        [
            ("sql", SqlRepository),
            ("mongo", DocumentRepository),
            ("neo4j", GraphRepository),
            ("unknown", SqlRepository),
        ],
    )
    async def test_get(self, sqlite_engine, fake_mongo, fake_graph, tenant, repository_type):
        factory = RepositoryFactory(sqlite_engine, fake_mongo, fake_graph)
        repository = factory.get(tenant)
        assert isinstance(repository, repository_type)
        assert factory.get(tenant) is repository
