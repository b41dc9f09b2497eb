"""
Tenant-selected repositories.

Every request names a tenant; the factory hands back the repository of the
matching backend. All three backends serve the same ``MediaRepository``
contract and return the same DTOs.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from neo4j import AsyncDriver
from sqlalchemy.ext.asyncio import AsyncEngine

from db import database, graph_database, mongo_database
from db.config import settings
from db.enums import Tenant
from db.repositories.base import MediaRepository, ensure_can_add_to_watchlist
from db.repositories.document import DocumentRepository
from db.repositories.graph import GraphRepository
from db.repositories.sql import SqlRepository

logger = logging.getLogger(__name__)

TENANT_ALIASES: dict[str, Tenant] = {
    "sql": Tenant.SQL,
    "postgres": Tenant.SQL,
    "postgresql": Tenant.SQL,
    "relational": Tenant.SQL,
    "mongo": Tenant.MONGO,
    "mongodb": Tenant.MONGO,
    "document": Tenant.MONGO,
    "neo4j": Tenant.NEO4J,
    "graph": Tenant.NEO4J,
}


def resolve_tenant(value: str | None) -> Tenant:
    """Map a tenant name to its backend; unknown or missing names use the default tenant."""
    key = (value or "").strip().lower()
    if key in TENANT_ALIASES:
        return TENANT_ALIASES[key]
    if key:
        logger.warning(f"Unknown tenant '{value}', using '{settings.default_tenant}'")
    return TENANT_ALIASES.get(settings.default_tenant.strip().lower(), Tenant.SQL)


class RepositoryFactory:
    def __init__(
        self,
        engine: AsyncEngine,
        mongo_db: AsyncIOMotorDatabase,
        graph_driver: AsyncDriver,
        neo4j_database: str | None = None,
    ):
        self.repositories: dict[Tenant, MediaRepository] = {
            Tenant.SQL: SqlRepository(engine),
            Tenant.MONGO: DocumentRepository(mongo_db),
            Tenant.NEO4J: GraphRepository(graph_driver, neo4j_database),
        }

    def get(self, tenant: str | Tenant | None) -> MediaRepository:
        return self.repositories[resolve_tenant(tenant)]


_factory: RepositoryFactory | None = None


def get_factory() -> RepositoryFactory:
    """Factory over the process-wide connection handles."""
    global _factory
    if _factory is None:
        _factory = RepositoryFactory(
            database.ASYNC_ENGINE,
            mongo_database.get_database(),
            graph_database.get_driver(),
            settings.neo4j_database,
        )
    return _factory


def get_repository(tenant: str | None = None) -> MediaRepository:
    return get_factory().get(tenant)


__all__ = [
    "DocumentRepository",
    "GraphRepository",
    "MediaRepository",
    "RepositoryFactory",
    "SqlRepository",
    "TENANT_ALIASES",
    "ensure_can_add_to_watchlist",
    "get_factory",
    "get_repository",
    "resolve_tenant",
]
