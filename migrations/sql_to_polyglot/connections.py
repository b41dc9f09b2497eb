import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from neo4j import AsyncDriver
from sqlalchemy.ext.asyncio import AsyncEngine

from db import database, graph_database, mongo_database
from db.config import settings

logger = logging.getLogger(__name__)

SOURCE = "PostgreSQL"
DOCUMENT = "MongoDB"
GRAPH = "Neo4j"


class DatabaseMigration:
    """Connection handles shared by one migration run"""

    def __init__(
        self,
        postgres_uri: str | None = None,
        mongo_uri: str | None = None,
        neo4j_uri: str | None = None,
        batch_size: int | None = None,
    ):
        self.postgres_uri = postgres_uri or settings.postgres_uri
        self.mongo_uri = mongo_uri or settings.mongo_uri
        self.neo4j_uri = neo4j_uri or settings.neo4j_uri
        self.mongo_database_name = settings.mongo_database
        self.neo4j_database = settings.neo4j_database
        self.batch_size = batch_size or settings.migration_batch_size
        self.pg_engine: AsyncEngine | None = None
        self.mongo_client: AsyncIOMotorClient | None = None
        self.neo4j_driver: AsyncDriver | None = None

    @property
    def mongo_db(self) -> AsyncIOMotorDatabase:
        return self.mongo_client[self.mongo_database_name]

    async def init_connections(self):
        """Create the store handles; nothing is contacted until first use"""
        self.pg_engine = database.create_engine(self.postgres_uri)
        self.mongo_client = mongo_database.create_client(self.mongo_uri)
        self.neo4j_driver = graph_database.create_driver(self.neo4j_uri)

    async def test_connections(self, stores: tuple[str, ...] = (SOURCE, DOCUMENT, GRAPH)) -> dict[str, Exception | None]:
        """Probe each store; maps store name to the probe error, or None when reachable."""
        probes = {
            SOURCE: lambda: database.ping(self.pg_engine),
            DOCUMENT: lambda: mongo_database.ping(self.mongo_db),
            GRAPH: lambda: self.neo4j_driver.verify_connectivity(),
        }
        results = {}
        for store in stores:
            try:
                await probes[store]()
                results[store] = None
            except Exception as e:
                logger.debug(f"{store} probe failed: {e}")
                results[store] = e
        return results

    async def close_connections(self):
        if self.pg_engine is not None:
            await self.pg_engine.dispose()
        if self.mongo_client is not None:
            self.mongo_client.close()
        if self.neo4j_driver is not None:
            await self.neo4j_driver.close()
        logger.info("Migration connections closed.")
