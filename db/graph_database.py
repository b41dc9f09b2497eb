"""Neo4j driver handle for the property-graph projection."""

import logging

from neo4j import AsyncDriver, AsyncGraphDatabase

from db.config import settings

logger = logging.getLogger(__name__)

_driver: AsyncDriver | None = None


def create_driver(
    neo4j_uri: str | None = None,
    user: str | None = None,
    password: str | None = None,
) -> AsyncDriver:
    return AsyncGraphDatabase.driver(
        neo4j_uri or settings.neo4j_uri,
        auth=(user or settings.neo4j_user, password or settings.neo4j_password),
    )


def get_driver() -> AsyncDriver:
    global _driver
    if _driver is None:
        _driver = create_driver()
    return _driver


async def init():
    await get_driver().verify_connectivity()
    logger.info("Neo4j connection initialized successfully.")


async def close():
    global _driver
    if _driver is not None:
        await _driver.close()
        _driver = None
        logger.info("Neo4j connections closed.")
