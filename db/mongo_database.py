"""MongoDB handles for the embedded-document projection."""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from db.config import settings

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None


def create_client(mongo_uri: str | None = None) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(mongo_uri or settings.mongo_uri, maxPoolSize=50, minPoolSize=5)


def get_database() -> AsyncIOMotorDatabase:
    global _client
    if _client is None:
        _client = create_client()
    return _client[settings.mongo_database]


async def ping(database: AsyncIOMotorDatabase) -> None:
    await database.command("ping")


async def init():
    await ping(get_database())
    logger.info("MongoDB connection initialized successfully.")


async def close():
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB connections closed.")
