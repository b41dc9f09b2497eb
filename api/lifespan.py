"""Application lifecycle management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from db import database, graph_database, mongo_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application lifespan context manager.

    Handles:
    - Relational, document and graph store initialization
    - Graceful shutdown of every store handle
    """
    # Startup logic
    await database.init()
    await mongo_database.init()
    await graph_database.init()

    yield

    # Shutdown logic
    try:
        await graph_database.close()
        await mongo_database.close()
    finally:
        await database.close()
    logger.info("Store connections closed")
