"""
Surrogate id allocation for stores without native auto-increment.

Two strategies:
- ``DocumentCounterAllocator``: one counter document per sequence name in the
  ``counters`` collection, incremented atomically. The first allocation
  reconciles against the highest ``_id`` already stored, so a counter created
  after a migration never hands out ids that are already taken. The
  reconciliation step is not atomic with the first increment; two callers
  racing on an absent counter can still collide.
- ``GraphIdAllocator``: ``max(id) + 1`` per label. Nothing is reserved, so two
  concurrent writers on one label can receive the same id. Only safe under a
  single writer.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from neo4j import AsyncDriver, RoutingControl
from pymongo import ReturnDocument

from db.enums import DocumentCollection, NodeLabel, Sequence

logger = logging.getLogger(__name__)

SEQUENCE_COLLECTIONS: dict[Sequence, DocumentCollection] = {
    Sequence.MEDIA_ID: DocumentCollection.MEDIAS,
    Sequence.EPISODE_ID: DocumentCollection.EPISODES,
    Sequence.USER_ID: DocumentCollection.USERS,
}


class DocumentCounterAllocator:
    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database
        self.counters = database[DocumentCollection.COUNTERS]

    async def next_value(self, sequence: str) -> int:
        """Atomically increment and return the counter for ``sequence``."""
        sequence = Sequence(sequence)
        counter = await self.counters.find_one_and_update(
            {"_id": sequence.value},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        value = counter["value"]
        if value == 1:
            # Counter was just created
            return await self.reconcile(sequence, value)
        return value

    async def reconcile(self, sequence: Sequence, value: int) -> int:
        """Lift a fresh counter above the highest id already present."""
        collection = self.database[SEQUENCE_COLLECTIONS[sequence]]
        highest = await collection.find_one({}, projection={"_id": 1}, sort=[("_id", -1)])
        if highest is None or value > highest["_id"]:
            return value

        next_value = highest["_id"] + 1
        await self.counters.update_one({"_id": sequence.value}, {"$max": {"value": next_value}})
        logger.info(f"Counter '{sequence}' reconciled to {next_value} (highest stored id {highest['_id']})")
        return next_value


class GraphIdAllocator:
    def __init__(self, driver: AsyncDriver, database: str | None = None):
        self.driver = driver
        self.database = database

    async def next_id_for_label(self, label: str) -> int:
        label = NodeLabel(label)
        records, _, _ = await self.driver.execute_query(
            f"MATCH (n:{label}) RETURN coalesce(max(n.id), 0) + 1 AS next_id",
            database_=self.database,
            routing_=RoutingControl.READ,
        )
        return records[0]["next_id"]
