"""
Chunked bulk writers for the document and graph targets.

Each load call writes its records in fixed-size chunks, one bulk write per
chunk, one chunk after another. A failing chunk aborts the call with
``BatchLoadError``; chunks written before it stay committed.
"""

import logging
from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

from motor.motor_asyncio import AsyncIOMotorDatabase
from neo4j import AsyncDriver
from pymongo.errors import BulkWriteError
from tqdm.asyncio import tqdm

from db.enums import NodeLabel, RelationshipType
from db.schemas import MongoModel
from migrations.sql_to_polyglot.schema import NODE_DATE_PROPERTIES, RELATIONSHIP_ENDPOINTS, RELATIONSHIP_PROPERTIES

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 1000


class BatchLoadError(Exception):
    """A chunk failed to write; ``committed`` records of ``kind`` were already written."""

    def __init__(self, kind: str, batch_index: int, committed: int, cause: Exception):
        self.kind = kind
        self.batch_index = batch_index
        self.committed = committed
        super().__init__(f"Batch {batch_index} of {kind} failed after {committed} records were written: {cause}")


def chunked(records: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(0, len(records), batch_size):
        yield records[start : start + batch_size]


class DocumentBatchLoader:
    def __init__(self, database: AsyncIOMotorDatabase, batch_size: int = DEFAULT_BATCH_SIZE):
        self.database = database
        self.batch_size = batch_size

    async def load(self, collection_name: str, documents: Sequence[MongoModel]) -> int:
        """Insert documents unordered, one ``insert_many`` per chunk. Returns the count written."""
        collection = self.database[collection_name]
        committed = 0
        with tqdm(total=len(documents), desc=f"Loading {collection_name}", unit="docs") as pbar:
            for index, chunk in enumerate(chunked(documents, self.batch_size)):
                try:
                    await collection.insert_many([doc.to_mongo() for doc in chunk], ordered=False)
                except BulkWriteError as e:
                    # Unordered inserts keep going past a failing document
                    committed += e.details.get("nInserted", 0)
                    raise BatchLoadError(collection_name, index, committed, e) from e
                except Exception as e:
                    raise BatchLoadError(collection_name, index, committed, e) from e
                committed += len(chunk)
                pbar.update(len(chunk))
        logger.info(f"Inserted {committed} documents into {collection_name}")
        return committed


def node_write_query(label: NodeLabel) -> str:
    query = f"UNWIND $rows AS row CREATE (n:{label}) SET n = row"
    for prop in NODE_DATE_PROPERTIES.get(label, ()):
        query += f", n.{prop} = date(row.{prop})"
    return query


def edge_write_query(rel_type: RelationshipType) -> str:
    from_label, to_label = RELATIONSHIP_ENDPOINTS[rel_type]
    properties = RELATIONSHIP_PROPERTIES.get(rel_type, "")
    return (
        "UNWIND $rows AS row "
        f"MATCH (a:{from_label} {{id: row.fromId}}) "
        f"MATCH (b:{to_label} {{id: row.toId}}) "
        f"CREATE (a)-[:{rel_type} {properties}]->(b)"
    )


class GraphBatchLoader:
    def __init__(self, driver: AsyncDriver, database: str | None = None, batch_size: int = DEFAULT_BATCH_SIZE):
        self.driver = driver
        self.database = database
        self.batch_size = batch_size

    async def _write(self, kind: str, query: str, records: Sequence[dict[str, Any]]) -> int:
        committed = 0
        async with self.driver.session(database=self.database) as session:
            with tqdm(total=len(records), desc=f"Loading {kind}", unit="rows") as pbar:
                for index, chunk in enumerate(chunked(records, self.batch_size)):
                    try:
                        result = await session.run(query, rows=list(chunk))
                        await result.consume()
                    except Exception as e:
                        raise BatchLoadError(kind, index, committed, e) from e
                    committed += len(chunk)
                    pbar.update(len(chunk))
        logger.info(f"Created {committed} {kind}")
        return committed

    async def load_nodes(self, label: NodeLabel, records: Sequence[dict[str, Any]]) -> int:
        return await self._write(f"{label} nodes", node_write_query(label), records)

    async def load_edges(self, rel_type: RelationshipType, records: Sequence[dict[str, Any]]) -> int:
        return await self._write(f"{rel_type} relationships", edge_write_query(rel_type), records)
