"""
Migration orchestrator.

A run walks a fixed, linear sequence of phases:

    Idle -> ConnectivityChecked -> SchemaInitialized -> NodesExtracted
         -> NodesTransformed -> NodesLoaded -> RelationshipsExtracted
         -> RelationshipsLoaded -> Completed

Any failing phase moves the run to Failed and raises ``MigrationError``
naming the phase. There are no retries and no resume: schema initialization
clears the target, so rerunning means rebuilding from scratch.

Extraction fans out one task per entity/relationship kind, each with its own
session, and waits for all of them before anything is transformed.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

from db.enums import MigrationTarget
from migrations.sql_to_polyglot.connections import DOCUMENT, GRAPH, SOURCE, DatabaseMigration
from migrations.sql_to_polyglot.document_builder import DocumentModelBuilder
from migrations.sql_to_polyglot.extractor import (
    Fetcher,
    RelationalExtractor,
    SourceEntities,
    SourceRelationships,
)
from migrations.sql_to_polyglot.graph_builder import GraphModelBuilder
from migrations.sql_to_polyglot.loader import BatchLoadError, DocumentBatchLoader, GraphBatchLoader
from migrations.sql_to_polyglot.schema import init_document_schema, init_graph_schema
from migrations.sql_to_polyglot.stats import MigrationStats

logger = logging.getLogger(__name__)


class MigrationPhase(StrEnum):
    IDLE = "Idle"
    CONNECTIVITY_CHECKED = "ConnectivityChecked"
    SCHEMA_INITIALIZED = "SchemaInitialized"
    NODES_EXTRACTED = "NodesExtracted"
    NODES_TRANSFORMED = "NodesTransformed"
    NODES_LOADED = "NodesLoaded"
    RELATIONSHIPS_EXTRACTED = "RelationshipsExtracted"
    RELATIONSHIPS_LOADED = "RelationshipsLoaded"
    COMPLETED = "Completed"
    FAILED = "Failed"


class ConnectivityError(Exception):
    def __init__(self, failures: dict[str, Exception]):
        self.failures = failures
        details = "; ".join(f"{store}: {error}" for store, error in failures.items())
        super().__init__(f"Unreachable stores: {details}")


class MigrationError(Exception):
    """A migration run failed while attempting ``phase``."""

    def __init__(
        self,
        target: str,
        phase: MigrationPhase,
        cause: Exception,
        committed: dict[str, int],
        partially_populated: bool,
    ):
        self.target = target
        self.phase = phase
        self.cause = cause
        self.committed = committed
        self.partially_populated = partially_populated
        super().__init__(f"{target} migration failed during {phase}: {cause}")


async def fan_out(fetchers: dict[str, Fetcher]) -> dict[str, list[Any]]:
    """Run every fetcher concurrently and wait for all of them."""
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = {kind: tg.create_task(fetch(), name=f"fetch_{kind}") for kind, fetch in fetchers.items()}
    except ExceptionGroup as eg:
        raise eg.exceptions[0]
    return {kind: task.result() for kind, task in tasks.items()}


class MigrationOrchestrator(ABC):
    target: MigrationTarget
    target_store: str

    def __init__(self, migration: DatabaseMigration, extractor: RelationalExtractor | None = None):
        self.migration = migration
        self.extractor = extractor or RelationalExtractor(migration.pg_engine)
        self.phase = MigrationPhase.IDLE
        self.stats = MigrationStats(target=self.target)
        # Set once the target has been touched; any later failure leaves it partially populated
        self.target_touched = False
        self.entities = SourceEntities()
        self.relationships = SourceRelationships()

    async def run(self) -> MigrationStats:
        steps = [
            (MigrationPhase.CONNECTIVITY_CHECKED, self.check_connectivity),
            (MigrationPhase.SCHEMA_INITIALIZED, self.initialize_schema),
            (MigrationPhase.NODES_EXTRACTED, self.extract_nodes),
            (MigrationPhase.NODES_TRANSFORMED, self.transform_nodes),
            (MigrationPhase.NODES_LOADED, self.load_nodes),
            (MigrationPhase.RELATIONSHIPS_EXTRACTED, self.extract_relationships),
            (MigrationPhase.RELATIONSHIPS_LOADED, self.load_relationships),
        ]
        logger.info(f"🚀 Starting {self.target} migration")
        for phase, step in steps:
            try:
                await step()
            except Exception as e:
                self.phase = MigrationPhase.FAILED
                logger.error(f"❌ {self.target} migration failed during {phase}: {e}")
                committed = dict(self.stats.loaded)
                if isinstance(e, BatchLoadError):
                    committed[e.kind] = e.committed
                raise MigrationError(self.target, phase, e, committed, self.target_touched) from e
            self.phase = phase
            logger.info(f"✅ {phase}")

        self.phase = MigrationPhase.COMPLETED
        self.stats.log_summary()
        return self.stats

    async def check_connectivity(self):
        results = await self.migration.test_connections((SOURCE, self.target_store))
        failures = {store: error for store, error in results.items() if error is not None}
        if failures:
            raise ConnectivityError(failures)

    async def _extract(self, fetchers: dict[str, Fetcher]) -> dict[str, list[Any]]:
        results = await fan_out(fetchers)
        for kind, rows in results.items():
            self.stats.record_extracted(kind, len(rows))
        return results

    @abstractmethod
    async def initialize_schema(self): ...

    @abstractmethod
    async def extract_nodes(self): ...

    @abstractmethod
    async def transform_nodes(self): ...

    @abstractmethod
    async def load_nodes(self): ...

    @abstractmethod
    async def extract_relationships(self): ...

    @abstractmethod
    async def load_relationships(self): ...


class DocumentMigrationOrchestrator(MigrationOrchestrator):
    """Relational source -> embedded-document aggregates.

    Relationships are embedded at transform time, so entity and relationship
    sets are extracted together and the relationship phases have nothing left
    to do.
    """

    target = MigrationTarget.DOCUMENT
    target_store = DOCUMENT

    def __init__(self, migration: DatabaseMigration, extractor: RelationalExtractor | None = None):
        super().__init__(migration, extractor)
        self.loader = DocumentBatchLoader(migration.mongo_db, migration.batch_size)
        self.documents = {}

    async def initialize_schema(self):
        self.target_touched = True
        await init_document_schema(self.migration.mongo_db)

    async def extract_nodes(self):
        entity_fetchers = self.extractor.entity_fetchers()
        relationship_fetchers = self.extractor.relationship_fetchers()
        results = await self._extract(entity_fetchers | relationship_fetchers)
        self.entities = SourceEntities(**{kind: results[kind] for kind in entity_fetchers})
        self.relationships = SourceRelationships(**{kind: results[kind] for kind in relationship_fetchers})

    async def transform_nodes(self):
        self.documents = DocumentModelBuilder(self.entities, self.relationships).build()

    async def load_nodes(self):
        for collection, documents in self.documents.items():
            count = await self.loader.load(collection, documents)
            self.stats.record_loaded(collection, count)

    async def extract_relationships(self):
        logger.info("Relationships were extracted with the entities and embedded into aggregates")

    async def load_relationships(self):
        logger.info("No separate relationship load for the document target")


class GraphMigrationOrchestrator(MigrationOrchestrator):
    """Relational source -> property graph."""

    target = MigrationTarget.GRAPH
    target_store = GRAPH

    def __init__(self, migration: DatabaseMigration, extractor: RelationalExtractor | None = None):
        super().__init__(migration, extractor)
        self.loader = GraphBatchLoader(migration.neo4j_driver, migration.neo4j_database, migration.batch_size)
        self.builder: GraphModelBuilder | None = None
        self.node_records = {}

    async def initialize_schema(self):
        self.target_touched = True
        await init_graph_schema(self.migration.neo4j_driver, self.migration.neo4j_database)

    async def extract_nodes(self):
        self.entities = SourceEntities(**await self._extract(self.extractor.entity_fetchers()))

    async def transform_nodes(self):
        self.builder = GraphModelBuilder(self.entities)
        self.node_records = self.builder.nodes()

    async def load_nodes(self):
        for label, records in self.node_records.items():
            count = await self.loader.load_nodes(label, records)
            self.stats.record_loaded(f"{label} nodes", count)

    async def extract_relationships(self):
        self.relationships = SourceRelationships(**await self._extract(self.extractor.relationship_fetchers()))

    async def load_relationships(self):
        for rel_type, records in self.builder.relationships(self.relationships).items():
            count = await self.loader.load_edges(rel_type, records)
            self.stats.record_loaded(f"{rel_type} relationships", count)


ORCHESTRATORS: dict[MigrationTarget, type[MigrationOrchestrator]] = {
    MigrationTarget.DOCUMENT: DocumentMigrationOrchestrator,
    MigrationTarget.GRAPH: GraphMigrationOrchestrator,
}


async def check_targets_reachable(migration: DatabaseMigration, targets: list[MigrationTarget]):
    """Check the source and every target store before any target is cleared."""
    stores = (SOURCE, *(ORCHESTRATORS[target].target_store for target in targets))
    results = await migration.test_connections(stores)
    failures = {store: error for store, error in results.items() if error is not None}
    if failures:
        error = ConnectivityError(failures)
        names = "/".join(targets)
        logger.error(f"❌ {names} migration not started: {error}")
        raise MigrationError(names, MigrationPhase.CONNECTIVITY_CHECKED, error, {}, False) from error
