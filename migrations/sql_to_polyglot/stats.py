"""
Migration statistics and status checks.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from neo4j import RoutingControl

from db.enums import DocumentCollection, NodeLabel
from migrations.sql_to_polyglot.extractor import RelationalExtractor

if TYPE_CHECKING:
    from migrations.sql_to_polyglot.connections import DatabaseMigration

logger = logging.getLogger(__name__)

# Source entity kind -> where it lands in each target
DOCUMENT_COLLECTIONS: dict[str, DocumentCollection] = {
    "users": DocumentCollection.USERS,
    "medias": DocumentCollection.MEDIAS,
    "episodes": DocumentCollection.EPISODES,
    "persons": DocumentCollection.PERSONS,
    "subscriptions": DocumentCollection.SUBSCRIPTIONS,
}

GRAPH_LABELS: dict[str, NodeLabel] = {
    "users": NodeLabel.USER,
    "profiles": NodeLabel.PROFILE,
    "watch_lists": NodeLabel.WATCHLIST,
    "medias": NodeLabel.MEDIA,
    "episodes": NodeLabel.EPISODE,
    "persons": NodeLabel.PERSON,
    "genres": NodeLabel.GENRE,
    "roles": NodeLabel.ROLE,
    "subscriptions": NodeLabel.SUBSCRIPTION,
    "privileges": NodeLabel.PRIVILEGE,
}


@dataclass
class MigrationStats:
    """Counts per entity/relationship kind for one migration run"""

    target: str
    extracted: dict[str, int] = field(default_factory=dict)
    loaded: dict[str, int] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)

    def record_extracted(self, kind: str, count: int):
        self.extracted[kind] = count

    def record_loaded(self, kind: str, count: int):
        self.loaded[kind] = count

    @property
    def total_loaded(self) -> int:
        return sum(self.loaded.values())

    def log_summary(self):
        elapsed = time.monotonic() - self.started_at
        logger.info("\n" + "=" * 60)
        logger.info(f"📊 MIGRATION SUMMARY ({self.target})")
        logger.info("=" * 60)
        logger.info("  Extracted:")
        for kind, count in self.extracted.items():
            logger.info(f"    {kind:<28} {count:>10,}")
        logger.info("  Loaded:")
        for kind, count in self.loaded.items():
            logger.info(f"    {kind:<28} {count:>10,}")
        logger.info(f"  Total written: {self.total_loaded:,} in {elapsed:.1f}s")
        logger.info("=" * 60 + "\n")


@dataclass
class CollectionStatus:
    """Row counts of one source kind against both targets"""

    name: str
    source_count: int
    document_count: int | None
    graph_count: int | None

    @property
    def is_complete(self) -> bool:
        return all(count in (None, self.source_count) for count in (self.document_count, self.graph_count))


class CollectionCountChecker:
    """Compare source row counts with document and graph counts"""

    def __init__(self, migration: "DatabaseMigration"):
        self.migration = migration

    async def get_collection_status(self) -> dict[str, CollectionStatus]:
        source_counts = await RelationalExtractor(self.migration.pg_engine).count_entities()
        statuses = {}
        for kind, source_count in source_counts.items():
            document_count = None
            if kind in DOCUMENT_COLLECTIONS:
                document_count = await self.migration.mongo_db[DOCUMENT_COLLECTIONS[kind]].count_documents({})
            graph_count = await self._count_label(GRAPH_LABELS[kind])
            statuses[kind] = CollectionStatus(kind, source_count, document_count, graph_count)
        return statuses

    async def _count_label(self, label: NodeLabel) -> int:
        records, _, _ = await self.migration.neo4j_driver.execute_query(
            f"MATCH (n:{label}) RETURN count(n) AS total",
            database_=self.migration.neo4j_database,
            routing_=RoutingControl.READ,
        )
        return records[0]["total"]

    def log_status_summary(self, statuses: dict[str, CollectionStatus]):
        """Log a summary table of all collection statuses"""
        logger.info("\n" + "=" * 70)
        logger.info("📊 MIGRATION STATUS CHECK")
        logger.info("=" * 70)
        logger.info(f"{'Kind':<16} {'PostgreSQL':<12} {'MongoDB':<12} {'Neo4j':<12} {'Status':<10}")
        logger.info("-" * 70)

        for status in statuses.values():
            status_icon = "✅ DONE" if status.is_complete else "⏳ PENDING"
            document = "-" if status.document_count is None else status.document_count
            logger.info(
                f"{status.name:<16} {status.source_count:<12} {document:<12} {status.graph_count:<12} {status_icon:<10}"
            )

        logger.info("=" * 70 + "\n")
