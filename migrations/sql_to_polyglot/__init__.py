"""
PostgreSQL to MongoDB/Neo4j migration module.

Rebuilds two projections of the relational media database:
- MongoDB: user and media aggregates with embedded profiles, watchlists,
  reviews, genres, episode ids and credits
- Neo4j: one node per row and one typed relationship per foreign key or
  join-table row

CLI Usage:
    python -m migrations.sql_to_polyglot test-connections
    python -m migrations.sql_to_polyglot migrate --target all --yes
    python -m migrations.sql_to_polyglot status
    python -m migrations.sql_to_polyglot verify --sample 20
"""

from migrations.sql_to_polyglot.cli import app
from migrations.sql_to_polyglot.connections import DatabaseMigration
from migrations.sql_to_polyglot.orchestrator import (
    ORCHESTRATORS,
    DocumentMigrationOrchestrator,
    GraphMigrationOrchestrator,
    MigrationError,
    MigrationOrchestrator,
    MigrationPhase,
)
from migrations.sql_to_polyglot.stats import (
    CollectionCountChecker,
    CollectionStatus,
    MigrationStats,
)
from migrations.sql_to_polyglot.verifier import MigrationVerifier

__all__ = [
    "app",
    "DatabaseMigration",
    "ORCHESTRATORS",
    "DocumentMigrationOrchestrator",
    "GraphMigrationOrchestrator",
    "MigrationError",
    "MigrationOrchestrator",
    "MigrationPhase",
    "MigrationStats",
    "CollectionStatus",
    "CollectionCountChecker",
    "MigrationVerifier",
]
