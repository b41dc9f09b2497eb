"""
Round-trip verification of a finished migration.

For the first N media items of the relational source, the genre, episode and
credit sets read back through the document and graph repositories must equal
the ones read through the relational repository.
"""

import logging
from typing import TYPE_CHECKING

from db.exceptions import EntityNotFoundError
from db.repositories import DocumentRepository, GraphRepository, MediaRepository, SqlRepository
from db.schemas import MediaData
from migrations.sql_to_polyglot.connections import DOCUMENT, GRAPH

if TYPE_CHECKING:
    from migrations.sql_to_polyglot.connections import DatabaseMigration

logger = logging.getLogger(__name__)


def media_fingerprint(media: MediaData) -> dict[str, set]:
    """Order-insensitive view of the relations embedded in a media aggregate."""
    return {
        "genres": set(media.genres),
        "episodes": set(media.episodes),
        "credits": {(credit.person_id, role) for credit in media.credits for role in credit.roles},
    }


class MigrationVerifier:
    def __init__(self, source: MediaRepository, targets: dict[str, MediaRepository], sample_size: int = 10):
        self.source = source
        self.targets = targets
        self.sample_size = sample_size
        self.verification_results: dict[str, dict] = {}

    @classmethod
    def from_migration(cls, migration: "DatabaseMigration", sample_size: int = 10) -> "MigrationVerifier":
        return cls(
            SqlRepository(migration.pg_engine),
            {
                DOCUMENT: DocumentRepository(migration.mongo_db),
                GRAPH: GraphRepository(migration.neo4j_driver, migration.neo4j_database),
            },
            sample_size,
        )

    async def verify_migration(self) -> bool:
        logger.info(f"🔍 Verifying the first {self.sample_size} media items...")
        medias = (await self.source.get_all_media())[: self.sample_size]

        for store, repository in self.targets.items():
            issues = []
            for media in medias:
                expected = media_fingerprint(media)
                try:
                    actual = media_fingerprint(await repository.get_media_by_id(media.id))
                except EntityNotFoundError:
                    issues.append(f"media {media.id} is missing")
                    continue
                for relation, values in expected.items():
                    if actual[relation] != values:
                        missing = sorted(values - actual[relation])
                        extra = sorted(actual[relation] - values)
                        issues.append(f"media {media.id} {relation}: missing={missing} extra={extra}")

            self.verification_results[store] = {
                "valid": not issues,
                "details": f"Checked {len(medias)} media, found {len(issues)} issues",
                "issues": issues,
            }

        self._log_verification_results()
        return all(result["valid"] for result in self.verification_results.values())

    def _log_verification_results(self):
        logger.info("\nVerification Results:")
        logger.info("=" * 50)
        for store, result in self.verification_results.items():
            status = "✅" if result["valid"] else "❌"
            logger.info(f"{status} {store}: {result['details']}")
            for issue in result["issues"][:5]:
                logger.info(f"  - {issue}")
        logger.info("=" * 50)
