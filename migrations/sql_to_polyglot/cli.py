import asyncio
import logging

import typer

from db.config import settings
from db.enums import MigrationTarget
from migrations.sql_to_polyglot.connections import DOCUMENT, GRAPH, SOURCE, DatabaseMigration
from migrations.sql_to_polyglot.orchestrator import ORCHESTRATORS, MigrationError, check_targets_reachable
from migrations.sql_to_polyglot.stats import CollectionCountChecker
from migrations.sql_to_polyglot.verifier import MigrationVerifier

logging.basicConfig(
    level=settings.logging_level,
    format="%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s",
)
logger = logging.getLogger(__name__)

app = typer.Typer()

COMMANDS = {
    "test-connections": "Probe PostgreSQL, MongoDB and Neo4j",
    "migrate": "Rebuild the document and/or graph store from PostgreSQL",
    "status": "Compare row counts between PostgreSQL and both targets",
    "verify": "Compare genres, episodes and credits of sampled media across stores",
    "help": "List the available commands",
}


def targets_for(target: MigrationTarget) -> list[MigrationTarget]:
    if target == MigrationTarget.ALL:
        return [MigrationTarget.DOCUMENT, MigrationTarget.GRAPH]
    return [target]


def report_failure(error: MigrationError):
    typer.echo(f"❌ {error.target} migration failed during phase {error.phase}")
    cause: BaseException | None = error.cause
    while cause is not None:
        typer.echo(f"   caused by {type(cause).__name__}: {cause}")
        cause = cause.__cause__
    if error.committed:
        committed = ", ".join(f"{kind}={count}" for kind, count in error.committed.items())
        typer.echo(f"   committed before the failure: {committed}")
    if error.partially_populated:
        typer.echo(f"⚠️ The {error.target} store is partially populated. Rerun the migration to rebuild it from scratch.")


async def run_test_connections(migration: DatabaseMigration) -> bool:
    results = await migration.test_connections((SOURCE, DOCUMENT, GRAPH))
    for store, error in results.items():
        if error is None:
            typer.echo(f"✅ {store}: connected")
        else:
            typer.echo(f"❌ {store}: {error}")
    return all(error is None for error in results.values())


async def run_migrations(migration: DatabaseMigration, target: MigrationTarget):
    targets = targets_for(target)
    await check_targets_reachable(migration, targets)
    for migration_target in targets:
        orchestrator = ORCHESTRATORS[migration_target](migration)
        stats = await orchestrator.run()
        typer.echo(f"✅ {migration_target} migration completed: {stats.total_loaded:,} records written")


async def run_status(migration: DatabaseMigration):
    count_checker = CollectionCountChecker(migration)
    statuses = await count_checker.get_collection_status()
    count_checker.log_status_summary(statuses)

    if all(s.is_complete for s in statuses.values()):
        typer.echo("✅ All kinds are fully migrated!")
    else:
        pending = [s.name for s in statuses.values() if not s.is_complete]
        typer.echo(f"⏳ Pending kinds: {', '.join(pending)}")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """PostgreSQL to MongoDB/Neo4j migration tool. Without a command, opens an interactive menu."""
    if ctx.invoked_subcommand is None:
        interactive_menu()


@app.command("test-connections")
def test_connections():
    """Check that every store is reachable"""

    async def run():
        migration = DatabaseMigration()
        try:
            await migration.init_connections()
            if not await run_test_connections(migration):
                raise typer.Exit(code=1)
        finally:
            await migration.close_connections()

    asyncio.run(run())


@app.command()
def migrate(
    target: MigrationTarget = typer.Option(MigrationTarget.ALL, help="Which store(s) to rebuild"),
    batch_size: int = typer.Option(
        settings.migration_batch_size,
        min=1,
        help="Records per bulk write",
    ),
    postgres_uri: str | None = typer.Option(None, help="PostgreSQL connection URI"),
    mongo_uri: str | None = typer.Option(None, help="MongoDB connection URI"),
    neo4j_uri: str | None = typer.Option(None, help="Neo4j connection URI"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Rebuild the target store(s) from the relational source.

    The target is cleared first, so every run is a full rebuild.

    Examples:
      python -m migrations.sql_to_polyglot migrate --target document
      python -m migrations.sql_to_polyglot migrate --target all --batch-size 500 --yes
    """
    if not yes:
        typer.confirm(
            f"⚠️ WARNING: this clears and rebuilds the {target} target. Continue?",
            abort=True,
        )

    async def run():
        migration = DatabaseMigration(postgres_uri, mongo_uri, neo4j_uri, batch_size)
        try:
            await migration.init_connections()
            await run_migrations(migration, target)
        except MigrationError as e:
            logger.exception(f"Migration failed: {e}")
            report_failure(e)
            raise typer.Exit(code=1)
        except Exception as e:
            logger.exception(f"Migration failed: {str(e)}")
            raise typer.Exit(code=1)
        finally:
            await migration.close_connections()

    typer.echo("Starting migration...")
    asyncio.run(run())


@app.command()
def status():
    """Check migration status - shows row counts per kind in every store"""

    async def run():
        migration = DatabaseMigration()
        try:
            await migration.init_connections()
            await run_status(migration)
        except Exception as e:
            logger.exception(f"Status check failed: {str(e)}")
            raise typer.Exit(code=1)
        finally:
            await migration.close_connections()

    asyncio.run(run())


@app.command()
def verify(sample: int = typer.Option(10, "--sample", "-s", min=1, help="Number of media items to compare")):
    """Verify that migrated aggregates match the relational source"""

    async def run():
        migration = DatabaseMigration()
        try:
            await migration.init_connections()
            passed = await MigrationVerifier.from_migration(migration, sample).verify_migration()
        except Exception as e:
            logger.exception(f"Verification failed: {str(e)}")
            raise typer.Exit(code=1)
        finally:
            await migration.close_connections()
        if not passed:
            typer.echo("❌ Verification found mismatches")
            raise typer.Exit(code=1)
        typer.echo("✅ Verification passed")

    typer.echo(f"Starting verification (sample={sample})...")
    asyncio.run(run())


@app.command("help")
def show_help():
    """List the available commands"""
    typer.echo("Commands:")
    for name, description in COMMANDS.items():
        typer.echo(f"  {name:<18} {description}")
    typer.echo("\nRun without a command for the interactive menu.")


def interactive_menu():
    while True:
        typer.echo("\n" + "=" * 40)
        typer.echo("  PostgreSQL -> MongoDB / Neo4j migration")
        typer.echo("=" * 40)
        typer.echo("  1. Test connections")
        typer.echo("  2. Run full migration")
        typer.echo("  3. Show status")
        typer.echo("  4. Exit")
        choice = typer.prompt("Select an option", default="4")

        try:
            if choice == "1":
                test_connections()
            elif choice == "2":
                migrate(
                    target=MigrationTarget.ALL,
                    batch_size=settings.migration_batch_size,
                    postgres_uri=None,
                    mongo_uri=None,
                    neo4j_uri=None,
                    yes=False,
                )
            elif choice == "3":
                status()
            elif choice == "4":
                typer.echo("Bye")
                return
            else:
                typer.echo(f"Unknown option '{choice}'")
        except typer.Exit as e:
            # Failures were already reported; stay in the menu
            logger.debug(f"Menu action exited with code {e.exit_code}")
        except typer.Abort:
            typer.echo("Aborted")


if __name__ == "__main__":
    app()
