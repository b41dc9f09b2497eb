"""
Tests for the migration CLI that need no live stores.
"""

from typer.testing import CliRunner

from db.enums import MigrationTarget
from migrations.sql_to_polyglot import cli
from migrations.sql_to_polyglot.loader import BatchLoadError
from migrations.sql_to_polyglot.orchestrator import MigrationError, MigrationPhase

runner = CliRunner()


class TestCommands:
    def test_help_lists_commands(self):
        result = runner.invoke(cli.app, ["help"])
        assert result.exit_code == 0
        for command in ("test-connections", "migrate", "status", "verify"):
            assert command in result.output

    def test_migrate_declined(self):
        result = runner.invoke(cli.app, ["migrate", "--target", "graph"], input="n\n")
        assert result.exit_code == 1
        assert "WARNING" in result.output
        assert "Starting migration" not in result.output

    def test_invalid_target(self):
        result = runner.invoke(cli.app, ["migrate", "--target", "sqlite", "--yes"])
        assert result.exit_code == 2

    def test_menu_exit(self):
        result = runner.invoke(cli.app, [], input="4\n")
        assert result.exit_code == 0
        assert "1. Test connections" in result.output
        assert "Bye" in result.output


class TestReportFailure:
    def test_prints_phase_cause_chain_and_notice(self, capsys):
        cause = BatchLoadError("medias", 1, 1000, ConnectionError("socket closed"))
        cause.__cause__ = ConnectionError("socket closed")
        error = MigrationError("document", MigrationPhase.NODES_LOADED, cause, {"users": 2, "medias": 1000}, True)

        cli.report_failure(error)
        output = capsys.readouterr().out

        assert "failed during phase NodesLoaded" in output
        assert "caused by BatchLoadError" in output
        assert "caused by ConnectionError: socket closed" in output
        assert "medias=1000" in output
        assert "partially populated" in output


def test_targets_for():
    assert cli.targets_for(MigrationTarget.ALL) == [MigrationTarget.DOCUMENT, MigrationTarget.GRAPH]
    assert cli.targets_for(MigrationTarget.GRAPH) == [MigrationTarget.GRAPH]
