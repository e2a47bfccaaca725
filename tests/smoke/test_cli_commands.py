"""
Smoke Tests for CLI Commands.

These tests run each command in-process with Typer's CliRunner against a
temporary data directory. They check that commands work and leave the
progress file in a sensible state, not every detail of the output.

Usage:
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import pytest
from typer.testing import CliRunner

from times_tables.config import get_settings
from times_tables.core import Fact
from times_tables.delivery.cli import app
from times_tables.delivery.progress_file import ProgressFile

pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Point the CLI at a throwaway data directory."""
    monkeypatch.setenv("TIMES_TABLES_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def progress(data_dir):
    return ProgressFile(data_dir / "progress.json")


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("practice", "stats", "tables", "reset", "serve"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["practice", "stats", "tables", "reset", "serve"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestStatsCommands:
    def test_stats_on_fresh_install(self, progress):
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Learning Statistics" in result.output
        assert "0/1" in result.output
        assert not progress.exists()

    def test_tables_on_fresh_install(self):
        result = runner.invoke(app, ["tables"])

        assert result.exit_code == 0
        assert "2.50" in result.output


class TestPractice:
    def test_correct_answer_then_quit(self, progress):
        result = runner.invoke(app, ["practice"], input="1\nq\n")

        assert result.exit_code == 0
        assert "1 × 1 = ?" in result.output
        assert "Correct!" in result.output
        assert "Session Complete!" in result.output

        engine = progress.load()
        assert engine.total_correct() == 1
        assert engine.stats_for(Fact(1, 1)).times_correct == 1

    def test_wrong_answer_requires_correction(self, progress):
        result = runner.invoke(app, ["practice"], input="7\n3\n1\nq\n")

        assert result.exit_code == 0
        assert "7 is wrong." in result.output

        engine = progress.load()
        assert engine.total_wrong() == 1
        assert engine.total_correct() == 0

    def test_non_number_reprompts(self, progress):
        result = runner.invoke(app, ["practice"], input="one\n1\nq\n")

        assert result.exit_code == 0
        assert "Enter a whole number" in result.output
        assert progress.load().total_correct() == 1

    def test_limit_stops_session(self, progress):
        result = runner.invoke(app, ["practice", "--limit", "3"], input="1\n1\n1\n")

        assert result.exit_code == 0
        assert "Session Complete!" in result.output

        engine = progress.load()
        assert engine.total_correct() == 3
        assert engine.unlocked_tables == 2

    def test_end_of_input_ends_session(self, progress):
        result = runner.invoke(app, ["practice"], input="")

        assert result.exit_code == 0
        assert "Session Complete!" in result.output
        assert not progress.exists()


class TestReset:
    def test_reset_with_yes_keeps_backup(self, progress):
        runner.invoke(app, ["practice", "--limit", "1"], input="1\n")
        assert progress.load().total_correct() == 1

        result = runner.invoke(app, ["reset", "--yes"])

        assert result.exit_code == 0
        assert "reset" in result.output
        assert progress.load().total_correct() == 0
        assert len(progress.list_backups()) == 1

    def test_reset_declined(self, progress):
        runner.invoke(app, ["practice", "--limit", "1"], input="1\n")

        result = runner.invoke(app, ["reset"], input="n\n")

        assert result.exit_code == 0
        assert progress.load().total_correct() == 1
