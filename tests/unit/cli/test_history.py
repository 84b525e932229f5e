"""Unit tests for the history command."""

import json

import pytest
from mole.cli.main import app
from mole.core.history import HistoryActionType, HistoryEntry, HistoryStore
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def sample_history_entries() -> list[HistoryEntry]:
    """Create sample history entries, oldest first."""
    return [
        HistoryEntry(
            id="abc123456789",
            timestamp="2026-01-25T10:00:00+00:00",
            action_type=HistoryActionType.CLEAN,
            summary="Cleaned",
            metadata={"freed_bytes": 2048, "system_cleaned": False, "errors": 0},
        ),
        HistoryEntry(
            id="def678901234",
            timestamp="2026-01-26T14:25:00+00:00",
            action_type=HistoryActionType.UNINSTALL,
            summary="Uninstalled Slack",
            metadata={"app": "Slack", "removed": ["/a", "/b"], "failed": []},
        ),
        HistoryEntry(
            id="ghi112233445",
            timestamp="2026-01-26T14:30:00+00:00",
            action_type=HistoryActionType.OPTIMIZE,
            summary="Waiting for Password...",
            success=False,
            metadata={"steps": {"dns": "needs_authorization", "finder": "ok"}},
        ),
    ]


@pytest.fixture
def recorded(sample_history_entries: list[HistoryEntry]) -> list[HistoryEntry]:
    store = HistoryStore()
    for entry in sample_history_entries:
        store.record(entry)
    return sample_history_entries


class TestHistoryCommand:
    """Tests for mole history."""

    def test_history_help(self) -> None:
        """History command shows help."""
        result = runner.invoke(app, ["history", "--help"])
        assert result.exit_code == 0
        assert "--limit" in result.stdout
        assert "--action" in result.stdout
        assert "--json" in result.stdout

    def test_history_empty(self) -> None:
        """History shows a message when no entries exist."""
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "No history entries found" in result.stdout

    @pytest.mark.usefixtures("recorded")
    def test_history_table(self) -> None:
        """The table shows every entry with its details."""
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        for short_id in ("abc12345", "def67890", "ghi11223"):
            assert short_id in result.stdout

    @pytest.mark.usefixtures("recorded")
    def test_history_json_newest_first(self) -> None:
        """JSON output lists entries newest first."""
        result = runner.invoke(app, ["history", "--json"])
        data = json.loads(result.stdout)
        assert [e["id"] for e in data] == ["ghi112233445", "def678901234", "abc123456789"]

    @pytest.mark.usefixtures("recorded")
    def test_history_limit(self) -> None:
        """--limit caps the number of entries."""
        result = runner.invoke(app, ["history", "--json", "-n", "1"])
        assert len(json.loads(result.stdout)) == 1

    @pytest.mark.usefixtures("recorded")
    def test_history_action_filter(self) -> None:
        """--action keeps one kind of operation."""
        result = runner.invoke(app, ["history", "--json", "--action", "uninstall"])
        data = json.loads(result.stdout)
        assert [e["action_type"] for e in data] == ["uninstall"]
