"""
Tests for the reorder CLI against in-memory and mocked PostgreSQL stores.
"""

import json
from unittest.mock import MagicMock

import psycopg
import pytest
from typer.testing import CliRunner

from cli.commands import _common
from cli.commands.inspect import _plans
from cli.main import app
from reorder.core.revision import RevisionTuple, RevType
from reorder.replay.engine import DeletePolicy
from reorder.store.memory_store import MemoryAuditStore
from reorder.store.postgres_store import PostgresAuditStore

runner = CliRunner()

I, U = RevType.INSERT, RevType.UPDATE


def _row(entity_id, rev, content, rev_type, order_id=None):
    return RevisionTuple(rev=rev, entity_id=entity_id, content=content, rev_type=rev_type, order_id=order_id)


@pytest.fixture
def store(monkeypatch):
    """Entity 1 is corrupt, entity 2 needs two INSERT corrections."""
    for key in ("REORDER_DATABASE_URL", "REORDER_FETCH_SIZE", "REORDER_DELETE_POLICY", "REORDER_TABLE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("REORDER_LOG_LEVEL", "CRITICAL")

    memory = MemoryAuditStore([
        _row(1, 1, "A", I),
        _row(1, 1, "B", I),
        _row(1, 2, "X", U),
        _row(2, 1, "a", I),
        _row(2, 1, "b", I),
    ])
    monkeypatch.setattr(_common, "open_store", lambda settings: memory)
    return memory


def test_run_json_commits(store):
    result = runner.invoke(app, ["run", "--json"])

    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["committed"] is True
    assert output["entities"] == 2
    assert output["manual_fix_entities"] == [1]
    assert output["outcomes"]["corrupt"] == 1
    assert [r["entity_id"] for r in output["reports"]] == [1, 2]
    assert store.commits == 1
    assert store.order_of(2, 1, "b", I, committed=True) == 1


def test_run_text_output(store):
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0
    assert "Reconciliation committed" in result.stdout
    assert "Entities needing manual fix" in result.stdout


def test_run_dry_run(store):
    result = runner.invoke(app, ["run", "--dry-run", "--json"])

    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["dry_run"] is True
    assert output["committed"] is False
    assert store.commits == 0
    assert store.order_of(2, 1, "a", I) is None


def test_run_single_entity(store):
    result = runner.invoke(app, ["run", "--entity", "2", "--json"])

    assert result.exit_code == 0
    assert [r["entity_id"] for r in json.loads(result.stdout)["reports"]] == [2]


def test_run_strict_exits_on_manual_fix(store):
    result = runner.invoke(app, ["run", "--strict", "--json"])

    assert result.exit_code == 1
    assert store.commits == 1


def test_run_rejects_unknown_delete_policy(store):
    result = runner.invoke(app, ["run", "--delete-policy", "renumber"])

    assert result.exit_code == 2
    assert store.commits == 0


def test_run_bad_environment_exits_2(store, monkeypatch):
    monkeypatch.setenv("REORDER_FETCH_SIZE", "0")

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 2


def test_unexpected_rev_type_aborts_run(store):
    store.rows.append(_row(2, 2, "c", 9))

    result = runner.invoke(app, ["run", "--json"])

    assert result.exit_code == 2
    output = json.loads(result.stdout)
    assert output["committed"] is False
    assert "revType" in output["error"]
    assert store.commits == 0
    assert store.order_of(2, 1, "a", I) is None


def test_candidates_json(store):
    result = runner.invoke(app, ["candidates", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"candidates": [1, 2], "count": 2}


def test_candidates_limit(store):
    result = runner.invoke(app, ["candidates", "--limit", "1", "--json"])

    assert json.loads(result.stdout)["candidates"] == [1]


def test_inspect_compare_json(store):
    result = runner.invoke(app, ["inspect", "2", "--compare", "--json"])

    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output["revisions"] == 2
    assert set(output["plans"]) == {"history", "rescan"}
    assert output["plans"]["history"]["outcome"] == "corrected"
    assert [c["content"] for c in output["plans"]["history"]["corrections"]] == ["a", "b"]
    # Inspect never writes
    assert store.order_of(2, 1, "a", I) is None


def test_inspect_text(store):
    result = runner.invoke(app, ["inspect", "1", "--compare"])

    assert result.exit_code == 0
    assert "Delete policies agree" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "Reorder CLI" in result.stdout


@pytest.fixture
def unreachable_store(monkeypatch):
    """PostgreSQL store whose every query fails at the driver level."""
    monkeypatch.setenv("REORDER_LOG_LEVEL", "CRITICAL")
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    cursor.execute.side_effect = psycopg.OperationalError("server closed the connection")
    monkeypatch.setattr(_common, "open_store", lambda settings: PostgresAuditStore(conn))
    return conn


def test_inspect_database_failure_exits_2(unreachable_store):
    result = runner.invoke(app, ["inspect", "1", "--json"])

    assert result.exit_code == 2
    assert "server closed the connection" in json.loads(result.stdout)["error"]


def test_candidates_database_failure_exits_2(unreachable_store):
    result = runner.invoke(app, ["candidates", "--json"])

    assert result.exit_code == 2
    assert "error" in json.loads(result.stdout)


def test_run_header_shows_settings_without_password(store, monkeypatch):
    monkeypatch.setenv("PGPASSWORD", "hunter2")

    result = runner.invoke(app, ["run", "--dry-run"])

    assert result.exit_code == 0
    assert "Database:" in result.stdout
    assert "ptgrid.addresslines_aud" in result.stdout
    assert "hunter2" not in result.stdout


def test_inspect_plans_do_not_log_corrections(caplog):
    """Planned corrections are never written, so they stay out of the correction log."""
    caplog.set_level("INFO")
    revisions = [_row(2, 1, "a", I), _row(2, 1, "b", I)]

    plans = _plans(revisions, [DeletePolicy.HISTORY, DeletePolicy.RESCAN])

    assert len(plans[DeletePolicy.HISTORY].corrections) == 2
    assert [r for r in caplog.records if hasattr(r, "category")] == []
    assert revisions[0].order_id is None
