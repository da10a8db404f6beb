import json

from typer.testing import CliRunner

from skillpace.cli import app
from skillpace.clock import now_local
from skillpace.persistence import STORAGE_KEY, Store
from skillpace.schedule import weekday_for

runner = CliRunner()


def _invoke(data_dir, *args):
    return runner.invoke(app, ["--data-dir", str(data_dir), *args])


def test_skill_lifecycle(tmp_path):
    result = _invoke(tmp_path, "add", "Learn SQL")
    assert result.exit_code == 0, result.stdout
    assert "Added 'Learn SQL'" in result.stdout

    # A block at midnight is always due by now
    today = weekday_for(now_local()).value
    result = _invoke(tmp_path, "block", "add", "learn sql", today, "--start", "00:00", "--minutes", "30")
    assert result.exit_code == 0, result.stdout

    result = _invoke(tmp_path, "show", "Learn SQL")
    assert "overdue" in result.stdout
    assert "00:00 30m" in result.stdout

    result = _invoke(tmp_path, "log", "Learn SQL", "30")
    assert result.exit_code == 0, result.stdout
    assert "on track" in result.stdout

    result = _invoke(tmp_path, "list")
    assert "Learn SQL" in result.stdout


def test_log_rejects_decimals(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    result = _invoke(tmp_path, "log", "Piano", "1.5")
    assert result.exit_code == 1
    assert "whole number" in result.stdout


def test_update_goals_and_priority(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    result = _invoke(tmp_path, "update", "Piano", "--daily-goal", "1.5hr", "--priority", "0")
    assert result.exit_code == 0, result.stdout

    doc = json.loads(Store(tmp_path).get_item(STORAGE_KEY))
    skill = doc["payload"]["skills"][0]
    assert skill["dailyGoalMinutes"] == 90
    assert "priority" not in skill


def test_update_bad_goal_leaves_skill_alone(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    result = _invoke(tmp_path, "update", "Piano", "--name", "Keys", "--weekly-goal", "30.5min")
    assert result.exit_code == 1
    assert "Invalid duration" in result.stdout
    doc = json.loads(Store(tmp_path).get_item(STORAGE_KEY))
    assert doc["payload"]["skills"][0]["name"] == "Piano"


def test_delete_keeps_sessions(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    _invoke(tmp_path, "log", "Piano", "20")
    result = _invoke(tmp_path, "delete", "Piano")
    assert "1 session(s) kept" in result.stdout
    result = _invoke(tmp_path, "orphans")
    assert "20m" in result.stdout


def test_unknown_skill(tmp_path):
    result = _invoke(tmp_path, "log", "Nothing", "10")
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_export_and_import(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    out = tmp_path / "backups"
    result = _invoke(tmp_path, "export", "--dest", str(out))
    assert result.exit_code == 0, result.stdout
    files = list(out.glob("personal-assistant-backup-*.json"))
    assert len(files) == 1

    other = tmp_path / "other"
    result = _invoke(other, "import", str(files[0]))
    assert result.exit_code == 0, result.stdout
    assert "Imported 1 skill(s)" in result.stdout


def test_import_wrong_version(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"version": 2, "updatedAtIso": "2026-10-19T08:00:00", "payload": {}}))
    result = _invoke(tmp_path, "import", str(bad))
    assert result.exit_code == 1
    assert "expected version 1" in result.stdout
    doc = json.loads(Store(tmp_path).get_item(STORAGE_KEY))
    assert doc["payload"]["skills"][0]["name"] == "Piano"


def test_unlog_needs_a_real_session_id(tmp_path):
    _invoke(tmp_path, "add", "Piano")
    _invoke(tmp_path, "log", "Piano", "20")
    result = _invoke(tmp_path, "unlog", "")
    assert result.exit_code == 1
    doc = json.loads(Store(tmp_path).get_item(STORAGE_KEY))
    assert len(doc["payload"]["sessions"]) == 1

    session_id = doc["payload"]["sessions"][0]["id"]
    result = _invoke(tmp_path, "unlog", session_id[:8])
    assert result.exit_code == 0, result.stdout
    doc = json.loads(Store(tmp_path).get_item(STORAGE_KEY))
    assert doc["payload"]["sessions"] == []
