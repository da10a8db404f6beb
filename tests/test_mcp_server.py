import json

import pytest

from skillpace import mcp_server
from skillpace.config import ENV_DATA_DIR


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_DATA_DIR, str(tmp_path))
    return tmp_path


def _only_skill():
    return json.loads(mcp_server.get_status())[0]


def test_tools_round_trip():
    assert mcp_server.add_skill("Guitar").startswith("Added 'Guitar'")
    skill_id = _only_skill()["id"]

    assert mcp_server.update_skill(skill_id, daily_goal="45m", priority=1) == f"Updated {skill_id}."
    status = _only_skill()
    assert status["daily_goal_minutes"] == 45
    assert status["priority"] == 1

    assert mcp_server.add_block(skill_id, "wed", "18:00", 20).startswith("Added block")
    block_id = json.loads(mcp_server.get_skill(skill_id))["schedule"]["wed"][0]["id"]
    assert mcp_server.update_block(skill_id, block_id, minutes=40) == f"Updated block {block_id}."
    assert json.loads(mcp_server.get_skill(skill_id))["schedule"]["wed"][0]["minutes"] == 40
    assert mcp_server.delete_block(skill_id, block_id) == f"Deleted block {block_id}."

    assert "Today: 25m" in mcp_server.log_minutes(skill_id, 25)


def test_tool_errors_are_strings():
    assert mcp_server.log_minutes("nope", 10) == "Error: Skill nope not found."
    mcp_server.add_skill("Guitar")
    skill_id = _only_skill()["id"]
    assert mcp_server.update_skill(skill_id, weekly_goal="30.5min").startswith("Error: Invalid duration")
    assert mcp_server.update_skill(skill_id, priority=7) == "Error: priority must be 0 (none) or 1-4."
    assert mcp_server.add_block(skill_id, "someday").startswith("Error: Unknown weekday")


def test_export_and_import_tools(data_dir):
    mcp_server.add_skill("Guitar")
    msg = mcp_server.export_backup(str(data_dir / "out"))
    path = msg.removeprefix("Exported backup to ")
    mcp_server.delete_skill(_only_skill()["id"])
    assert mcp_server.import_backup(path) == "Imported 1 skill(s) and 0 session(s)."
    assert mcp_server.import_backup(str(data_dir / "missing.json")).startswith("Error:")
