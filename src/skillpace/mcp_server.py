"""MCP server for skillpace — exposes skill tracking tools to AI assistants."""

from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP

from skillpace.completion import SkillProgress
from skillpace.config import load_settings
from skillpace.duration import parse_duration_to_minutes
from skillpace.models import Priority, Skill, Weekday
from skillpace.persistence import BackupFormatError, Store
from skillpace.schedule import find_block, parse_weekday
from skillpace.tracker import NotFoundError, Tracker

mcp = FastMCP(
    "skillpace",
    instructions="""\
skillpace tracks recurring practice commitments ("skills") against a weekly \
plan. Each skill has a weekly schedule of blocks (start time HH:MM + planned \
minutes per weekday) and a log of sessions (whole minutes actually spent).

Status for today is derived fresh on every call:
- **idle**: no planned block has started yet today.
- **onTrack**: minutes logged today >= minutes planned for blocks already started.
- **overdue**: behind the plan so far.

Goals accept free-form durations: 30, 45m, 1hr, 0.5hr (decimals only for hours). \
Logged session minutes must be whole numbers. Deleting a skill keeps its sessions.

Use get_status for the dashboard, log_minutes after practice, and \
add_block / update_block / delete_block to edit the weekly plan.\
""",
)


def _get_tracker() -> Tracker:
    return Tracker(Store(load_settings().data_dir))


def _skill_to_dict(s: Skill) -> dict:
    d = s.to_dict()
    d["priority"] = None if s.priority is None else int(s.priority)
    return d


def _progress_to_dict(p: SkillProgress) -> dict:
    return {
        "id": p.skill.id,
        "name": p.skill.name,
        "priority": None if p.skill.priority is None else int(p.skill.priority),
        "status": p.status.value,
        "today_minutes": p.today_minutes,
        "expected_minutes_by_now": p.expected_minutes_by_now,
        "daily_goal_minutes": p.skill.daily_goal_minutes,
        "weekly_goal_minutes": p.skill.weekly_goal_minutes,
    }


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def get_status() -> str:
    """Every skill with today's status, sorted by priority then name."""
    tracker = _get_tracker()
    return json.dumps([_progress_to_dict(p) for p in tracker.progress_all()], indent=2)


@mcp.tool()
def get_skill(skill_id: str) -> str:
    """Full details for one skill, including its weekly plan and today's sessions.

    Args:
        skill_id: Skill id
    """
    tracker = _get_tracker()
    try:
        skill = tracker.get_skill(skill_id)
    except NotFoundError as e:
        return f"Error: {e}"
    d = _skill_to_dict(skill)
    d["progress"] = _progress_to_dict(tracker.progress(skill_id))
    d["today_sessions"] = [s.to_dict() for s in tracker.sessions_today(skill_id)]
    return json.dumps(d, indent=2)


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def add_skill(name: str) -> str:
    """Add a new skill with default goals (30m daily, 180m weekly) and an empty plan.

    Args:
        name: Skill name (e.g. "Learn SQL")
    """
    skill = _get_tracker().add_skill(name)
    if skill is None:
        return "Error: skill name is required."
    return f"Added '{skill.name}' as {skill.id}"


@mcp.tool()
def update_skill(
    skill_id: str,
    name: str | None = None,
    priority: int | None = None,
    daily_goal: str | None = None,
    weekly_goal: str | None = None,
) -> str:
    """Update fields of a skill. Only provided fields are changed.

    Args:
        skill_id: Skill id
        name: New name
        priority: 1 (highest) to 4, or 0 to clear
        daily_goal: Duration text, e.g. "45m" or "1hr"
        weekly_goal: Duration text, e.g. "5hrs"
    """
    changes: dict = {}
    for text, field_name in ((daily_goal, "daily_goal_minutes"), (weekly_goal, "weekly_goal_minutes")):
        if text is None:
            continue
        result = parse_duration_to_minutes(text)
        if not result.ok:
            return f"Error: {result.message}"
        changes[field_name] = result.minutes
    if name is not None and name.strip():
        changes["name"] = name.strip()
    if priority is not None:
        if priority not in (0, *Priority):
            return "Error: priority must be 0 (none) or 1-4."
        changes["priority"] = Priority(priority) if priority else None
    if not changes:
        return "Nothing to update."

    try:
        _get_tracker().update_skill(skill_id, **changes)
    except NotFoundError as e:
        return f"Error: {e}"
    return f"Updated {skill_id}."


@mcp.tool()
def delete_skill(skill_id: str) -> str:
    """Delete a skill. Its logged sessions are kept.

    Args:
        skill_id: Skill id
    """
    try:
        _get_tracker().delete_skill(skill_id)
    except NotFoundError as e:
        return f"Error: {e}"
    return f"Deleted {skill_id}."


@mcp.tool()
def log_minutes(skill_id: str, minutes: int) -> str:
    """Log whole minutes spent on a skill just now.

    Args:
        skill_id: Skill id
        minutes: Whole minutes (> 0)
    """
    tracker = _get_tracker()
    try:
        session = tracker.log_minutes(skill_id, minutes)
    except (NotFoundError, ValueError) as e:
        return f"Error: {e}"
    p = tracker.progress(skill_id)
    return f"Logged {session.minutes}m ({session.id}). Today: {p.today_minutes}m, status {p.status.value}."


@mcp.tool()
def delete_session(session_id: str) -> str:
    """Delete a logged session.

    Args:
        session_id: Session id
    """
    try:
        _get_tracker().delete_session(session_id)
    except NotFoundError as e:
        return f"Error: {e}"
    return f"Deleted session {session_id}."


@mcp.tool()
def add_block(skill_id: str, day: str, start_time: str = "06:00", minutes: int = 30) -> str:
    """Append a planned block to a weekday of a skill's weekly plan.

    Args:
        skill_id: Skill id
        day: Weekday (mon, tue, wed, thu, fri, sat, sun)
        start_time: Start time as HH:MM (24h)
        minutes: Planned minutes
    """
    try:
        block = _get_tracker().add_block(skill_id, parse_weekday(day), start_time, minutes)
    except (NotFoundError, ValueError) as e:
        return f"Error: {e}"
    return f"Added block {block.id}"


def _block_day(tracker: Tracker, skill_id: str, block_id: str) -> Weekday:
    found = find_block(tracker.get_skill(skill_id).schedule, block_id)
    if found is None:
        raise NotFoundError("block", block_id)
    return found[0]


@mcp.tool()
def update_block(skill_id: str, block_id: str, start_time: str | None = None, minutes: int | None = None) -> str:
    """Change a block's start time or planned minutes.

    Args:
        skill_id: Skill id
        block_id: Block id
        start_time: New start time HH:MM
        minutes: New planned minutes
    """
    tracker = _get_tracker()
    try:
        tracker.update_block(skill_id, _block_day(tracker, skill_id, block_id), block_id, start_time, minutes)
    except NotFoundError as e:
        return f"Error: {e}"
    return f"Updated block {block_id}."


@mcp.tool()
def delete_block(skill_id: str, block_id: str) -> str:
    """Remove a block from a skill's weekly plan.

    Args:
        skill_id: Skill id
        block_id: Block id
    """
    tracker = _get_tracker()
    try:
        tracker.delete_block(skill_id, _block_day(tracker, skill_id, block_id), block_id)
    except NotFoundError as e:
        return f"Error: {e}"
    return f"Deleted block {block_id}."


@mcp.tool()
def export_backup(dest_dir: str | None = None) -> str:
    """Save and write a timestamped backup file.

    Args:
        dest_dir: Directory for the file (defaults to the configured export dir)
    """
    path = _get_tracker().export(dest_dir or load_settings().export_dir)
    return f"Exported backup to {path}"


@mcp.tool()
def import_backup(path: str) -> str:
    """Replace all data with a backup file.

    Args:
        path: Path to a backup JSON file
    """
    try:
        data = _get_tracker().import_file(path)
    except (BackupFormatError, OSError) as e:
        return f"Error: {e}"
    return f"Imported {len(data.payload.skills)} skill(s) and {len(data.payload.sessions)} session(s)."


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
