"""Typer CLI for skillpace."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from skillpace.clock import parse_iso
from skillpace.completion import SkillStatus
from skillpace.config import Settings, configure_logging, load_settings
from skillpace.duration import parse_duration_to_minutes
from skillpace.models import Priority, Skill, Weekday
from skillpace.persistence import STORAGE_KEY, BackupFormatError, Store
from skillpace.schedule import find_block, parse_weekday, planned_minutes
from skillpace.sessions import orphaned_sessions
from skillpace.tracker import NotFoundError, Tracker

app = typer.Typer(
    name="skillpace",
    help="Track recurring practice commitments against a weekly plan.",
    no_args_is_help=True,
)
block_app = typer.Typer(help="Edit a skill's weekly schedule blocks.", no_args_is_help=True)
app.add_typer(block_app, name="block")
console = Console()

_settings: Settings | None = None

PRIORITY_GLYPHS = {
    None: "⚪",
    Priority.CRITICAL: "🔴",
    Priority.HIGH: "🟡",
    Priority.MEDIUM: "🟢",
    Priority.LOW: "🔵",
}

STATUS_STYLES = {
    SkillStatus.IDLE: "[dim]idle[/dim]",
    SkillStatus.ON_TRACK: "[green]on track[/green]",
    SkillStatus.OVERDUE: "[bold red]overdue[/bold red]",
}


def _get_settings() -> Settings:
    return _settings or load_settings()


def _get_tracker() -> Tracker:
    return Tracker(Store(_get_settings().data_dir))


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _complete_skill(incomplete: str) -> list[str]:
    """Shell completion for skills by name."""
    try:
        tracker = _get_tracker()
    except OSError:
        return []
    q = incomplete.lower()
    return [s.name for s in tracker.payload.skills if q in s.name.lower() or s.id.startswith(incomplete)]


def _resolve_skill(tracker: Tracker, ref: str) -> Skill:
    """Find a skill by id, unique id prefix, or case-insensitive name."""
    ref = ref.strip()
    skills = tracker.payload.skills
    exact = [s for s in skills if s.id == ref]
    if exact:
        return exact[0]
    by_name = [s for s in skills if s.name.lower() == ref.lower()]
    if len(by_name) == 1:
        return by_name[0]
    by_prefix = [s for s in skills if s.id.startswith(ref)] if len(ref) >= 4 else []
    if len(by_prefix) == 1:
        return by_prefix[0]
    if len(by_name) > 1 or len(by_prefix) > 1:
        _fail(f"'{ref}' matches more than one skill; use its id.")
    _fail(f"Skill '{ref}' not found.")


def _minutes(m: int | None) -> str:
    return "—" if m is None else f"{m}m"


def _time_only(iso: str) -> str:
    dt = parse_iso(iso)
    return dt.strftime("%H:%M") if dt else iso


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.callback()
def main(
    data_dir: Annotated[Optional[Path], typer.Option("--data-dir", help="Directory holding the snapshot")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    global _settings
    _settings = load_settings(data_dir)
    configure_logging("DEBUG" if verbose else _settings.log_level)


@app.command()
def add(name: str) -> None:
    """Add a new skill with default goals and an empty weekly plan."""
    tracker = _get_tracker()
    skill = tracker.add_skill(name)
    if skill is None:
        _fail("Skill name is required.")
    console.print(f"[green]Added '{skill.name}' ({skill.id[:8]})[/green]")


@app.command("list")
def list_skills() -> None:
    """Dashboard: every skill with today's status."""
    tracker = _get_tracker()
    progress = tracker.progress_all()
    if not progress:
        console.print("No skills yet. Add one with [bold]skillpace add \"Learn SQL\"[/bold].")
        return

    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("", justify="center")
    table.add_column("ID", style="dim")
    table.add_column("Skill", style="bold")
    table.add_column("Status")
    table.add_column("Today", justify="right")
    table.add_column("Due so far", justify="right")
    table.add_column("Daily goal", justify="right")
    table.add_column("Weekly goal", justify="right")
    for p in progress:
        s = p.skill
        table.add_row(
            PRIORITY_GLYPHS[s.priority],
            s.id[:8],
            s.name,
            STATUS_STYLES[p.status],
            f"{p.today_minutes}m",
            f"{p.expected_minutes_by_now}m",
            _minutes(s.daily_goal_minutes),
            _minutes(s.weekly_goal_minutes),
        )
    console.print(table)
    data = tracker.data
    console.print(f"\n  [dim]Last saved: {data.updated_at_iso}[/dim]")


@app.command()
def show(skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)]) -> None:
    """Show goals, weekly plan and today's sessions for one skill."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    p = tracker.progress(s.id)

    priority = "none" if s.priority is None else str(int(s.priority))
    console.print(f"\n[bold]{s.name}[/bold]  {PRIORITY_GLYPHS[s.priority]} {priority}")
    console.print(f"  ID:          {s.id}")
    console.print(f"  Status:      {STATUS_STYLES[p.status]}")
    console.print(f"  Today:       {p.today_minutes}m of {p.expected_minutes_by_now}m due so far")
    console.print(f"  Daily goal:  {_minutes(s.daily_goal_minutes)}")
    console.print(f"  Weekly goal: {_minutes(s.weekly_goal_minutes)}  (planned {planned_minutes(s.schedule)}m)")
    console.print(f"  Updated:     {s.updated_at_iso}")

    console.print("\n  [dim]── Weekly plan ──[/dim]")
    for day in Weekday:
        blocks = s.schedule[day]
        if not blocks:
            console.print(f"  {day.label}  [dim]No blocks[/dim]")
            continue
        chips = "  ".join(f"{b.start_time} {b.minutes}m [dim]({b.id[:8]})[/dim]" for b in blocks)
        console.print(f"  {day.label}  {chips}")

    console.print("\n  [dim]── Today's sessions ──[/dim]")
    todays = tracker.sessions_today(s.id)
    if not todays:
        console.print("  [dim]No sessions logged today.[/dim]")
    for ss in todays:
        console.print(f"  {ss.minutes}m · {_time_only(ss.started_at_iso)}  [dim]({ss.id[:8]})[/dim]")
    console.print()


@app.command()
def update(
    skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)],
    name: Annotated[Optional[str], typer.Option(help="New skill name")] = None,
    priority: Annotated[Optional[int], typer.Option(min=0, max=4, help="1 (highest) to 4, or 0 for none")] = None,
    daily_goal: Annotated[Optional[str], typer.Option(help="Daily goal, e.g. 30, 45m, 1hr")] = None,
    weekly_goal: Annotated[Optional[str], typer.Option(help="Weekly goal, e.g. 180, 3hr")] = None,
) -> None:
    """Update name, priority or goals of a skill."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)

    changes: dict = {}
    for label, text, field_name in (
        ("Daily goal", daily_goal, "daily_goal_minutes"),
        ("Weekly goal", weekly_goal, "weekly_goal_minutes"),
    ):
        if text is None:
            continue
        result = parse_duration_to_minutes(text)
        if not result.ok:
            _fail(f"{label}: {result.message}")
        changes[field_name] = result.minutes

    if name is not None:
        if not name.strip():
            _fail("Skill name is required.")
        changes["name"] = name.strip()
    if priority is not None:
        changes["priority"] = Priority(priority) if priority else None

    if not changes:
        console.print("Nothing to update.")
        return
    updated = tracker.update_skill(s.id, **changes)
    console.print(f"[green]Updated '{updated.name}'.[/green]")


@app.command()
def delete(skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)]) -> None:
    """Delete a skill. Its logged sessions are kept."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    tracker.delete_skill(s.id)
    kept = len(tracker.payload.sessions_for(s.id))
    console.print(f"[green]Deleted '{s.name}'.[/green]")
    if kept:
        console.print(f"  [dim]{kept} session(s) kept in the log.[/dim]")


@app.command()
def log(
    skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)],
    minutes: Annotated[str, typer.Argument(help="Whole minutes, e.g. 20")],
) -> None:
    """Log minutes spent on a skill just now."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    try:
        session = tracker.log_minutes(s.id, minutes)
    except ValueError as e:
        _fail(str(e))
    p = tracker.progress(s.id)
    console.print(f"[green]Logged {session.minutes}m for '{s.name}'.[/green]  Today: {p.today_minutes}m  {STATUS_STYLES[p.status]}")


@app.command()
def unlog(session_id: Annotated[str, typer.Argument(help="Session id (or unique prefix)")]) -> None:
    """Delete a logged session."""
    tracker = _get_tracker()
    ref = session_id.strip()
    matches = [ss for ss in tracker.payload.sessions if ss.id == ref]
    if not matches and len(ref) >= 4:
        matches = [ss for ss in tracker.payload.sessions if ss.id.startswith(ref)]
    if len(matches) != 1:
        _fail(f"Session '{session_id}' not found." if not matches else f"'{session_id}' matches more than one session.")
    tracker.delete_session(matches[0].id)
    console.print(f"[green]Deleted session {matches[0].id[:8]}.[/green]")


@app.command()
def orphans() -> None:
    """List sessions whose skill has been deleted."""
    tracker = _get_tracker()
    found = orphaned_sessions(tracker.payload)
    if not found:
        console.print("No orphaned sessions.")
        return
    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("Session", style="dim")
    table.add_column("Skill id")
    table.add_column("Minutes", justify="right")
    table.add_column("Logged")
    for ss in found:
        table.add_row(ss.id[:8], ss.skill_id, f"{ss.minutes}m", ss.started_at_iso)
    console.print(table)


@app.command()
def save() -> None:
    """Re-save the snapshot now."""
    tracker = _get_tracker()
    data = tracker.save_now()
    console.print(f"[green]Saved.[/green] Last saved: {data.updated_at_iso}")


@app.command()
def export(
    dest: Annotated[Optional[Path], typer.Option("--dest", "-o", help="Directory for the backup file")] = None,
) -> None:
    """Write a timestamped backup file."""
    tracker = _get_tracker()
    path = tracker.export(dest or _get_settings().export_dir)
    console.print(f"[green]Exported backup to {path}[/green]")


@app.command("import")
def import_snapshot(file: Annotated[Path, typer.Argument(help="Backup JSON file")]) -> None:
    """Replace all data with a backup file."""
    tracker = _get_tracker()
    try:
        data = tracker.import_file(file)
    except (BackupFormatError, OSError) as e:
        _fail(f"Error: {e}")
    console.print(
        f"[green]Imported {len(data.payload.skills)} skill(s) and "
        f"{len(data.payload.sessions)} session(s).[/green]"
    )


@app.command()
def where() -> None:
    """Print the snapshot file location."""
    console.print(str(Store(_get_settings().data_dir).path_for(STORAGE_KEY).resolve()))


# ---------------------------------------------------------------------------
# Schedule blocks
# ---------------------------------------------------------------------------


def _weekday(value: str) -> Weekday:
    try:
        return parse_weekday(value)
    except ValueError as e:
        _fail(str(e))


def _locate_block(skill: Skill, block_ref: str) -> tuple[Weekday, str]:
    found = find_block(skill.schedule, block_ref)
    if found is None:
        candidates = [(d, b) for d in Weekday for b in skill.schedule[d] if b.id.startswith(block_ref)]
        if len(candidates) != 1:
            _fail(f"Block '{block_ref}' not found.")
        found = candidates[0]
    day, block = found
    return day, block.id


@block_app.command("add")
def block_add(
    skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)],
    day: Annotated[str, typer.Argument(help="Weekday: mon, tue, ... sun")],
    start: Annotated[str, typer.Option("--start", "-s", help="Start time HH:MM")] = "06:00",
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=0, help="Planned minutes")] = 30,
) -> None:
    """Append a planned block to a weekday."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    wd = _weekday(day)
    block = tracker.add_block(s.id, wd, start, minutes)
    console.print(f"[green]Added {wd.label} {block.start_time} {block.minutes}m to '{s.name}' ({block.id[:8]})[/green]")


@block_app.command("edit")
def block_edit(
    skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)],
    block_id: Annotated[str, typer.Argument(help="Block id (or unique prefix)")],
    start: Annotated[Optional[str], typer.Option("--start", "-s", help="Start time HH:MM")] = None,
    minutes: Annotated[Optional[int], typer.Option("--minutes", "-m", min=0, help="Planned minutes")] = None,
) -> None:
    """Change a block's start time or length."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    wd, bid = _locate_block(s, block_id)
    try:
        tracker.update_block(s.id, wd, bid, start, minutes)
    except NotFoundError as e:
        _fail(str(e))
    console.print(f"[green]Updated block {bid[:8]}.[/green]")


@block_app.command("rm")
def block_rm(
    skill_ref: Annotated[str, typer.Argument(autocompletion=_complete_skill)],
    block_id: Annotated[str, typer.Argument(help="Block id (or unique prefix)")],
) -> None:
    """Remove a block from the weekly plan."""
    tracker = _get_tracker()
    s = _resolve_skill(tracker, skill_ref)
    wd, bid = _locate_block(s, block_id)
    tracker.delete_block(s.id, wd, bid)
    console.print(f"[green]Removed block {bid[:8]} from {wd.label}.[/green]")
