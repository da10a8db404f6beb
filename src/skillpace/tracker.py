"""Application controller: owns the snapshot and the store handle.

Every command builds a new payload from the current one and commits it;
the saved (stamped, normalized) snapshot becomes the new current value.
A command that fails raises before commit, so the snapshot is never
partially applied.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from skillpace.clock import stamp
from skillpace.completion import SkillProgress, evaluate_all, evaluate_skill
from skillpace.duration import DurationResult, parse_duration_to_minutes
from skillpace.models import AppData, AppPayload, Priority, ScheduleBlock, Session, Skill, Weekday, new_id
from skillpace.persistence import Store, export_backup, import_backup, load_app_data, save_app_data
from skillpace import schedule as sched
from skillpace import sessions as ledger

logger = logging.getLogger("skillpace.tracker")

DEFAULT_PRIORITY = Priority.HIGH
DEFAULT_DAILY_GOAL = 30
DEFAULT_WEEKLY_GOAL = 180


class NotFoundError(KeyError):
    def __init__(self, kind: str, ident: str):
        super().__init__(ident)
        self.kind = kind
        self.ident = ident

    def __str__(self) -> str:
        return f"{self.kind.capitalize()} {self.ident} not found."


def parse_log_minutes(value: int | str) -> int:
    """Whole positive minutes only; raises ValueError for anything else."""
    if isinstance(value, bool):
        raise ValueError("Minutes must be a whole number.")
    if isinstance(value, str):
        raw = value.strip()
        if not re.fullmatch(r"[0-9]+", raw):
            raise ValueError("Minutes must be a whole number.")
        value = int(raw)
    if not isinstance(value, int):
        raise ValueError("Minutes must be a whole number.")
    if value <= 0:
        raise ValueError("Minutes must be > 0.")
    return value


class Tracker:
    def __init__(self, store: Store, data: AppData | None = None):
        self.store = store
        self.data = data if data is not None else load_app_data(store)

    @property
    def payload(self) -> AppPayload:
        return self.data.payload

    def commit(self, data: AppData, now: datetime | None = None) -> AppData:
        self.data = save_app_data(self.store, data, now)
        return self.data

    def _commit_payload(self, payload: AppPayload, now: datetime | None = None) -> AppData:
        return self.commit(replace(self.data, payload=payload), now)

    def save_now(self, now: datetime | None = None) -> AppData:
        return self.commit(self.data, now)

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def get_skill(self, skill_id: str) -> Skill:
        skill = self.payload.skill(skill_id)
        if skill is None:
            raise NotFoundError("skill", skill_id)
        return skill

    def add_skill(self, name: str, now: datetime | None = None) -> Skill | None:
        """Create a skill with default goals and an empty plan. Blank names are ignored."""
        trimmed = name.strip()
        if not trimmed:
            return None
        ts = stamp(now)
        skill = Skill(
            id=new_id(),
            name=trimmed,
            schedule=sched.default_weekly_schedule(),
            priority=DEFAULT_PRIORITY,
            daily_goal_minutes=DEFAULT_DAILY_GOAL,
            weekly_goal_minutes=DEFAULT_WEEKLY_GOAL,
            created_at_iso=ts,
            updated_at_iso=ts,
        )
        self._commit_payload(replace(self.payload, skills=(skill, *self.payload.skills)), now)
        logger.info("Added skill %s (%s)", skill.id, skill.name)
        return skill

    def update_skill(self, skill_id: str, now: datetime | None = None, **changes: Any) -> Skill:
        """Replace the skill with a patched copy and commit."""
        current = self.get_skill(skill_id)
        updated = current.patched(stamp(now), **changes)
        skills = tuple(updated if s.id == skill_id else s for s in self.payload.skills)
        self._commit_payload(replace(self.payload, skills=skills), now)
        return updated

    def delete_skill(self, skill_id: str, now: datetime | None = None) -> None:
        """Remove the skill. Its sessions stay in the ledger."""
        self.get_skill(skill_id)
        skills = tuple(s for s in self.payload.skills if s.id != skill_id)
        self._commit_payload(replace(self.payload, skills=skills), now)
        logger.info("Deleted skill %s", skill_id)

    def set_priority(self, skill_id: str, priority: int | None, now: datetime | None = None) -> Skill:
        return self.update_skill(
            skill_id, now, priority=None if priority is None else Priority(priority)
        )

    def _set_goal(self, skill_id: str, field_name: str, text: str, now: datetime | None) -> DurationResult:
        self.get_skill(skill_id)
        result = parse_duration_to_minutes(text)
        if result.ok:
            self.update_skill(skill_id, now, **{field_name: result.minutes})
        return result

    def set_daily_goal(self, skill_id: str, text: str, now: datetime | None = None) -> DurationResult:
        return self._set_goal(skill_id, "daily_goal_minutes", text, now)

    def set_weekly_goal(self, skill_id: str, text: str, now: datetime | None = None) -> DurationResult:
        return self._set_goal(skill_id, "weekly_goal_minutes", text, now)

    # ------------------------------------------------------------------
    # Schedule blocks
    # ------------------------------------------------------------------

    def add_block(
        self,
        skill_id: str,
        day: Weekday,
        start_time: str = sched.DEFAULT_BLOCK_START,
        minutes: int = sched.DEFAULT_BLOCK_MINUTES,
        now: datetime | None = None,
    ) -> ScheduleBlock:
        skill = self.get_skill(skill_id)
        schedule, block = sched.add_block(skill.schedule, day, start_time, minutes)
        self.update_skill(skill_id, now, schedule=schedule)
        return block

    def update_block(
        self,
        skill_id: str,
        day: Weekday,
        block_id: str,
        start_time: str | None = None,
        minutes: int | None = None,
        now: datetime | None = None,
    ) -> Skill:
        skill = self.get_skill(skill_id)
        try:
            schedule = sched.update_block(skill.schedule, day, block_id, start_time, minutes)
        except KeyError:
            raise NotFoundError("block", block_id) from None
        return self.update_skill(skill_id, now, schedule=schedule)

    def delete_block(self, skill_id: str, day: Weekday, block_id: str, now: datetime | None = None) -> Skill:
        skill = self.get_skill(skill_id)
        try:
            schedule = sched.delete_block(skill.schedule, day, block_id)
        except KeyError:
            raise NotFoundError("block", block_id) from None
        return self.update_skill(skill_id, now, schedule=schedule)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def log_minutes(self, skill_id: str, minutes: int | str, now: datetime | None = None) -> Session:
        self.get_skill(skill_id)
        whole = parse_log_minutes(minutes)
        ts = stamp(now)
        session = Session(id=new_id(), skill_id=skill_id, minutes=whole, started_at_iso=ts, created_at_iso=ts)
        self._commit_payload(ledger.add_session(self.payload, session), now)
        logger.info("Logged %d min for skill %s", whole, skill_id)
        return session

    def delete_session(self, session_id: str, now: datetime | None = None) -> None:
        try:
            payload = ledger.delete_session(self.payload, session_id)
        except KeyError:
            raise NotFoundError("session", session_id) from None
        self._commit_payload(payload, now)

    def sessions_today(self, skill_id: str, now: datetime | None = None) -> list[Session]:
        return ledger.sessions_today_for_skill(self.payload, skill_id, now)

    def minutes_today(self, skill_id: str, now: datetime | None = None) -> int:
        return ledger.minutes_today_for_skill(self.payload, skill_id, now)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def progress(self, skill_id: str, now: datetime | None = None) -> SkillProgress:
        return evaluate_skill(self.payload, self.get_skill(skill_id), now)

    def progress_all(self, now: datetime | None = None) -> list[SkillProgress]:
        return evaluate_all(self.payload, now)

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export(self, dest_dir: str | Path, now: datetime | None = None) -> Path:
        """Save, then write a backup file of the saved snapshot."""
        saved = self.save_now(now)
        return export_backup(saved, dest_dir, now)

    def import_file(self, path: str | Path, now: datetime | None = None) -> AppData:
        """Replace the current snapshot with a backup. On error nothing changes."""
        imported = import_backup(path)
        return self.commit(imported, now)
