"""Versioned snapshot persistence, export and import.

The snapshot lives in a single key-value slot. Load repairs silently;
import rejects loudly. Both branch on ``version`` before trusting the
payload shape, and both run the payload through ``normalize_payload``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from skillpace.clock import now_local, parse_iso, stamp
from skillpace.models import CURRENT_VERSION, AppData, AppPayload, Session, Skill

logger = logging.getLogger("skillpace.persistence")

STORAGE_KEY = "pa.appData.v1"
BACKUP_PREFIX = "personal-assistant-backup"
INVALID_BACKUP_MESSAGE = f"Invalid backup file format (expected version {CURRENT_VERSION})."

# version -> function mapping a raw snapshot dict of that version to version + 1
UPGRADES: dict[int, Callable[[dict], dict]] = {}


class BackupFormatError(ValueError):
    """An import document is not a snapshot this version can read."""


class Store:
    """Key-value slots backed by one JSON file per key in *data_dir*."""

    def __init__(self, data_dir: str | Path = "."):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Atomically replace the slot's contents."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


# ---------------------------------------------------------------------------
# Payload normalization
# ---------------------------------------------------------------------------


def default_payload() -> AppPayload:
    return AppPayload()


def default_app_data(now: datetime | None = None) -> AppData:
    return AppData(updated_at_iso=stamp(now), payload=default_payload())


def _read_entries(raw: Any, reader: Callable[[dict], Any], kind: str) -> tuple:
    if not isinstance(raw, list):
        return ()
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            logger.warning("Dropping non-object %s entry: %r", kind, item)
            continue
        try:
            entries.append(reader(item))
        except ValueError as exc:
            logger.warning("Dropping unreadable %s entry: %s", kind, exc)
    return tuple(entries)


def normalize_payload(payload: Any) -> AppPayload:
    """Coerce anything payload-shaped into a well-formed ``AppPayload``.

    Supplied keys are overlaid on the default payload; ``skills``,
    ``sessions`` and ``overrides`` that are not lists become empty.
    Never raises. Idempotent.
    """
    if isinstance(payload, AppPayload):
        payload = payload.to_dict()
    if not isinstance(payload, dict):
        return default_payload()

    merged = {**default_payload().to_dict(), **payload}
    overrides = merged.pop("overrides")
    skills = merged.pop("skills")
    sessions = merged.pop("sessions")
    return AppPayload(
        skills=_read_entries(skills, Skill.from_dict, "skill"),
        sessions=_read_entries(sessions, Session.from_dict, "session"),
        overrides=tuple(overrides) if isinstance(overrides, list) else (),
        extras=merged,
    )


# ---------------------------------------------------------------------------
# Versioning
# ---------------------------------------------------------------------------


def _version_of(raw: dict) -> int | None:
    version = raw.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    return version


def upgrade_snapshot(raw: dict) -> dict | None:
    """Step *raw* through ``UPGRADES`` up to the current version.

    Returns None when the version is missing, newer than supported, or has
    no upgrade path.
    """
    version = _version_of(raw)
    if version is None:
        return None
    while version < CURRENT_VERSION:
        step = UPGRADES.get(version)
        if step is None:
            return None
        raw = step(raw)
        new_version = _version_of(raw)
        if new_version is None or new_version <= version:
            return None
        version = new_version
    if version != CURRENT_VERSION:
        return None
    return raw


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def serialize(data: AppData) -> str:
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)


def load_app_data(store: Store, now: datetime | None = None) -> AppData:
    """Read the snapshot, falling back to a fresh default on any problem."""
    try:
        text = store.get_item(STORAGE_KEY)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s, starting fresh: %s", STORAGE_KEY, exc)
        return default_app_data(now)
    if not text:
        return default_app_data(now)

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Corrupt snapshot in %s, starting fresh: %s", STORAGE_KEY, exc)
        return default_app_data(now)

    if not isinstance(raw, dict):
        logger.warning("Snapshot in %s is not an object, starting fresh", STORAGE_KEY)
        return default_app_data(now)

    upgraded = upgrade_snapshot(raw)
    if upgraded is None or not isinstance(upgraded.get("updatedAtIso"), str):
        logger.warning(
            "Snapshot in %s has unsupported version %r or missing fields, starting fresh",
            STORAGE_KEY,
            raw.get("version"),
        )
        return default_app_data(now)

    return AppData(
        updated_at_iso=upgraded["updatedAtIso"],
        payload=normalize_payload(upgraded.get("payload")),
    )


def save_app_data(store: Store, data: AppData, now: datetime | None = None) -> AppData:
    """Stamp, normalize and write *data*. Callers must adopt the returned value."""
    to_save = AppData(updated_at_iso=stamp(now), payload=normalize_payload(data.payload))
    store.set_item(STORAGE_KEY, serialize(to_save))
    logger.debug("Saved snapshot to %s", store.path_for(STORAGE_KEY))
    return to_save


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


def backup_filename(now: datetime | None = None) -> str:
    now = now or now_local()
    return f"{BACKUP_PREFIX}-{now.strftime('%Y-%m-%d_%H-%M')}.json"


def export_backup(data: AppData, dest_dir: str | Path, now: datetime | None = None) -> Path:
    """Write a normalized, freshly stamped copy of *data* and return its path."""
    safe = AppData(updated_at_iso=stamp(now), payload=normalize_payload(data.payload))
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    path = dest / backup_filename(now)
    path.write_text(serialize(safe), encoding="utf-8")
    logger.info("Exported backup to %s", path)
    return path


def parse_backup(text: str) -> AppData:
    """Validate and normalize a backup document. Raises BackupFormatError."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BackupFormatError(f"Backup file is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise BackupFormatError(INVALID_BACKUP_MESSAGE)
    upgraded = upgrade_snapshot(raw)
    if upgraded is None or parse_iso(upgraded.get("updatedAtIso")) is None:
        raise BackupFormatError(INVALID_BACKUP_MESSAGE)

    return AppData(
        updated_at_iso=upgraded["updatedAtIso"],
        payload=normalize_payload(upgraded.get("payload")),
    )


def import_backup(path: str | Path) -> AppData:
    """Read a backup file. The caller decides whether to persist the result."""
    try:
        text = Path(path).read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BackupFormatError(f"Backup file is not UTF-8 text: {exc}") from exc
    data = parse_backup(text)
    logger.info("Imported backup from %s (%d skills)", path, len(data.payload.skills))
    return data
