"""Free-form duration parsing ("30", "45m", "1.5hr") into whole minutes."""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass

_DIGITS = re.compile(r"[0-9]+")
_MINUTES = re.compile(r"([0-9]+)\s*(m|min|mins|minute|minutes)")
# Decimals are accepted for hours only.
_HOURS = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*(h|hr|hrs|hour|hours)")

INVALID_MESSAGE = (
    "Invalid duration. Examples: 30, 30min, 45m, 1hr, 0.5hr. Decimals allowed only for hours."
)


@dataclass(frozen=True)
class DurationResult:
    ok: bool
    minutes: int = 0
    message: str = ""

    @classmethod
    def success(cls, minutes: int) -> DurationResult:
        return cls(ok=True, minutes=minutes)

    @classmethod
    def failure(cls, message: str) -> DurationResult:
        return cls(ok=False, message=message)


def _whole_minutes(minutes: int) -> DurationResult:
    if minutes <= 0:
        return DurationResult.failure("Minutes must be > 0.")
    return DurationResult.success(minutes)


def _from_digits(raw: str) -> DurationResult | None:
    if not _DIGITS.fullmatch(raw):
        return None
    return _whole_minutes(int(raw))


def _from_minutes(raw: str) -> DurationResult | None:
    m = _MINUTES.fullmatch(raw)
    if not m:
        return None
    return _whole_minutes(int(m.group(1)))


def _from_hours(raw: str) -> DurationResult | None:
    m = _HOURS.fullmatch(raw)
    if not m:
        return None
    hours = float(m.group(1))
    if not math.isfinite(hours) or hours <= 0:
        return DurationResult.failure("Hours must be > 0.")
    # half-up; round() would send .5 to even
    minutes = math.floor(hours * 60 + 0.5)
    if minutes <= 0:
        return DurationResult.failure("Duration too small.")
    return DurationResult.success(minutes)


_MATCHERS: list[Callable[[str], DurationResult | None]] = [
    _from_digits,
    _from_minutes,
    _from_hours,
]


def parse_duration_to_minutes(text: str) -> DurationResult:
    """Parse *text* into a positive whole number of minutes.

    Bare digits and the minute units (m, min, mins, minute, minutes) take
    integers only; the hour units (h, hr, hrs, hour, hours) also accept a
    decimal and round to the nearest minute. Matching is case-insensitive
    and ignores surrounding whitespace. Never raises.
    """
    raw = (text or "").strip().lower()
    if not raw:
        return DurationResult.failure("Duration is required.")

    for matcher in _MATCHERS:
        result = matcher(raw)
        if result is not None:
            return result

    return DurationResult.failure(INVALID_MESSAGE)
