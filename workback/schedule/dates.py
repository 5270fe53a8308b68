"""Calendar-date helpers for ISO `YYYY-MM-DD` strings.

All functions are total: malformed input yields ``None`` / ``""`` rather than
raising. Arithmetic is done on ``datetime.date`` so there is no time-zone or
daylight-saving drift.
"""
from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


def today_iso() -> str:
    """Today's date in UTC."""
    return format_iso(datetime.now(timezone.utc).date())


def parse_iso(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD``; the components must form a real calendar date."""
    if not value or not isinstance(value, str):
        return None
    parts = value.split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
    except ValueError:
        return None
    if year <= 0 or month <= 0 or day <= 0:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        # 2024-02-30, 2024-13-01, 2023-02-29 ...
        return None


def format_iso(value: Optional[date]) -> str:
    if value is None:
        return ""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def diff_days(start_iso: Any, finish_iso: Any) -> Optional[int]:
    """Whole days from start to finish, or None if either side is invalid."""
    start = parse_iso(start_iso)
    finish = parse_iso(finish_iso)
    if start is None or finish is None:
        return None
    return round((finish - start).total_seconds() / 86400)


def days_until(target: date, today: date) -> int:
    return math.ceil((target - today).total_seconds() / 86400)


def clamp_int(value: Any, fallback: int = 0) -> int:
    """Truncate toward zero; anything non-numeric yields ``fallback``."""
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return math.trunc(number)
