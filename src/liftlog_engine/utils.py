"""Shared utility functions for the liftlog engine."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

DAY = timedelta(days=1)


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def as_number(value: Any) -> float:
    """Coerce a stored numeric field, mapping anything unusable to 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0.0
    return parsed


def half_up(value: float) -> int:
    """Round halves upward (2.5 -> 3), unlike the builtin banker's rounding."""
    return int(math.floor(value + 0.5))


def round2(value: float) -> float:
    return round(value + 0.0, 2)


# ---------------------------------------------------------------------------
# Strength estimation
# ---------------------------------------------------------------------------


def calculate_1rm(kg: Any, reps: Any) -> float:
    """Estimate 1RM with the Epley formula, rounded to whole kg.

    Returns 0 when either input is missing/zero and ``kg`` itself for singles.
    Every e1RM in the engine goes through this function.
    """
    weight = as_number(kg)
    rep_count = as_number(reps)
    if not weight or not rep_count:
        return 0
    if rep_count == 1:
        return weight
    return half_up(weight * (1 + rep_count / 30))


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    """The engine's clock port."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO date/datetime (or date/datetime object) into aware UTC.

    Bare dates map to UTC midnight. Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_now(now: Any) -> datetime:
    if now is None:
        return utc_now()
    parsed = parse_timestamp(now)
    return parsed if parsed is not None else utc_now()


def week_start_key(value: Any) -> str | None:
    """Return the Monday-aligned ISO date (YYYY-MM-DD) of the week containing value."""
    ts = parse_timestamp(value)
    if ts is None:
        return None
    day = ts.date()
    monday = day - timedelta(days=day.weekday())
    return monday.isoformat()


def iso_date(value: Any) -> str | None:
    ts = parse_timestamp(value)
    return ts.date().isoformat() if ts is not None else None
