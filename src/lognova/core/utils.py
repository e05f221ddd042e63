"""Common utilities for lognova."""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any


def parse_duration(duration_str: str) -> timedelta:
    """Parse duration string to timedelta.

    Supports formats like: 30s, 5m, 2h, 1d, 1w
    Also supports combinations: 1h30m, 2d12h

    Args:
        duration_str: Duration string

    Returns:
        timedelta object

    Raises:
        ValueError: If format is invalid
    """
    if not duration_str:
        raise ValueError("Duration string cannot be empty")

    pattern = re.compile(r"(\d+)([smhdw])")
    normalized = duration_str.lower()
    matches = pattern.findall(normalized)

    if not matches or pattern.sub("", normalized):
        raise ValueError(f"Invalid duration format: {duration_str}")

    total = timedelta()
    units = {
        "s": "seconds",
        "m": "minutes",
        "h": "hours",
        "d": "days",
        "w": "weeks",
    }

    for value, unit in matches:
        total += timedelta(**{units[unit]: int(value)})

    return total


def parse_time(time_str: str, now: datetime | None = None) -> datetime:
    """Parse time string to datetime.

    Supports:
    - Relative: -1h, -30m, -1d (negative durations from now)
    - ISO format: 2024-01-15T10:30:00Z
    - Date only: 2024-01-15

    Args:
        time_str: Time string
        now: Reference instant for relative values

    Returns:
        datetime object (UTC when no offset was given)

    Raises:
        ValueError: If the string is not a recognised instant
    """
    time_str = time_str.strip()
    if not time_str:
        raise ValueError("Time string cannot be empty")

    if time_str.startswith("-"):
        duration = parse_duration(time_str[1:])
        return (now or datetime.now(timezone.utc)) - duration

    # Try ISO format
    try:
        if time_str.endswith(("Z", "z")):
            return datetime.fromisoformat(time_str[:-1] + "+00:00")
        return ensure_utc(datetime.fromisoformat(time_str))
    except ValueError:
        pass

    # Try date only
    try:
        return datetime.strptime(time_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValueError(f"Invalid time format: {time_str}")


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_epoch_seconds(value: datetime, round_up: bool = False) -> int:
    """Convert a datetime to whole epoch seconds.

    Args:
        value: Instant to convert
        round_up: Round towards the future instead of the past

    Returns:
        Seconds since the Unix epoch
    """
    ts = ensure_utc(value).timestamp()
    return math.ceil(ts) if round_up else math.floor(ts)


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
