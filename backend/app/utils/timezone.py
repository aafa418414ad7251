"""Timezone helpers for bookings.

Bookings store a civil date ("YYYY-MM-DD") and time ("HH:MM") that are meant in
the host's timezone. These helpers turn that pair into an absolute UTC instant
and back, using the zone rules in effect at that exact civil moment.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_UTC_OFFSET = "+08:00"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def get_user_timezone(user_timezone: str | None = None) -> str:
    """Return the host's zone, or the application default when unset."""
    if user_timezone and user_timezone.strip():
        return user_timezone.strip()
    return DEFAULT_TIMEZONE


def normalize_time(time_str: str | None) -> str:
    """'9' -> '09:00', '9:5' -> '09:05', '14:00:00' -> '14:00'. Empty string for no input."""
    if not isinstance(time_str, str) or not time_str.strip():
        return ""
    parts = time_str.strip().split(":")
    hours = parts[0] or "00"
    minutes = parts[1] if len(parts) > 1 and parts[1] else "00"
    return f"{hours.zfill(2)}:{minutes.zfill(2)}"


def format_time_12h(time_str: str | None) -> str:
    if not time_str:
        return ""
    hours_str, _, minutes_str = time_str.partition(":")
    try:
        hours = int(hours_str)
        minutes = int(minutes_str or "0")
    except ValueError:
        return time_str
    suffix = "PM" if hours >= 12 else "AM"
    hour12 = (hours + 11) % 12 + 1
    return f"{hour12}:{minutes:02d} {suffix}"


def _zone(name: str) -> ZoneInfo | None:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.debug("Unknown timezone %r", name)
        return None


def local_to_utc(date_str: str | None, time_str: str | None, tz_name: str = DEFAULT_TIMEZONE) -> datetime | None:
    """Convert a civil date + time in ``tz_name`` to an aware UTC datetime.

    Returns None for malformed input or an unknown zone instead of raising.
    Wall times repeated by a DST fall-back resolve to their first occurrence;
    wall times skipped by a spring-forward use the offset in effect before the jump.
    """
    if not date_str or not isinstance(date_str, str) or not _DATE_RE.match(date_str):
        return None
    normalized = normalize_time(time_str)
    if not _TIME_RE.match(normalized):
        return None
    tz = _zone(tz_name)
    if tz is None:
        return None
    try:
        naive = datetime.strptime(f"{date_str} {normalized}", "%Y-%m-%d %H:%M")
    except ValueError:
        # e.g. 2025-02-30 or 25:00
        return None
    return naive.replace(tzinfo=tz).astimezone(timezone.utc)


def utc_to_local(instant: datetime, tz_name: str = DEFAULT_TIMEZONE) -> tuple[str, str] | None:
    """Inverse of local_to_utc: ('YYYY-MM-DD', 'HH:MM') of ``instant`` in ``tz_name``."""
    tz = _zone(tz_name)
    if tz is None:
        return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(tz)
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def get_timezone_offset(tz_name: str = DEFAULT_TIMEZONE, instant: datetime | None = None) -> int:
    """UTC offset of ``tz_name`` at ``instant`` in minutes (+480 for UTC+8).

    Falls back to the default zone for unknown names.
    """
    tz = _zone(tz_name) or ZoneInfo(DEFAULT_TIMEZONE)
    instant = instant or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    offset = instant.astimezone(tz).utcoffset()
    return int(offset.total_seconds() // 60) if offset is not None else 0
