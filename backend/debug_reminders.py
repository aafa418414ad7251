"""Helper script to check when a booking's 30-minute reminder fires.

Run from the backend directory inside an active virtual environment:
    python debug_reminders.py 2025-12-09 14:00 Asia/Manila [--now 2025-12-09T05:31:00Z]

Prints the booking start in UTC, the reminder window for "now" and whether the
booking would be reminded by a sweep at that instant."""
import argparse
import sys
from datetime import datetime, timedelta, timezone

from app.services.reminder_scheduler import REMINDER_MINUTES_BEFORE, in_reminder_window, reminder_window
from app.utils.timezone import get_timezone_offset, get_user_timezone, local_to_utc, utc_to_local

def _parse_now(value: str | None) -> datetime:
    if not value:
        return datetime.now(tz=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("date", help="booking date, YYYY-MM-DD")
    parser.add_argument("time", help="booking start time, HH:MM")
    parser.add_argument("timezone", nargs="?", default=None, help="host IANA timezone (default Asia/Manila)")
    parser.add_argument("--now", default=None, help="sweep instant, ISO 8601 (default: current time)")
    args = parser.parse_args(argv)

    tz_name = get_user_timezone(args.timezone)
    start_utc = local_to_utc(args.date, args.time, tz_name)
    if start_utc is None:
        print(f"[debug] could not convert {args.date} {args.time} in {tz_name}")
        return 1
    now = _parse_now(args.now)
    window_start, window_end = reminder_window(now)
    print("[debug] timezone:", tz_name, f"(UTC{get_timezone_offset(tz_name, start_utc) / 60:+g}h)")
    print("[debug] start (UTC):", start_utc.isoformat())
    print("[debug] round trip:", utc_to_local(start_utc, tz_name))
    print("[debug] reminder due at (UTC):", (start_utc - timedelta(minutes=REMINDER_MINUTES_BEFORE)).isoformat())
    print("[debug] now (UTC):", now.isoformat())
    print("[debug] window:", window_start.isoformat(), "->", window_end.isoformat())
    print("[debug] minutes until start:", round((start_utc - now).total_seconds() / 60, 2))
    print("[debug] in window:", in_reminder_window(start_utc, now))
    return 0

if __name__ == "__main__":
    sys.exit(main())
