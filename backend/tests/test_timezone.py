from datetime import datetime, timezone

import pytest

from app.utils.timezone import (
    DEFAULT_TIMEZONE,
    format_time_12h,
    get_timezone_offset,
    get_user_timezone,
    local_to_utc,
    normalize_time,
    utc_to_local,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_manila_booking_converts_to_utc():
    assert local_to_utc("2025-12-09", "14:00", "Asia/Manila") == utc(2025, 12, 9, 6, 0)


def test_offset_follows_dst_of_the_booking_date():
    # Same wall time, different offsets in winter (EST) and summer (EDT)
    assert local_to_utc("2025-01-15", "09:00", "America/New_York") == utc(2025, 1, 15, 14, 0)
    assert local_to_utc("2025-07-01", "09:00", "America/New_York") == utc(2025, 7, 1, 13, 0)


def test_conversion_crossing_utc_midnight():
    assert local_to_utc("2025-12-09", "07:00", "Asia/Manila") == utc(2025, 12, 8, 23, 0)
    assert local_to_utc("2025-12-09", "20:00", "America/Los_Angeles") == utc(2025, 12, 10, 4, 0)


def test_ambiguous_fall_back_time_uses_first_occurrence():
    # 01:30 happens twice on 2025-11-02 in New York; the first one is still EDT (-4)
    assert local_to_utc("2025-11-02", "01:30", "America/New_York") == utc(2025, 11, 2, 5, 30)


def test_skipped_spring_forward_time_uses_offset_before_jump():
    # 02:30 does not exist on 2025-03-09 in New York
    assert local_to_utc("2025-03-09", "02:30", "America/New_York") == utc(2025, 3, 9, 7, 30)


@pytest.mark.parametrize(
    "zone, day, time_str",
    [
        ("America/New_York", "2025-03-09", "01:59"),  # just before spring-forward
        ("America/New_York", "2025-03-09", "03:00"),  # just after
        ("America/New_York", "2025-11-02", "00:30"),
        ("America/New_York", "2025-11-02", "02:00"),
        ("Australia/Adelaide", "2025-10-05", "03:30"),  # +9:30 -> +10:30
        ("Asia/Kolkata", "2025-06-15", "00:15"),  # +5:30
        ("Asia/Kathmandu", "2025-06-15", "23:50"),  # +5:45
        ("Asia/Manila", "2025-12-31", "23:59"),
        ("Pacific/Kiritimati", "2025-01-01", "00:00"),  # +14
        ("Pacific/Pago_Pago", "2025-02-28", "18:45"),  # -11
        ("America/St_Johns", "2025-08-20", "12:34"),  # -2:30 in summer
        ("UTC", "2024-02-29", "10:00"),
    ],
)
def test_local_utc_round_trip(zone, day, time_str):
    instant = local_to_utc(day, time_str, zone)
    assert instant is not None
    assert instant.tzinfo is not None and instant.utcoffset().total_seconds() == 0
    assert utc_to_local(instant, zone) == (day, time_str)


def test_round_trip_every_quarter_hour_across_dst_day():
    for hour in range(24):
        for minute in (0, 15, 30, 45):
            time_str = f"{hour:02d}:{minute:02d}"
            if time_str.startswith("02:"):
                continue  # wall times that do not exist on this date
            instant = local_to_utc("2025-03-30", time_str, "Europe/Berlin")
            assert utc_to_local(instant, "Europe/Berlin") == ("2025-03-30", time_str)


@pytest.mark.parametrize(
    "date_str, time_str",
    [
        ("2025-1-09", "14:00"),
        ("09-12-2025", "14:00"),
        ("2025-12-09T14:00", "14:00"),
        ("2025-02-30", "10:00"),
        ("2025-13-01", "10:00"),
        ("2025-12-09", "25:00"),
        ("2025-12-09", "10:61"),
        ("2025-12-09", "ten"),
        ("2025-12-09", ""),
        ("2025-12-09", None),
        (None, "10:00"),
        ("", "10:00"),
    ],
)
def test_malformed_input_returns_none(date_str, time_str):
    assert local_to_utc(date_str, time_str, "Asia/Manila") is None


def test_unknown_zone_returns_none():
    assert local_to_utc("2025-12-09", "14:00", "Mars/Olympus_Mons") is None
    assert utc_to_local(utc(2025, 12, 9, 6, 0), "Mars/Olympus_Mons") is None


@pytest.mark.parametrize("zone_dir", ["America", "Asia", "Etc"])
def test_zone_group_names_are_not_zones(zone_dir):
    assert local_to_utc("2025-12-09", "14:00", zone_dir) is None
    assert utc_to_local(utc(2025, 12, 9, 6, 0), zone_dir) is None
    assert get_timezone_offset(zone_dir, utc(2025, 12, 9)) == 480


def test_time_is_normalized_before_conversion():
    assert local_to_utc("2025-12-09", "9", "Asia/Manila") == utc(2025, 12, 9, 1, 0)
    assert local_to_utc("2025-12-09", "9:5", "Asia/Manila") == utc(2025, 12, 9, 1, 5)
    assert local_to_utc("2025-12-09", "14:00:00", "Asia/Manila") == utc(2025, 12, 9, 6, 0)


def test_normalize_time():
    assert normalize_time("9") == "09:00"
    assert normalize_time("9:5") == "09:05"
    assert normalize_time("14:30") == "14:30"
    assert normalize_time("") == ""
    assert normalize_time("   ") == ""
    assert normalize_time(None) == ""


def test_get_user_timezone_falls_back_to_default():
    assert DEFAULT_TIMEZONE == "Asia/Manila"
    assert get_user_timezone(None) == "Asia/Manila"
    assert get_user_timezone("") == "Asia/Manila"
    assert get_user_timezone("Europe/Paris") == "Europe/Paris"


def test_format_time_12h():
    assert format_time_12h("14:00") == "2:00 PM"
    assert format_time_12h("00:15") == "12:15 AM"
    assert format_time_12h("12:05") == "12:05 PM"
    assert format_time_12h("oops") == "oops"
    assert format_time_12h("") == ""


def test_get_timezone_offset():
    assert get_timezone_offset("Asia/Manila", utc(2025, 12, 9)) == 480
    assert get_timezone_offset("Asia/Kolkata", utc(2025, 12, 9)) == 330
    assert get_timezone_offset("America/New_York", utc(2025, 7, 1)) == -240
    assert get_timezone_offset("America/New_York", utc(2025, 1, 1)) == -300
    # unknown zone -> default zone's offset
    assert get_timezone_offset("Nowhere/Land", utc(2025, 12, 9)) == 480
