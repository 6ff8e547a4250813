from datetime import datetime

from app.petcare.utils import parse_date, parse_datetime, parse_int


def test_parse_datetime_converts_offset_to_utc():
    assert parse_datetime("2026-10-20T10:00:00+02:00") == datetime(2026, 10, 20, 8, 0)
    assert parse_datetime("2026-10-20T01:30:00-05:00") == datetime(2026, 10, 20, 6, 30)


def test_parse_datetime_naive_and_zulu():
    assert parse_datetime("2026-10-20T10:00:00") == datetime(2026, 10, 20, 10, 0)
    assert parse_datetime("2026-10-20T10:00:00Z") == datetime(2026, 10, 20, 10, 0)
    assert parse_datetime("2026-10-20T10:00:00Z").tzinfo is None


def test_parse_datetime_rejects_garbage():
    assert parse_datetime(None) is None
    assert parse_datetime("  ") is None
    assert parse_datetime("next tuesday") is None


def test_parse_date_and_int():
    assert parse_date("2026-10-20T10:00:00Z").isoformat() == "2026-10-20"
    assert parse_int(" 42 ") == 42
    assert parse_int(True) is None
    assert parse_int("4.5") is None
