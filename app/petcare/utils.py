from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from flask import request


def json_body() -> dict[str, Any]:
    """Request JSON as a dict; anything else (missing, malformed, a list) reads as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_date(value: Any) -> date | None:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    if not value:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    # Stored naive (UTC) like every other timestamp column.
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.replace(tzinfo=None)


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
