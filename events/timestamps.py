"""ISO-8601 timestamp helpers shared by capture, matching and feedback."""

from __future__ import annotations

import datetime


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def to_iso(dt: datetime.datetime) -> str:
    """
    Render as ISO-8601 with millisecond precision and a trailing Z for UTC.

    >>> to_iso(datetime.datetime(2024, 1, 14, 11, 0, 5, 123456, tzinfo=datetime.timezone.utc))
    '2024-01-14T11:00:05.123Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    dt = dt.astimezone(datetime.timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime.datetime:
    """
    Parse ISO-8601, accepting a trailing Z. Naive values are taken as UTC.

    >>> parse_iso("2024-01-14T11:00:05Z").isoformat()
    '2024-01-14T11:00:05+00:00'
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def seconds_between(a: str, b: str) -> float:
    return abs((parse_iso(a) - parse_iso(b)).total_seconds())
