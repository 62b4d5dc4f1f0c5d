"""UTC-focused timestamp parsing and formatting."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

_TIMESTAMP_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[T ](?P<time>\d{2}:\d{2}(?::\d{2})?)(?:\.(?P<fraction>\d+))?)?"
    r"(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def _parse_offset(value: str) -> timezone:
    if value == "Z":
        return timezone.utc
    sign = -1 if value[0] == "-" else 1
    digits = value[1:].replace(":", "")
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(sign * delta)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a PRG date or date-time into an aware UTC datetime truncated to ms.

    Accepts bare dates, date-times with any fractional precision, and an
    optional ``Z`` or numeric offset. Naive values are taken as UTC, and
    bare dates are midnight UTC whatever offset they carry.
    Returns ``None`` for empty input and raises ``ValueError`` otherwise.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"Unrecognised timestamp: {value!r}")

    time_part = match.group("time") or "00:00:00"
    if len(time_part) == 5:
        time_part += ":00"
    fraction = (match.group("fraction") or "").ljust(3, "0")[:3]
    parsed = datetime.fromisoformat(f"{match.group('date')}T{time_part}.{fraction}")

    # A bare date keeps its calendar day; its offset is ignored.
    tz_part = match.group("tz") if match.group("time") else None
    tzinfo = _parse_offset(tz_part) if tz_part else timezone.utc
    return parsed.replace(tzinfo=tzinfo).astimezone(timezone.utc)


def format_timestamp_ms(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
