from __future__ import annotations
from datetime import datetime, timezone, tzinfo
from typing import Optional

DATETIME_TOKEN_LEN = 15     # YYYYMMDDTHHMMSS
DATE_TOKEN_LEN = 8          # YYYYMMDD


def _digits(raw: str, start: int, end: int) -> Optional[int]:
    part = raw[start:end]
    if len(part) != end - start or not part.isdigit():
        return None
    return int(part)


def _local(naive: datetime, tz: Optional[tzinfo]) -> datetime:
    # No tz means the zone the process runs in.
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def decode_ics_datetime(raw: str, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Decode a compact iCalendar DATE or DATE-TIME token.

    ``20260212T100000Z`` is a UTC instant, ``20260212T100000`` is wall-clock
    time in ``tz`` and ``20260212`` is midnight in ``tz``. Any TZID parameter
    the token came with is not consulted. Returns None for anything else.
    """
    raw = raw.strip()

    if len(raw) >= DATETIME_TOKEN_LEN:
        fields = [
            _digits(raw, 0, 4),
            _digits(raw, 4, 6),
            _digits(raw, 6, 8),
            _digits(raw, 9, 11),
            _digits(raw, 11, 13),
            _digits(raw, 13, 15),
        ]
        if any(f is None for f in fields):
            return None
        year, month, day, hour, minute, second = fields
        try:
            naive = datetime(year, month, day, hour, minute, second)
            if raw.endswith("Z"):
                return naive.replace(tzinfo=timezone.utc)
            return _local(naive, tz)
        except (ValueError, OverflowError):
            return None

    if len(raw) >= DATE_TOKEN_LEN:
        year, month, day = _digits(raw, 0, 4), _digits(raw, 4, 6), _digits(raw, 6, 8)
        if year is None or month is None or day is None:
            return None
        try:
            return _local(datetime(year, month, day), tz)
        except (ValueError, OverflowError):
            # Out of range once shifted into the local zone
            return None

    return None
