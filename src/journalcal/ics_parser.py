from __future__ import annotations
import logging
import re
from datetime import date, datetime, tzinfo
from typing import List, Optional

from .ics_dates import decode_ics_datetime
from .models import SOURCE_APPLE, UNTITLED_EVENT, CalendarEvent

log = logging.getLogger(__name__)

BEGIN_EVENT = "BEGIN:VEVENT"
END_EVENT = "END:VEVENT"


def _field_line(block: str, name: str) -> Optional[re.Match[str]]:
    # NAME:value or NAME;PARAM=...:value, one field per line
    pattern = re.compile(rf"^{re.escape(name)}([;:])(.*)$", re.MULTILINE)
    return pattern.search(block)


def extract_field(block: str, name: str) -> Optional[str]:
    """Return the text value of the first ``name`` line in ``block``, or None."""
    match = _field_line(block, name)
    if match is None:
        return None
    separator, rest = match.group(1), match.group(2)
    if separator == ";":
        # Parameters come first; the value starts after the first colon.
        _, colon, value = rest.partition(":")
        return value.strip() if colon else rest.strip()
    return rest.strip()


def extract_datetime(block: str, name: str, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Decode the ``name`` date/time field of ``block``; None if absent or undecodable."""
    match = _field_line(block, name)
    if match is None:
        return None
    line = match.group(0)
    if ":" not in line:
        return None
    raw = line.rpartition(":")[2].strip()
    if not raw:
        return None
    return decode_ics_datetime(raw, tz)


def _event_blocks(ics_data: str) -> List[str]:
    chunks = ics_data.split(BEGIN_EVENT)
    return [chunk.split(END_EVENT)[0] for chunk in chunks[1:]]


def parse_ics_events(ics_data: str, target_date: date, tz: Optional[tzinfo] = None) -> List[CalendarEvent]:
    """Extract the VEVENTs of an iCalendar payload that start on ``target_date``.

    Blocks are returned in payload order. A block without a decodable DTSTART
    is dropped; every other missing field falls back to a default. Continuation
    lines are not unfolded.

    The day check uses the start's own zone: UTC for "Z" values, ``tz`` for
    floating and TZID values. A 23:30 New York start therefore counts for that
    New York day even though its UTC date is the next one, unlike a plain UTC
    date comparison.
    """
    if isinstance(target_date, datetime):
        target_date = target_date.date()

    events: List[CalendarEvent] = []

    for ordinal, block in enumerate(_event_blocks(ics_data), start=1):
        start = extract_datetime(block, "DTSTART", tz)
        if start is None:
            log.debug("Skipping VEVENT #%d: no decodable DTSTART", ordinal)
            continue

        # Compared in the decoded value's own zone (UTC for "Z" tokens).
        if start.date() != target_date:
            continue

        end = extract_datetime(block, "DTEND", tz) or start
        summary = extract_field(block, "SUMMARY") or UNTITLED_EVENT
        uid = extract_field(block, "UID") or f"apple-{ordinal}"

        events.append(CalendarEvent(
            id=uid,
            summary=summary,
            start=start,
            end=end,
            source=SOURCE_APPLE,
        ))

    return events
