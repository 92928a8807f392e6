from __future__ import annotations
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional

from .models import CalendarEvent

FIRST_SLOT_HOUR = 5
LATE_NIGHT_SLOT = 19

# 5 AM to 12 AM (midnight) = 20 time slots
SCHEDULE_SLOT_LABELS = [
    "5:00 AM", "6:00 AM", "7:00 AM", "8:00 AM", "9:00 AM", "10:00 AM", "11:00 AM",
    "12:00 PM", "1:00 PM", "2:00 PM", "3:00 PM", "4:00 PM", "5:00 PM",
    "6:00 PM", "7:00 PM", "8:00 PM", "9:00 PM", "10:00 PM", "11:00 PM", "12:00 AM",
]


def slot_index_for_hour(hour: int) -> int:
    if FIRST_SLOT_HOUR <= hour <= 23:
        return hour - FIRST_SLOT_HOUR
    if 0 <= hour < FIRST_SLOT_HOUR:
        # 12 AM through 4:59 AM share the last slot
        return LATE_NIGHT_SLOT
    raise ValueError(f"hour out of range: {hour}")


def slot_label(index: int) -> str:
    return SCHEDULE_SLOT_LABELS[index]


def map_events_to_schedule(
    events: Iterable[CalendarEvent],
    tz: Optional[tzinfo] = None,
) -> Dict[int, List[CalendarEvent]]:
    """Group events by schedule slot using the local hour of their start.

    ``tz`` defaults to the zone the process runs in. Slots without events are
    absent from the result; within a slot events keep their input order.
    """
    by_slot: Dict[int, List[CalendarEvent]] = {}
    for event in events:
        local_start = event.start.astimezone(tz)
        by_slot.setdefault(slot_index_for_hour(local_start.hour), []).append(event)
    return by_slot
