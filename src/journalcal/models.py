from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict

SOURCE_GOOGLE = "google"
SOURCE_APPLE = "apple"
UNTITLED_EVENT = "Untitled Event"


def isoformat_utc(dt: datetime) -> str:
    # 2026-02-12T10:00:00.000Z
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    summary: str
    start: datetime             # timezone-aware
    end: datetime               # timezone-aware
    source: str                 # "google" / "apple"

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "summary": self.summary,
            "start": isoformat_utc(self.start),
            "end": isoformat_utc(self.end),
            "source": self.source,
        }
