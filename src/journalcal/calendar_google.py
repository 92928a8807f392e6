from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, List, Optional

import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .credentials import GoogleTokenStore
from .errors import AuthExpiredError, CalendarFetchError
from .models import SOURCE_GOOGLE, UNTITLED_EVENT, CalendarEvent, isoformat_utc

log = logging.getLogger(__name__)


def _day_window(target_date: date, tz: Optional[tzinfo]) -> tuple[datetime, datetime]:
    day_start = datetime.combine(target_date, time.min)
    day_end = day_start + timedelta(days=1) - timedelta(milliseconds=1)
    if tz is None:
        return day_start.astimezone(), day_end.astimezone()
    return day_start.replace(tzinfo=tz), day_end.replace(tzinfo=tz)


def _list_items(service: Any, calendar_id: str, time_min: str, time_max: str) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    page_token: Optional[str] = None
    while True:
        resp = service.events().list(
            calendarId=calendar_id,
            timeMin=time_min,
            timeMax=time_max,
            singleEvents=True,
            orderBy="startTime",
            pageToken=page_token,
        ).execute()
        items.extend(resp.get("items", []))
        page_token = resp.get("nextPageToken")
        if not page_token:
            return items


def _to_event(item: Dict[str, Any]) -> Optional[CalendarEvent]:
    start_obj = item.get("start") or {}
    end_obj = item.get("end") or {}

    # All-day events have "date" not "dateTime"; they have no hourly slot.
    if not start_obj.get("dateTime"):
        return None

    try:
        start = datetime.fromisoformat(start_obj["dateTime"])
        end = datetime.fromisoformat(end_obj["dateTime"]) if end_obj.get("dateTime") else start
    except (TypeError, ValueError):
        return None

    return CalendarEvent(
        id=str(item.get("id", "")),
        summary=item.get("summary") or UNTITLED_EVENT,
        start=start,
        end=end,
        source=SOURCE_GOOGLE,
    )


def fetch_google_events(
    target_date: date,
    access_token: str,
    tz: Optional[tzinfo] = None,
    credential_store: Optional[GoogleTokenStore] = None,
    calendar_id: str = "primary",
) -> List[CalendarEvent]:
    """Fetch the timed Google Calendar events of ``target_date``, ordered by start.

    A 401 clears the token held by ``credential_store`` before raising
    AuthExpiredError.
    """
    day_start, day_end = _day_window(target_date, tz)
    creds = Credentials(token=access_token)
    service = build("calendar", "v3", credentials=creds, cache_discovery=False)

    try:
        items = _list_items(service, calendar_id, isoformat_utc(day_start), isoformat_utc(day_end))
    except HttpError as exc:
        status = int(exc.resp.status)
        if status == 401:
            # The stored token is useless now; drop it so the UI asks for a new sign-in.
            if credential_store is not None:
                credential_store.clear_google_access_token()
            raise AuthExpiredError() from exc
        raise CalendarFetchError("Failed to fetch Google Calendar events", status=status) from exc
    except (httplib2.HttpLib2Error, OSError) as exc:
        raise CalendarFetchError(f"Failed to fetch Google Calendar events: {exc}") from exc

    events: List[CalendarEvent] = []
    for item in items:
        event = _to_event(item)
        if event is None:
            log.debug("Skipping Google item %s without a usable start.dateTime", item.get("id"))
            continue
        events.append(event)
    return events
