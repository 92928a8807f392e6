from __future__ import annotations
import logging
from datetime import date, tzinfo
from typing import List, Optional

import requests

from .errors import CalendarFetchError
from .ics_parser import parse_ics_events
from .models import CalendarEvent

log = logging.getLogger(__name__)

WEBCAL_SCHEME = "webcal://"
REQUEST_TIMEOUT_SECONDS = 15


def normalize_ics_url(url: str) -> str:
    """webcal:// is only a subscription convention; the feed is served over HTTPS."""
    url = url.strip()
    if url.lower().startswith(WEBCAL_SCHEME):
        return "https://" + url[len(WEBCAL_SCHEME):]
    return url


def fetch_apple_events(
    ics_url: str,
    target_date: date,
    proxy_url: str,
    tz: Optional[tzinfo] = None,
    session: Optional[requests.Session] = None,
) -> List[CalendarEvent]:
    """Fetch a subscribed iCal feed through the proxy and return ``target_date``'s events."""
    if session is None:
        with requests.Session() as http:
            return fetch_apple_events(ics_url, target_date, proxy_url, tz=tz, session=http)

    http = session
    feed_url = normalize_ics_url(ics_url)

    try:
        resp = http.post(proxy_url, json={"url": feed_url}, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise CalendarFetchError(f"Failed to fetch iCal data: {exc}") from exc

    if not resp.ok:
        raise CalendarFetchError("Failed to fetch iCal data", status=resp.status_code)

    try:
        payload = resp.json()
    except ValueError as exc:
        raise CalendarFetchError("iCal proxy returned a non-JSON body") from exc

    ics_data = payload.get("icsData") if isinstance(payload, dict) else None
    if not isinstance(ics_data, str):
        raise CalendarFetchError("iCal proxy response has no icsData")

    events = parse_ics_events(ics_data, target_date, tz)
    log.debug("Parsed %d Apple events for %s", len(events), target_date.isoformat())
    return events
