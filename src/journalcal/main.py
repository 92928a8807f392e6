from __future__ import annotations

import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Dict, List
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .calendar_apple import fetch_apple_events
from .calendar_google import fetch_google_events
from .config import AppConfig, load_config
from .credentials import GoogleTokenStore
from .errors import AuthExpiredError, CalendarError
from .models import CalendarEvent
from .proxy_server import run_server
from .schedule import SCHEDULE_SLOT_LABELS, map_events_to_schedule

CONFIG_PATH_DEFAULT = "config.yaml"


def _fetch_google(cfg: AppConfig, target_date: date, tz: ZoneInfo, token_store: GoogleTokenStore) -> List[CalendarEvent]:
    if not cfg.google.enabled:
        return []
    token = token_store.get_google_access_token()
    if not token:
        print("Google Calendar enabled but not signed in; run `journalcal sign-in`. Skipping Google.")
        return []
    try:
        # A 401 clears the stored token inside the fetch before AuthExpiredError surfaces here.
        return fetch_google_events(
            target_date,
            token,
            tz=tz,
            credential_store=token_store,
            calendar_id=cfg.google.calendar_id,
        )
    except AuthExpiredError:
        print("Google sign-in expired; run `journalcal sign-in` again. Continuing without Google events.")
    except CalendarError as e:
        print(f"Google Calendar fetch failed; continuing without Google events. Error: {e}")
    return []


def _fetch_apple(cfg: AppConfig, target_date: date, tz: ZoneInfo) -> List[CalendarEvent]:
    if not cfg.apple.enabled:
        return []
    if not cfg.apple.ics_url:
        print("Apple Calendar enabled but no iCal URL configured; skipping Apple.")
        return []
    try:
        return fetch_apple_events(cfg.apple.ics_url, target_date, cfg.apple.proxy_url, tz=tz)
    except CalendarError as e:
        print(f"Apple Calendar fetch failed; continuing without Apple events. Error: {e}")
    return []


def _fetch_events_for_day(
    cfg: AppConfig,
    target_date: date,
    tz: ZoneInfo,
    token_store: GoogleTokenStore,
) -> List[CalendarEvent]:
    # Both sources are independent, so they are fetched side by side.
    with ThreadPoolExecutor(max_workers=2) as pool:
        google = pool.submit(_fetch_google, cfg, target_date, tz, token_store)
        apple = pool.submit(_fetch_apple, cfg, target_date, tz)
        return [*google.result(), *apple.result()]


def _format_schedule(by_slot: Dict[int, List[CalendarEvent]]) -> List[str]:
    lines = []
    for idx, label in enumerate(SCHEDULE_SLOT_LABELS):
        titles = ", ".join(f"{e.summary} [{e.source}]" for e in by_slot.get(idx, []))
        lines.append(f"{label:>8}  {titles}".rstrip())
    return lines


def run_day(config_path: str = CONFIG_PATH_DEFAULT, date_str: str | None = None) -> Dict[int, List[CalendarEvent]]:
    load_dotenv()
    cfg = load_config(config_path)
    tz = ZoneInfo(cfg.timezone)

    target_date = date.fromisoformat(date_str) if date_str else datetime.now(tz=tz).date()
    token_store = GoogleTokenStore(cfg.credentials.token_path)

    events = _fetch_events_for_day(cfg, target_date, tz, token_store)
    by_slot = map_events_to_schedule(events, tz)

    print(f"{target_date.strftime('%A, %B %-d, %Y')}: {len(events)} events")
    for line in _format_schedule(by_slot):
        print(line)
    return by_slot


def main():
    ap = argparse.ArgumentParser(description="Journal calendar schedule")
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    day = sub.add_parser("day", help="Print the hourly schedule for a day")
    day.add_argument("--date", help="YYYY-MM-DD, defaults to today")

    sub.add_parser("sign-in")
    sub.add_parser("sign-out")
    sub.add_parser("proxy", help="Serve the iCal proxy endpoint")

    args = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "day":
        run_day(config_path=args.config, date_str=args.date)
        return

    load_dotenv()
    cfg = load_config(args.config)
    token_store = GoogleTokenStore(cfg.credentials.token_path)

    if args.command == "sign-in":
        if not cfg.google.client_secrets_path:
            ap.error("GOOGLE_CREDENTIALS_JSON is not set")
        token_store.sign_in(cfg.google.client_secrets_path)
        print("Signed in to Google Calendar.")
        return

    if args.command == "sign-out":
        token_store.clear_google_access_token()
        print("Signed out of Google Calendar.")
        return

    if args.command == "proxy":
        run_server(host=cfg.proxy.host, port=cfg.proxy.port)
        return


if __name__ == "__main__":
    main()
