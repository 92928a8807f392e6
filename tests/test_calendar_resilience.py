from types import SimpleNamespace
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from journalcal.errors import AuthExpiredError, CalendarFetchError
from journalcal.main import _fetch_events_for_day, _format_schedule
from journalcal.models import CalendarEvent
from journalcal.schedule import map_events_to_schedule


class StubTokenStore:
    def __init__(self, token="tok"):
        self.token = token

    def get_google_access_token(self):
        return self.token


def _cfg(google=True, apple=True, ics_url="webcal://example.com/cal.ics"):
    return SimpleNamespace(
        google=SimpleNamespace(enabled=google, calendar_id="primary"),
        apple=SimpleNamespace(enabled=apple, ics_url=ics_url, proxy_url="http://127.0.0.1:8766/api/ical"),
    )


def _event(event_id, source, hour):
    start = datetime(2026, 2, 5, hour, 0, tzinfo=timezone.utc)
    return CalendarEvent(id=event_id, summary=event_id, start=start, end=start, source=source)


def _raise(exc):
    def fail(*_args, **_kwargs):
        raise exc
    return fail


def test_fetch_events_for_day_continues_when_google_fetch_fails(monkeypatch, capsys):
    tz = ZoneInfo("America/Phoenix")
    monkeypatch.setattr("journalcal.main.fetch_google_events", _raise(CalendarFetchError("boom", status=500)))
    monkeypatch.setattr("journalcal.main.fetch_apple_events", lambda *_a, **_k: [_event("a", "apple", 16)])

    events = _fetch_events_for_day(_cfg(), date(2026, 2, 5), tz, StubTokenStore())

    out = capsys.readouterr().out
    assert [e.id for e in events] == ["a"]
    assert "Google Calendar fetch failed; continuing without Google events." in out


def test_fetch_events_for_day_reports_expired_sign_in(monkeypatch, capsys):
    tz = ZoneInfo("America/Phoenix")
    monkeypatch.setattr("journalcal.main.fetch_google_events", _raise(AuthExpiredError()))

    events = _fetch_events_for_day(_cfg(apple=False), date(2026, 2, 5), tz, StubTokenStore())

    assert events == []
    assert "Google sign-in expired" in capsys.readouterr().out


def test_fetch_events_for_day_concatenates_google_then_apple(monkeypatch):
    tz = ZoneInfo("America/Phoenix")
    seen = {}

    def fake_google(target_date, token, tz=None, credential_store=None, calendar_id="primary"):
        seen["google"] = (target_date, token, calendar_id)
        return [_event("g", "google", 17)]

    def fake_apple(ics_url, target_date, proxy_url, tz=None):
        seen["apple"] = (ics_url, target_date)
        return [_event("a", "apple", 16)]

    monkeypatch.setattr("journalcal.main.fetch_google_events", fake_google)
    monkeypatch.setattr("journalcal.main.fetch_apple_events", fake_apple)

    events = _fetch_events_for_day(_cfg(), date(2026, 2, 5), tz, StubTokenStore("tok-1"))

    assert [e.id for e in events] == ["g", "a"]
    assert seen["google"] == (date(2026, 2, 5), "tok-1", "primary")
    assert seen["apple"] == ("webcal://example.com/cal.ics", date(2026, 2, 5))


def test_google_is_skipped_without_stored_token(monkeypatch, capsys):
    monkeypatch.setattr("journalcal.main.fetch_google_events", _raise(AssertionError("should not fetch")))

    events = _fetch_events_for_day(_cfg(apple=False), date(2026, 2, 5), ZoneInfo("UTC"), StubTokenStore(None))

    assert events == []
    assert "not signed in" in capsys.readouterr().out


def test_format_schedule_prints_every_slot():
    tz = ZoneInfo("UTC")
    by_slot = map_events_to_schedule([_event("Dentist", "apple", 10), _event("Call", "google", 1)], tz)

    lines = _format_schedule(by_slot)

    assert len(lines) == 20
    assert lines[5] == "10:00 AM  Dentist [apple]"
    assert lines[19] == "12:00 AM  Call [google]"
    assert lines[0] == " 5:00 AM"
