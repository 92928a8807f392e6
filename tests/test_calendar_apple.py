from datetime import date

import pytest
import requests

from journalcal.calendar_apple import fetch_apple_events, normalize_ics_url
from journalcal.errors import CalendarFetchError

PROXY = "http://127.0.0.1:8766/api/ical"

ICS = (
    "BEGIN:VCALENDAR\n"
    "BEGIN:VEVENT\nUID:abc123\nSUMMARY:Dentist\nDTSTART:20260212T100000Z\nDTEND:20260212T110000Z\nEND:VEVENT\n"
    "BEGIN:VEVENT\nUID:other\nSUMMARY:Gym\nDTSTART:20260213T100000Z\nEND:VEVENT\n"
    "END:VCALENDAR\n"
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_normalize_ics_url_rewrites_webcal_scheme():
    assert normalize_ics_url("webcal://p01-caldav.icloud.com/published/2/abc") == (
        "https://p01-caldav.icloud.com/published/2/abc"
    )
    assert normalize_ics_url("https://example.com/cal.ics") == "https://example.com/cal.ics"


def test_posts_https_url_to_proxy_and_parses_target_day():
    session = FakeSession(FakeResponse(payload={"icsData": ICS}))

    events = fetch_apple_events("webcal://example.com/cal.ics", date(2026, 2, 12), PROXY, session=session)

    url, body, timeout = session.posts[0]
    assert url == PROXY
    assert body == {"url": "https://example.com/cal.ics"}
    assert timeout
    assert [(e.id, e.summary, e.source) for e in events] == [("abc123", "Dentist", "apple")]


def test_non_success_proxy_status_raises_fetch_failed():
    session = FakeSession(FakeResponse(status_code=404, payload={"error": "Failed to fetch iCal data"}))

    with pytest.raises(CalendarFetchError) as excinfo:
        fetch_apple_events("https://example.com/cal.ics", date(2026, 2, 12), PROXY, session=session)

    assert excinfo.value.status == 404


@pytest.mark.parametrize(
    "response",
    [FakeResponse(json_error=True), FakeResponse(payload={"error": "x"}), FakeResponse(payload=["BEGIN:VEVENT"])],
)
def test_undecodable_proxy_body_raises_fetch_failed(response):
    with pytest.raises(CalendarFetchError):
        fetch_apple_events("https://example.com/cal.ics", date(2026, 2, 12), PROXY, session=FakeSession(response))


def test_transport_error_raises_fetch_failed():
    session = FakeSession(error=requests.ConnectionError("refused"))

    with pytest.raises(CalendarFetchError):
        fetch_apple_events("https://example.com/cal.ics", date(2026, 2, 12), PROXY, session=session)


def test_default_session_is_closed_after_fetch(monkeypatch):
    created = []

    class ClosingSession(FakeSession):
        def __init__(self):
            super().__init__(FakeResponse(payload={"icsData": ICS}))
            self.closed = False
            created.append(self)

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            self.closed = True

    monkeypatch.setattr("journalcal.calendar_apple.requests.Session", ClosingSession)

    events = fetch_apple_events("https://example.com/cal.ics", date(2026, 2, 12), PROXY)

    assert [e.id for e in events] == ["abc123"]
    assert len(created) == 1
    assert created[0].closed is True
