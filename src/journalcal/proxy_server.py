from __future__ import annotations

import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable

import requests

from .calendar_apple import REQUEST_TIMEOUT_SECONDS, normalize_ics_url

log = logging.getLogger(__name__)

PROXY_PATH = "/api/ical"
USER_AGENT = "Mozilla/5.0 (compatible; Journal-App/1.0)"


def proxy_ical(url: Any, session: requests.Session) -> tuple[int, dict[str, Any]]:
    """Fetch a remote iCal feed on behalf of the browser; returns (status, JSON body)."""
    if not url or not isinstance(url, str):
        return HTTPStatus.BAD_REQUEST, {"error": "Invalid iCal URL"}

    fetch_url = normalize_ics_url(url)
    resp = session.get(fetch_url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT_SECONDS)
    if not resp.ok:
        return resp.status_code, {"error": "Failed to fetch iCal data"}

    return HTTPStatus.OK, {"icsData": resp.text}


class IcalProxyRequestHandler(BaseHTTPRequestHandler):
    session_factory: Callable[[], requests.Session] = requests.Session

    def _send_json(self, status: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self) -> dict[str, Any]:
        content_length = int(self.headers.get("Content-Length", "0"))
        raw = self.rfile.read(content_length) if content_length else b"{}"
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data

    def do_POST(self) -> None:  # noqa: N802
        if self.path != PROXY_PATH:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "not_found"})
            return

        try:
            data = self._read_json()
        except ValueError:
            self._send_json(HTTPStatus.BAD_REQUEST, {"error": "Invalid iCal URL"})
            return

        try:
            status, payload = proxy_ical(data.get("url"), self.server.session)
        except Exception as exc:  # noqa: BLE001
            log.error("iCal proxy error: %s", exc)
            self._send_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "Internal server error"})
            return

        self._send_json(status, payload)


class IcalProxyServer(ThreadingHTTPServer):
    """Threading server sharing one upstream requests session across handlers."""

    def __init__(self, address: tuple[str, int], handler: type[IcalProxyRequestHandler]) -> None:
        super().__init__(address, handler)
        self.session = handler.session_factory()

    def server_close(self) -> None:
        super().server_close()
        self.session.close()


def make_server(
    host: str = "127.0.0.1",
    port: int = 8766,
    handler: type[IcalProxyRequestHandler] = IcalProxyRequestHandler,
) -> IcalProxyServer:
    return IcalProxyServer((host, port), handler)


def run_server(host: str = "127.0.0.1", port: int = 8766) -> None:
    server = make_server(host, port)
    print(f"journalcal iCal proxy listening on http://{host}:{port}{PROXY_PATH}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
