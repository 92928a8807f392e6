from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from google_auth_oauthlib.flow import InstalledAppFlow

log = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events.readonly"]


@dataclass
class StoredCredentials:
    google_access_token: str = ""


class GoogleTokenStore:
    """File-backed holder of the Google Calendar access token.

    The token is written on sign-in and removed on sign-out or when the
    Calendar API rejects it.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> StoredCredentials:
        if not self.path.exists():
            return StoredCredentials()
        try:
            data: Dict[str, Any] = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            log.warning("Ignoring unreadable token file %s", self.path)
            return StoredCredentials()
        return StoredCredentials(google_access_token=str(data.get("google_access_token", "")))

    def _save(self, creds: StoredCredentials) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(creds), indent=2), encoding="utf-8")

    def get_google_access_token(self) -> Optional[str]:
        return self._load().google_access_token or None

    def set_google_access_token(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("Access token is required.")
        self._save(StoredCredentials(google_access_token=token))

    def clear_google_access_token(self) -> None:
        if self.path.exists():
            self.path.unlink()
            log.info("Cleared stored Google access token")

    def sign_in(self, client_secrets_path: str) -> str:
        flow = InstalledAppFlow.from_client_secrets_file(client_secrets_path, SCOPES)
        creds = flow.run_local_server(port=0)
        self.set_google_access_token(creds.token)
        return creds.token
