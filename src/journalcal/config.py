from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
import os

import yaml

@dataclass
class GoogleConfig:
    enabled: bool
    calendar_id: str
    client_secrets_path: str

@dataclass
class AppleConfig:
    enabled: bool
    ics_url: str
    proxy_url: str

@dataclass
class CredentialsConfig:
    token_path: str

@dataclass
class ProxyConfig:
    host: str
    port: int

@dataclass
class AppConfig:
    timezone: str
    google: GoogleConfig
    apple: AppleConfig
    credentials: CredentialsConfig
    proxy: ProxyConfig

def load_config(path: str) -> AppConfig:
    """Load YAML settings; secrets come from GOOGLE_CREDENTIALS_JSON / APPLE_ICS_URL."""
    p = Path(path)
    data: Dict[str, Any] = {}
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    google = data.get("google", {})
    apple = data.get("apple", {})
    credentials = data.get("credentials", {})
    proxy = data.get("proxy", {})

    proxy_host = str(proxy.get("host", "127.0.0.1"))
    proxy_port = int(proxy.get("port", 8766))

    return AppConfig(
        timezone=str(data.get("timezone", "America/New_York")),
        google=GoogleConfig(
            enabled=bool(google.get("enabled", True)),
            calendar_id=str(google.get("calendar_id", "primary")),
            client_secrets_path=os.environ.get("GOOGLE_CREDENTIALS_JSON", ""),
        ),
        apple=AppleConfig(
            enabled=bool(apple.get("enabled", True)),
            ics_url=os.environ.get("APPLE_ICS_URL") or str(apple.get("ics_url", "")),
            proxy_url=str(apple.get("proxy_url", f"http://{proxy_host}:{proxy_port}/api/ical")),
        ),
        credentials=CredentialsConfig(
            token_path=str(credentials.get("token_path", "~/.config/journalcal/google_token.json")),
        ),
        proxy=ProxyConfig(host=proxy_host, port=proxy_port),
    )
