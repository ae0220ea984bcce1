"""Configuration settings loader."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BASE_DIR = Path(__file__).parent.parent


def _to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# SQLite file holding servers and issued keys
PANEL_DB_PATH = os.getenv('PANEL_DB_PATH', str(BASE_DIR / "data" / "panel.db"))

# JSON list of panels: [{"name", "url", "username", "password", "free", "link_host"}]
PANEL_SERVERS_FILE = os.getenv('PANEL_SERVERS_FILE', str(BASE_DIR / "config" / "servers.json"))

# Per-request timeout for panel HTTP calls (seconds)
PANEL_REQUEST_TIMEOUT = float(os.getenv('PANEL_REQUEST_TIMEOUT', 15))

# Panels usually run on self-signed certificates
PANEL_VERIFY_TLS = _to_bool(os.getenv('PANEL_VERIFY_TLS'), default=False)

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
