"""Configuration package."""

from .settings import (
    PANEL_DB_PATH,
    PANEL_SERVERS_FILE,
    PANEL_REQUEST_TIMEOUT,
    PANEL_VERIFY_TLS,
    LOG_LEVEL,
)

__all__ = [
    'PANEL_DB_PATH',
    'PANEL_SERVERS_FILE',
    'PANEL_REQUEST_TIMEOUT',
    'PANEL_VERIFY_TLS',
    'LOG_LEVEL',
]
