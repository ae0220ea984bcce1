"""Database package: panel servers and issued keys."""

from .models import (
    Base,
    Key,
    Server,
)
from .connection import (
    init_db,
    get_db,
    get_db_session,
    init_test_db,
)

__all__ = [
    # Models
    "Base",
    "Key",
    "Server",
    # Connection
    "init_db",
    "get_db",
    "get_db_session",
    "init_test_db",
]
