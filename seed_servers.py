"""Import panel servers from a JSON file into the database."""

import sys

from config.settings import PANEL_SERVERS_FILE
from database.connection import init_db, get_db_session
from services.server_registry import ServerRegistry


def seed_servers(path: str = PANEL_SERVERS_FILE) -> int:
    """Insert or update every server listed in ``path``."""
    init_db()

    with get_db_session() as db:
        servers = ServerRegistry.import_servers(db, path)
        for server in servers:
            print(f"Saved server {server.name} (id={server.id})")
        return len(servers)


if __name__ == "__main__":
    seed_servers(sys.argv[1] if len(sys.argv) > 1 else PANEL_SERVERS_FILE)
