"""Registry of configured panels, one PanelClient per server."""

import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from config.settings import PANEL_REQUEST_TIMEOUT, PANEL_VERIFY_TLS
from database.models import Server
from panel import BackendEndpoint, PanelClient, PanelConfigError, RequestsRequester

logger = logging.getLogger(__name__)


def default_client_factory(endpoint: BackendEndpoint) -> PanelClient:
    requester = RequestsRequester(timeout=PANEL_REQUEST_TIMEOUT, verify_tls=PANEL_VERIFY_TLS)
    return PanelClient(endpoint, requester)


class ServerRegistry:
    """Active servers and their panel clients.

    Usage:
        with get_db_session() as db:
            registry = ServerRegistry.load(db)
        client = registry.get_client(server_id)
    """

    def __init__(self, servers: List[Server], client_factory: Callable[[BackendEndpoint], PanelClient] = default_client_factory):
        self._servers: Dict[int, Server] = {}
        self._clients: Dict[int, PanelClient] = {}
        for server in servers:
            try:
                self._clients[server.id] = client_factory(server.to_endpoint())
            except PanelConfigError as e:
                logger.error(f"Skipping server {server.name}: {e.message}")
                continue
            self._servers[server.id] = server
            logger.info(f"Initialized panel client for server {server.name} ({server.id})")

    @classmethod
    def load(cls, db: Session, client_factory: Callable[[BackendEndpoint], PanelClient] = default_client_factory) -> "ServerRegistry":
        """Build the registry from every active server in the database."""
        servers = db.query(Server).filter(Server.is_active == True).order_by(Server.id).all()
        if not servers:
            logger.warning("No active servers configured")
        return cls(servers, client_factory)

    def get_servers(self, free_only: bool = False) -> List[Server]:
        servers = list(self._servers.values())
        if free_only:
            return [s for s in servers if s.is_free]
        return servers

    def get_server(self, server_id: int) -> Optional[Server]:
        return self._servers.get(server_id)

    def get_client(self, server_id: int) -> Optional[PanelClient]:
        return self._clients.get(server_id)

    @staticmethod
    def import_servers(db: Session, path: str | Path) -> List[Server]:
        """Insert or update servers from a JSON file.

        The file holds a list of objects with ``name``, ``url``, ``username``,
        ``password`` and optional ``free`` / ``link_host``. Servers are matched
        by name.

        Raises:
            PanelConfigError: If the file is missing, unreadable or an entry is incomplete
        """
        path = Path(path)
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PanelConfigError(f"Cannot read servers file {path}: {e}", e)

        if not isinstance(entries, list):
            raise PanelConfigError(f"Servers file {path} must contain a JSON list")

        imported = []
        for entry in entries:
            missing = [k for k in ("name", "url", "username", "password") if not entry.get(k)]
            if missing:
                raise PanelConfigError(f"Server entry {entry.get('name', '?')} missing: {', '.join(missing)}")

            server = db.query(Server).filter(Server.name == entry["name"]).first()
            if server is None:
                server = Server(name=entry["name"])
                db.add(server)
            server.api_url = entry["url"]
            server.username = entry["username"]
            server.password = entry["password"]
            server.link_host = entry.get("link_host")
            server.is_free = bool(entry.get("free", False))
            server.is_active = bool(entry.get("active", True))
            imported.append(server)

        db.flush()
        logger.info(f"Imported {len(imported)} server(s) from {path}")
        return imported
