"""Key issuing, usage lookup and expiry sweeps across panels."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from database.models import Key
from panel import ClientStat, ProvisionFailure, ProvisionResult, ServerHealth

from .server_registry import ServerRegistry

logger = logging.getLogger(__name__)


@dataclass
class IssuedKey:
    """Outcome of KeyService.issue_key."""

    result: ProvisionResult
    key: Optional[Key] = None
    link: Optional[str] = None


class KeyService:
    """Service for issuing and revoking keys on registered panels."""

    @staticmethod
    def generate_email(owner_id: int) -> str:
        """Unique client label: {owner}_{random hex}."""
        return f"{owner_id}_{secrets.token_hex(4)}"

    @staticmethod
    def issue_key(
        db: Session,
        registry: ServerRegistry,
        owner_id: int,
        server_id: int,
        inbound_id: int,
        limit_bytes: int = 0,
        expire_days: int = 0,
        remark: Optional[str] = None,
    ) -> IssuedKey:
        """
        Provision a client on a server, build its link and store the key.

        Args:
            db: Database session
            registry: Server registry
            owner_id: Telegram id of the key owner
            server_id: Target server
            inbound_id: Target inbound on that server
            limit_bytes: Traffic limit (0 = unlimited)
            expire_days: Lifetime in days (0 = never expires)
            remark: Link display name (defaults to the server name)

        Returns:
            IssuedKey; key and link are set only on success
        """
        client = registry.get_client(server_id)
        server = registry.get_server(server_id)
        if client is None or server is None:
            return IssuedKey(ProvisionResult.failed(ProvisionFailure.REJECTED, f"Unknown server {server_id}"))

        email = KeyService.generate_email(owner_id)
        result = client.add_client(inbound_id, email, limit_bytes, expire_days)
        if not result.success:
            logger.warning(f"Key for {owner_id} on {server.name} not issued: {result.message}")
            return IssuedKey(result)

        link = client.build_link(inbound_id, result.credential_id, email, remark or server.name)

        key = Key(
            owner_id=owner_id,
            server_id=server.id,
            inbound_id=inbound_id,
            credential_id=result.credential_id,
            email=email,
            link=link,
            expires_at=datetime.utcnow() + timedelta(days=expire_days) if expire_days else None,
            is_active=True,
        )
        db.add(key)
        db.flush()
        logger.info(f"Issued key {key.id} for {owner_id} on {server.name}")
        return IssuedKey(result, key, link)

    @staticmethod
    def get_usage(registry: ServerRegistry, key: Key) -> Optional[ClientStat]:
        client = registry.get_client(key.server_id)
        if client is None:
            return None
        return client.get_client_stat(key.email)

    @staticmethod
    def revoke_key(db: Session, registry: ServerRegistry, key: Key) -> bool:
        """Delete the key on its panel and mark it inactive.

        The key is deactivated locally even if the panel could not be reached.
        """
        client = registry.get_client(key.server_id)
        deleted = False
        if client is not None:
            deleted = client.delete_client(key.inbound_id, key.credential_id)
        else:
            logger.warning(f"Key {key.id} belongs to unknown server {key.server_id}")

        key.is_active = False
        db.flush()
        return deleted

    @staticmethod
    def sweep_expired_keys(db: Session, registry: ServerRegistry, now: Optional[datetime] = None) -> int:
        """
        Revoke every active key past its expiry.

        Returns:
            Number of keys revoked
        """
        now = now or datetime.utcnow()
        expired = db.query(Key).filter(
            Key.is_active == True,
            Key.expires_at.isnot(None),
            Key.expires_at < now,
        ).all()

        for key in expired:
            if not KeyService.revoke_key(db, registry, key):
                logger.warning(f"Panel did not confirm deletion of expired key {key.id}")

        if expired:
            logger.info(f"Swept {len(expired)} expired key(s)")
        return len(expired)

    @staticmethod
    def ping_servers(registry: ServerRegistry) -> Dict[str, ServerHealth]:
        """Health of every registered server, by name."""
        report = {}
        for server in registry.get_servers():
            health = registry.get_client(server.id).health_check()
            if not health.is_healthy:
                logger.warning(f"Server {server.name} unhealthy: {health.error_message}")
            report[server.name] = health
        return report
