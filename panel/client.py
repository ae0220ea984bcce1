"""Panel client: provisioning, inbound reads and share links for one backend."""

import json
import logging
from typing import Optional, Union
from urllib.parse import urlparse

from .credentials import expiry_timestamp_ms, new_credential_id, secret_for_inbound
from .dialects import DialectProber, OperationKind
from .links import build_share_link
from .models import (
    BackendEndpoint,
    ClientCredential,
    ClientStat,
    Inbound,
    PanelError,
    ProbeStatus,
    ProvisionFailure,
    ProvisionResult,
    ServerHealth,
)
from .session import SessionManager
from .transport import RequestsRequester

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Login failed. Check URL and credentials."
RETRY_MESSAGE = "Session expired. Please try again."
NO_ENDPOINT_MESSAGE = "No compatible endpoint found (all routes returned 404). Check panel version."


class PanelClient:
    """Client for one panel backend of unknown fork/version.

    Every public method returns a value instead of raising on network or
    dialect errors.

    Usage:
        client = PanelClient(BackendEndpoint("https://panel.example.com:2053", "admin", "secret"))
        result = client.add_client(inbound_id=1, email="user_42", expire_days=30)
        if result.success:
            link = client.build_link(1, result.credential_id, result.email, "My VPN")
    """

    def __init__(self, endpoint: BackendEndpoint, requester=None):
        self.endpoint = endpoint
        self.requester = requester or RequestsRequester()
        self.session = SessionManager(endpoint, self.requester)
        self.prober = DialectProber(self.session, self.requester)

    def __repr__(self):
        return f"<PanelClient(base_url={self.endpoint.base_url})>"

    @property
    def link_host(self) -> str:
        """Host written into share links."""
        return self.endpoint.link_host or urlparse(self.endpoint.base_url).hostname or ""

    # === Provisioning ===

    def add_client(
        self,
        inbound_id: int,
        email: str,
        limit_bytes: int = 0,
        expire_days: int = 0,
    ) -> ProvisionResult:
        """Create a client on an inbound.

        Args:
            inbound_id: Target inbound id
            email: Unique client label
            limit_bytes: Traffic limit in bytes (0 = unlimited)
            expire_days: Days until expiry (0 = never)

        Returns:
            ProvisionResult with the credential id on success, or a failure reason
        """
        if not self.session.ensure():
            return ProvisionResult.failed(ProvisionFailure.LOGIN_FAILED, LOGIN_FAILED_MESSAGE)

        credential_id = new_credential_id()
        secret = credential_id
        try:
            secret = secret_for_inbound(self.get_inbound(inbound_id), credential_id)
        except (PanelError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Could not inspect inbound {inbound_id}, using credential id as secret: {e}")

        credential = ClientCredential(
            id=credential_id,
            secret=secret,
            email=email,
            total_bytes=limit_bytes or 0,
            expiry_time_ms=expiry_timestamp_ms(expire_days),
        )
        body = {
            "id": inbound_id,
            "settings": json.dumps({"clients": [credential.to_payload()]}),
        }

        outcome = self.prober.probe(OperationKind.ADD_CLIENT, body=body)

        if outcome.status is ProbeStatus.SUCCESS:
            logger.info(f"Created client {email} on inbound {inbound_id} at {self.endpoint.base_url}")
            return ProvisionResult.ok(credential_id, email)
        if outcome.status is ProbeStatus.DEFINITE_FAILURE:
            logger.warning(f"Panel refused client {email}: {outcome.message}")
            return ProvisionResult.failed(ProvisionFailure.REJECTED, outcome.message)
        if outcome.status is ProbeStatus.SESSION_EXPIRED:
            return ProvisionResult.failed(ProvisionFailure.RETRY_NEEDED, RETRY_MESSAGE)
        if outcome.status is ProbeStatus.ALL_DIALECTS_EXHAUSTED:
            return ProvisionResult.failed(ProvisionFailure.NO_COMPATIBLE_ENDPOINT, NO_ENDPOINT_MESSAGE)
        return ProvisionResult.failed(ProvisionFailure.TRANSPORT, outcome.message)

    def delete_client(self, inbound_id: int, credential_id: str) -> bool:
        """Remove a client. Best effort: True only when the panel confirms."""
        if not self.session.ensure():
            return False

        outcome = self.prober.probe(
            OperationKind.DELETE_CLIENT,
            path_params={"inbound_id": inbound_id, "credential_id": credential_id},
        )
        if outcome.ok:
            logger.info(f"Deleted client {credential_id} from inbound {inbound_id} at {self.endpoint.base_url}")
            return True

        logger.warning(f"Failed to delete client {credential_id} from inbound {inbound_id}: {outcome.message}")
        return False

    # === Inbounds ===

    def list_inbounds(self) -> list[Inbound]:
        """All inbounds on the panel, fetched fresh. Empty on any failure."""
        if not self.session.ensure():
            return []

        outcome = self.prober.probe(OperationKind.LIST_INBOUNDS)
        if not outcome.ok:
            return []

        entries = outcome.payload.get("obj") or []
        return [Inbound.from_dict(entry) for entry in entries if isinstance(entry, dict)]

    def get_inbound(self, id_or_port: Union[int, str]) -> Optional[Inbound]:
        """Find an inbound by id or by port."""
        return next((i for i in self.list_inbounds() if i.matches(id_or_port)), None)

    def get_client_stat(self, email: str) -> Optional[ClientStat]:
        """Usage counters of the client with this email, from any inbound."""
        for inbound in self.list_inbounds():
            for stat in inbound.client_stats:
                if stat.email == email:
                    return stat
        return None

    # === Links ===

    def build_link(
        self,
        inbound: Union[Inbound, int, str],
        credential_id: str,
        email: str,
        display_name: str = "",
    ) -> Optional[str]:
        """Share link for a client.

        Args:
            inbound: Inbound object, or its id / port to look up
            credential_id: Client UUID
            email: Client email (used to find shadowsocks passwords)
            display_name: Link remark, defaults to the email

        Returns:
            Link string, or None if the inbound is missing or its protocol unsupported
        """
        if not isinstance(inbound, Inbound):
            inbound = self.get_inbound(inbound)
        if inbound is None:
            return None

        link = build_share_link(inbound, self.link_host, credential_id, email, display_name or email)
        if link is None:
            logger.info(f"No share link for {email}: protocol {inbound.protocol!r} on inbound {inbound.id}")
        return link

    # === Health ===

    def health_check(self) -> ServerHealth:
        """Check the panel is reachable and answers with an inbound list."""
        self.session.invalidate()  # force a fresh login
        login = self.session.login()
        if not login.ok:
            return ServerHealth(
                is_healthy=False,
                error_message=f"Login failed ({login.failure.value}): {login.detail}",
            )

        outcome = self.prober.probe(OperationKind.LIST_INBOUNDS)
        if not outcome.ok:
            return ServerHealth(
                is_healthy=False,
                error_message=f"Inbound list failed ({outcome.status.value}): {outcome.message}",
            )
        return ServerHealth(is_healthy=True, inbound_count=len(outcome.payload.get("obj") or []))
