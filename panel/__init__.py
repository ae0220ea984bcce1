"""Multi-dialect client for x-ui / 3x-ui style VPN panels.

Usage:
    from panel import BackendEndpoint, PanelClient

    client = PanelClient(BackendEndpoint("https://panel.example.com:2053", "admin", "secret"))
    result = client.add_client(inbound_id=1, email="user_42", expire_days=30)
    print(client.build_link(1, result.credential_id, result.email, "My VPN"))
"""

from .client import PanelClient
from .dialects import DIALECT_ROUTES, DialectProber, OperationKind
from .links import build_share_link, parse_vless_uri
from .models import (
    BackendEndpoint,
    ClientCredential,
    ClientStat,
    Inbound,
    LoginFailure,
    LoginResult,
    PanelConfigError,
    PanelError,
    PanelTransportError,
    ProbeOutcome,
    ProbeStatus,
    Protocol,
    ProvisionFailure,
    ProvisionResult,
    ServerHealth,
)
from .session import SessionManager
from .transport import HttpReply, RequestsRequester

__all__ = [
    # Main client
    "PanelClient",
    "SessionManager",
    "DialectProber",
    "OperationKind",
    "DIALECT_ROUTES",
    # Transport
    "HttpReply",
    "RequestsRequester",
    # Links
    "build_share_link",
    "parse_vless_uri",
    # Data classes
    "BackendEndpoint",
    "ClientCredential",
    "ClientStat",
    "Inbound",
    "Protocol",
    "ServerHealth",
    # Results
    "LoginFailure",
    "LoginResult",
    "ProbeOutcome",
    "ProbeStatus",
    "ProvisionFailure",
    "ProvisionResult",
    # Exceptions
    "PanelError",
    "PanelConfigError",
    "PanelTransportError",
]
