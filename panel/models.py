"""Data models, result types and exceptions for the panel client."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


# === Exceptions ===

class PanelError(Exception):
    """Base exception for all panel client errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class PanelTransportError(PanelError):
    """Network-level failure talking to the panel (connect error, timeout)."""
    pass


class PanelConfigError(PanelError):
    """Backend configuration is missing or malformed."""
    pass


# === Result taxonomy ===

class LoginFailure(str, Enum):
    """Why a login attempt did not produce a session."""

    REJECTED = "rejected"
    NO_COOKIE = "no_cookie"
    TRANSPORT = "transport"


class ProbeStatus(str, Enum):
    """Outcome kinds of a dialect probe."""

    SUCCESS = "success"
    DEFINITE_FAILURE = "definite_failure"
    SESSION_EXPIRED = "session_expired"
    ALL_DIALECTS_EXHAUSTED = "all_dialects_exhausted"
    TRANSPORT = "transport"


class ProvisionFailure(str, Enum):
    """Reasons an add_client call can fail."""

    REJECTED = "rejected"
    RETRY_NEEDED = "retry_needed"
    NO_COMPATIBLE_ENDPOINT = "no_compatible_endpoint"
    TRANSPORT = "transport"
    LOGIN_FAILED = "login_failed"


class Protocol(str, Enum):
    """Inbound protocols the link synthesizer knows about."""

    VMESS = "vmess"
    VLESS = "vless"
    SHADOWSOCKS = "shadowsocks"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "Protocol":
        """Map a panel protocol string onto the enum; unknown values are OTHER."""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OTHER


@dataclass
class LoginResult:
    """Result of SessionManager.login()."""

    token: Optional[str] = None
    failure: Optional[LoginFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.token is not None


@dataclass
class ProbeOutcome:
    """Result of walking one operation's dialect route list."""

    status: ProbeStatus
    payload: Optional[dict] = None
    message: str = ""
    route: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status is ProbeStatus.SUCCESS


@dataclass(frozen=True)
class ProvisionResult:
    """Terminal result of add_client.

    Build through ok() / failed() so a result is either a full success
    or a failure with a reason, never a mix.
    """

    success: bool
    credential_id: Optional[str] = None
    email: Optional[str] = None
    failure: Optional[ProvisionFailure] = None
    message: str = ""

    @classmethod
    def ok(cls, credential_id: str, email: str) -> "ProvisionResult":
        return cls(success=True, credential_id=credential_id, email=email)

    @classmethod
    def failed(cls, failure: ProvisionFailure, message: str) -> "ProvisionResult":
        return cls(success=False, failure=failure, message=message)


# === Data Classes ===

@dataclass(frozen=True)
class BackendEndpoint:
    """Static connection settings for one panel instance."""

    base_url: str
    username: str
    password: str
    link_host: Optional[str] = None  # client-facing host if it differs from the panel's

    def __post_init__(self):
        if not self.base_url:
            raise PanelConfigError("Backend has no base URL configured")
        if not self.username or self.password is None:
            raise PanelConfigError("Backend credentials are incomplete")
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))


@dataclass
class ClientStat:
    """Usage snapshot of one client, as embedded in an inbound."""

    email: str
    up: int = 0
    down: int = 0
    total: int = 0  # traffic limit in bytes (0 = unlimited)
    expiry_time_ms: int = 0
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "ClientStat":
        return cls(
            email=data.get("email", ""),
            up=data.get("up", 0) or 0,
            down=data.get("down", 0) or 0,
            total=data.get("total", 0) or 0,
            expiry_time_ms=data.get("expiryTime", 0) or 0,
            enabled=bool(data.get("enable", True)),
        )

    @property
    def used_bytes(self) -> int:
        """Upload plus download."""
        return self.up + self.down

    @property
    def used_gb(self) -> float:
        """Used traffic in gigabytes."""
        return self.used_bytes / (1024 * 1024 * 1024)

    @property
    def expires_at(self) -> Optional[datetime]:
        """Expiry as a datetime, None when the client never expires."""
        if self.expiry_time_ms <= 0:
            return None
        return datetime.fromtimestamp(self.expiry_time_ms / 1000)


def _parse_json_field(value: Any) -> dict:
    """Inbound settings arrive as JSON strings on most forks and as objects on a few."""
    if isinstance(value, dict):
        return value
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable inbound settings field: %r", value)
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass
class Inbound:
    """A listening endpoint configured on the panel."""

    id: int
    port: int
    protocol: str
    remark: str = ""
    enabled: bool = True
    settings: dict = field(default_factory=dict)
    stream_settings: dict = field(default_factory=dict)
    client_stats: list = field(default_factory=list)
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Inbound":
        """Create from one entry of the panel's inbound list."""
        return cls(
            id=data.get("id"),
            port=data.get("port"),
            protocol=data.get("protocol", ""),
            remark=data.get("remark", "") or "",
            enabled=bool(data.get("enable", True)),
            settings=_parse_json_field(data.get("settings")),
            stream_settings=_parse_json_field(data.get("streamSettings")),
            client_stats=[ClientStat.from_dict(c) for c in data.get("clientStats") or []],
            raw=data,
        )

    @property
    def kind(self) -> Protocol:
        return Protocol.from_value(self.protocol)

    def matches(self, id_or_port) -> bool:
        """True if the key equals this inbound's id or its port."""
        key = str(id_or_port).strip()
        return key in (str(self.id), str(self.port))

    def find_client_settings(self, email: str) -> Optional[dict]:
        """Client entry from settings.clients with the given email."""
        for client in self.settings.get("clients") or []:
            if client.get("email") == email:
                return client
        return None


@dataclass
class ClientCredential:
    """One client as sent to the panel inside an inbound's settings."""

    id: str
    secret: str
    email: str
    total_bytes: int = 0
    expiry_time_ms: int = 0
    limit_ip: int = 1
    enable: bool = True
    tg_id: str = ""
    sub_id: str = ""

    def to_payload(self) -> dict:
        """Panel-side client object (camelCase keys)."""
        return {
            "id": self.id,
            "password": self.secret,
            "email": self.email,
            "limitIp": self.limit_ip,
            "totalGB": self.total_bytes,
            "expiryTime": self.expiry_time_ms,
            "enable": self.enable,
            "tgId": self.tg_id,
            "subId": self.sub_id,
        }


@dataclass
class ServerHealth:
    """Reachability of one panel."""

    is_healthy: bool
    inbound_count: int = 0
    error_message: Optional[str] = None
