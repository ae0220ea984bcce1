"""Share link builders for vmess, vless and shadowsocks inbounds."""

import base64
import json
from typing import Callable, Dict, Optional
from urllib.parse import parse_qsl, quote, unquote, urlparse

from .models import Inbound, Protocol


def _quote_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent, which share-link consumers expect."""
    return quote(value, safe="!~*'()")


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _ws_path(stream: dict) -> str:
    return (stream.get("wsSettings") or {}).get("path") or "/"


def _reality_value(reality: dict, key: str) -> str:
    """Reality client params live at the top level on some forks and under 'settings' on others."""
    value = reality.get(key)
    if value is None:
        value = (reality.get("settings") or {}).get(key)
    return value or ""


def build_vmess_uri(inbound: Inbound, host: str, credential_id: str, email: str, remark: str) -> str:
    """Build a vmess:// link: base64 of the v2rayN JSON config."""
    stream = inbound.stream_settings
    config = {
        "v": "2",
        "ps": remark,
        "add": host,
        "port": inbound.port,
        "id": credential_id,
        "aid": "0",
        "scy": "auto",
        "net": stream.get("network", "tcp"),
        "type": "none",
        "host": "",
        "path": _ws_path(stream),
        "tls": "tls" if stream.get("security") == "tls" else "",
    }
    payload = json.dumps(config, separators=(",", ":"), ensure_ascii=False)
    return "vmess://" + _b64(payload)


def build_vless_uri(inbound: Inbound, host: str, credential_id: str, email: str, remark: str) -> str:
    """Build a vless:// link.

    Query parameters keep a fixed order: type, security (and the Reality
    pbk/fp/sni triple), then path for websocket transports.

    Example:
        vless://U@h:443?type=ws&security=reality&pbk=PBK&fp=chrome&sni=example.com&path=%2Fws#Name
    """
    stream = inbound.stream_settings
    network = stream.get("network", "tcp")
    security = stream.get("security")

    params = [f"type={network}"]
    if security == "tls":
        params.append("security=tls")
    elif security == "reality":
        reality = stream.get("realitySettings") or {}
        server_names = reality.get("serverNames") or [""]
        params.append("security=reality")
        params.append(f"pbk={_reality_value(reality, 'publicKey')}")
        params.append(f"fp={_reality_value(reality, 'fingerprint')}")
        params.append(f"sni={server_names[0]}")
    if network == "ws":
        params.append(f"path={_quote_component(_ws_path(stream))}")

    return f"vless://{credential_id}@{host}:{inbound.port}?{'&'.join(params)}#{_quote_component(remark)}"


def build_shadowsocks_uri(inbound: Inbound, host: str, credential_id: str, email: str, remark: str) -> Optional[str]:
    """Build an ss:// link from the client's configured password.

    Returns None when the inbound has no client with this email.
    """
    client = inbound.find_client_settings(email)
    if client is None:
        return None
    method = inbound.settings.get("method", "")
    secret = client.get("password") or credential_id
    user_info = _b64(f"{method}:{secret}")
    return f"ss://{user_info}@{host}:{inbound.port}#{_quote_component(remark)}"


LinkBuilder = Callable[[Inbound, str, str, str, str], Optional[str]]

LINK_BUILDERS: Dict[Protocol, LinkBuilder] = {
    Protocol.VMESS: build_vmess_uri,
    Protocol.VLESS: build_vless_uri,
    Protocol.SHADOWSOCKS: build_shadowsocks_uri,
}


def build_share_link(inbound: Inbound, host: str, credential_id: str, email: str, remark: str) -> Optional[str]:
    """Dispatch on the inbound's protocol. Unsupported protocols give None."""
    builder = LINK_BUILDERS.get(inbound.kind)
    if builder is None:
        return None
    return builder(inbound, host, credential_id, email, remark)


def parse_vless_uri(uri: str) -> dict:
    """Parse a VLESS URI into its components.

    Args:
        uri: VLESS URI string

    Returns:
        Dictionary with uuid, host, port, params (ordered) and remark

    Raises:
        ValueError: If URI format is invalid
    """
    if not uri.startswith("vless://"):
        raise ValueError("URI must start with 'vless://'")

    # urlparse doesn't handle vless:// well, so we replace it temporarily
    parsed = urlparse(uri.replace("vless://", "https://", 1))

    uuid = parsed.username
    if not uuid:
        raise ValueError("UUID not found in URI")

    host = parsed.hostname
    if not host:
        raise ValueError("Host not found in URI")

    return {
        "uuid": uuid,
        "host": host,
        "port": parsed.port or 443,
        "params": dict(parse_qsl(parsed.query, keep_blank_values=True)),
        "remark": unquote(parsed.fragment) if parsed.fragment else "",
    }
