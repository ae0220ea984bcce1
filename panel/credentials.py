"""Client secret generation."""

import base64
import secrets
import time
import uuid
from typing import Optional

from .models import Inbound, Protocol

MS_PER_DAY = 24 * 60 * 60 * 1000


def new_credential_id() -> str:
    return str(uuid.uuid4())


def shadowsocks_2022_key(method: str) -> str:
    """Random base64 PSK sized for a 2022-blake3 cipher.

    16 bytes for the 128-bit AES variant, 32 bytes otherwise.
    """
    size = 16 if "128" in method else 32
    return base64.b64encode(secrets.token_bytes(size)).decode("ascii")


def secret_for_inbound(inbound: Optional[Inbound], credential_id: str) -> str:
    """Secret to send for a new client on ``inbound``.

    Shadowsocks 2022 ciphers need a real base64 key; every other protocol
    takes the credential id itself as the password.
    """
    if inbound is None or inbound.kind is not Protocol.SHADOWSOCKS:
        return credential_id
    method = inbound.settings.get("method") or ""
    if "2022" in method:
        return shadowsocks_2022_key(method)
    return credential_id


def expiry_timestamp_ms(expire_days, now_ms: Optional[int] = None) -> int:
    """Absolute expiry in epoch milliseconds, 0 (never) when expire_days is falsy."""
    if not expire_days:
        return 0
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return now_ms + int(expire_days * MS_PER_DAY)
