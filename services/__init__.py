"""Services package."""

from .key_service import IssuedKey, KeyService
from .server_registry import ServerRegistry

__all__ = ['IssuedKey', 'KeyService', 'ServerRegistry']
