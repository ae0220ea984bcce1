"""SQLAlchemy models for panel servers and issued keys."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from panel import BackendEndpoint


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Server(Base):
    """A configured panel backend."""

    __tablename__ = "servers"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    api_url = Column(String(500), nullable=False)
    username = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    link_host = Column(String(255), nullable=True)  # client-facing host, if not the panel host
    is_free = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    keys = relationship("Key", back_populates="server")

    def __repr__(self):
        return f"<Server(id={self.id}, name={self.name}, api_url={self.api_url})>"

    def to_endpoint(self) -> BackendEndpoint:
        """Connection settings for the panel client."""
        return BackendEndpoint(
            base_url=self.api_url,
            username=self.username,
            password=self.password,
            link_host=self.link_host or None,
        )

    @property
    def active_key_count(self) -> int:
        return len([k for k in self.keys if k.is_active])


class Key(Base):
    """A client credential issued on a panel, keyed by owner and server."""

    __tablename__ = "keys"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)  # Telegram id of the owner
    server_id = Column(Integer, ForeignKey("servers.id", ondelete="SET NULL"), nullable=True)
    inbound_id = Column(Integer, nullable=False)
    credential_id = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    link = Column(Text, nullable=True)  # vmess://, vless:// or ss://
    expires_at = Column(DateTime, nullable=True)  # None = never
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    server = relationship("Server", back_populates="keys")

    def __repr__(self):
        return f"<Key(id={self.id}, owner_id={self.owner_id}, email={self.email})>"

    def is_expired_at(self, moment: datetime) -> bool:
        return self.expires_at is not None and moment > self.expires_at

    @property
    def is_expired(self) -> bool:
        """Check if key has expired."""
        return self.is_expired_at(datetime.utcnow())
