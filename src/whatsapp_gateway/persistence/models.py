"""
WhatsApp Gateway Database Models

Tables:
- tenants: Identity boundary for sessions and messages
- whatsapp_sessions: One WhatsApp connection per tenant + phone number
- whatsapp_messages: All inbound/outbound messages
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB

from whatsapp_gateway.core.db import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProviderType(str, Enum):
    """WhatsApp connector backing a session."""

    BAILEYS = "baileys"
    META_API = "meta_api"


class MessageStatus(str, Enum):
    """Status of a WhatsApp message."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
    RECEIVED = "received"


class MessageType(str, Enum):
    """Types of WhatsApp messages."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    LOCATION = "location"
    STICKER = "sticker"
    UNKNOWN = "unknown"


class TimestampMixin:
    id = Column(Uuid, primary_key=True, default=uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Tenant(Base, TimestampMixin):
    """
    A client of the gateway.

    The client_id is what callers put in the tenant header; the secret hash
    backs the token exchange.
    """

    __tablename__ = "tenants"

    client_id = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    client_secret_hash = Column(Text, nullable=True)
    settings = Column(JSONDocument, nullable=False, default=dict)  # Opaque per-tenant settings
    is_active = Column(Boolean, nullable=False, default=True)


class WhatsAppSession(Base, TimestampMixin):
    """
    A WhatsApp connection for one tenant phone number.

    phone_number is stored normalized (digits only). Updates are guarded
    by the version column: a concurrent writer gets StaleDataError.
    """

    __tablename__ = "whatsapp_sessions"

    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)
    provider_type = Column(String(20), nullable=False, default=ProviderType.BAILEYS.value)
    is_active = Column(Boolean, nullable=False, default=False)
    session_data = Column(JSONDocument, nullable=False, default=dict)  # Provider metadata
    version = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "phone_number", name="uq_whatsapp_sessions_tenant_phone"),
        Index("idx_whatsapp_sessions_tenant_active", "tenant_id", "is_active"),
    )
    __mapper_args__ = {"version_id_col": version}


class WhatsAppMessage(Base, TimestampMixin):
    """
    Stores all WhatsApp messages (inbound and outbound).

    message_id is the identifier assigned by the provider. Versioned like
    sessions so status merges cannot silently overwrite each other.
    """

    __tablename__ = "whatsapp_messages"

    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(
        Uuid, ForeignKey("whatsapp_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id = Column(String(255), nullable=False)
    from_number = Column(String(50), nullable=False)
    to_number = Column(String(50), nullable=False)
    message_type = Column(String(20), nullable=False, default=MessageType.TEXT.value)
    content = Column(JSONDocument, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=MessageStatus.PENDING.value)
    ai_processed = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("message_id", name="uq_whatsapp_messages_message_id"),
        Index("idx_whatsapp_messages_tenant_session", "tenant_id", "session_id"),
        Index("idx_whatsapp_messages_tenant_status", "tenant_id", "status"),
        Index("idx_whatsapp_messages_tenant_created", "tenant_id", "created_at"),
    )
    __mapper_args__ = {"version_id_col": version}
