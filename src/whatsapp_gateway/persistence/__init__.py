"""
Gateway Persistence

SQLAlchemy models and repository for tenant, session and message tables.
"""

from whatsapp_gateway.persistence.models import (
    MessageStatus,
    MessageType,
    ProviderType,
    Tenant,
    WhatsAppMessage,
    WhatsAppSession,
)
from whatsapp_gateway.persistence.repo import WhatsAppRepository

__all__ = [
    "Tenant",
    "WhatsAppSession",
    "WhatsAppMessage",
    "WhatsAppRepository",
    "ProviderType",
    "MessageStatus",
    "MessageType",
]
