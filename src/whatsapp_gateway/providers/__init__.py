"""
WhatsApp Providers

Provider implementations for the WhatsApp connectors.
Supports the Baileys sidecar, Meta Cloud API and Stub (development).
"""

from whatsapp_gateway.providers.base import (
    ProviderConfig,
    ProviderError,
    ProviderResponse,
    SessionHandle,
    SessionStatus,
    WhatsAppProvider,
)

__all__ = [
    "WhatsAppProvider",
    "ProviderConfig",
    "ProviderError",
    "ProviderResponse",
    "SessionHandle",
    "SessionStatus",
]
