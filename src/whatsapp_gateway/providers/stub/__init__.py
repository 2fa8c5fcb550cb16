"""Stub WhatsApp provider for development."""

from whatsapp_gateway.providers.stub.client import StubWhatsAppProvider

__all__ = ["StubWhatsAppProvider"]
