"""Baileys sidecar WhatsApp provider."""

from whatsapp_gateway.providers.baileys.client import BaileysProvider

__all__ = ["BaileysProvider"]
