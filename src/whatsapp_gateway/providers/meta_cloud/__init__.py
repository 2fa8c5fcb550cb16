"""Meta Cloud API WhatsApp provider."""

from whatsapp_gateway.providers.meta_cloud.client import MetaCloudProvider

__all__ = ["MetaCloudProvider"]
