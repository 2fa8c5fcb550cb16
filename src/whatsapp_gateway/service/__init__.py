"""
Gateway services: session reconciliation, outbound messages,
webhook ingestion and tenant onboarding.
"""

from whatsapp_gateway.service.message_service import MessageService
from whatsapp_gateway.service.session_service import SessionService
from whatsapp_gateway.service.tenant_service import TenantService
from whatsapp_gateway.service.webhook_handler import WebhookHandler, verify_challenge

__all__ = [
    "SessionService",
    "MessageService",
    "WebhookHandler",
    "TenantService",
    "verify_challenge",
]
