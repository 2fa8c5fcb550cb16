"""
Webhook endpoints

The provider process pushes inbound messages and delivery status updates
here, authenticated as the tenant that owns the session.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response

from whatsapp_gateway.api.deps import get_app_settings, get_current_tenant, get_webhook_handler
from whatsapp_gateway.contracts import IncomingMessageWebhook, MessageStatusUpdateWebhook, WebhookAck
from whatsapp_gateway.core.settings import Settings
from whatsapp_gateway.exceptions import ForbiddenError
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.service import WebhookHandler, verify_challenge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/incoming-message", response_model=WebhookAck)
async def incoming_message(
    webhook: IncomingMessageWebhook,
    tenant: Tenant = Depends(get_current_tenant),
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    logger.info(
        "Received incoming message webhook",
        extra={"message_id": webhook.message_id, "from_number": webhook.from_number},
    )

    _, created = handler.handle_incoming_message(
        tenant,
        message_id=webhook.message_id,
        from_number=webhook.from_number,
        to_number=webhook.to_number,
        message_type=webhook.message_type.value,
        text_content=webhook.text_content,
        media_url=webhook.media_url,
        media_mime_type=webhook.media_mime_type,
        timestamp=webhook.timestamp,
    )

    if not created:
        return WebhookAck(message="Message already received", status="duplicate")
    return WebhookAck(message="Webhook received and processed successfully")


@router.post("/status-update", response_model=WebhookAck)
async def status_update(
    webhook: MessageStatusUpdateWebhook,
    tenant: Tenant = Depends(get_current_tenant),
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    logger.info(
        "Received status update webhook",
        extra={"message_id": webhook.message_id, "status": webhook.status.value},
    )

    handler.handle_status_update(
        tenant,
        message_id=webhook.message_id,
        status=webhook.status,
        timestamp=webhook.timestamp,
        error=webhook.error,
    )
    return WebhookAck(message="Status update processed successfully")


@router.get("/verify")
async def verify_webhook(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
    settings: Settings = Depends(get_app_settings),
):
    """
    Handle webhook subscription verification.

    Echoes hub.challenge when hub.verify_token matches the configured token.
    """
    logger.info(
        "Webhook verification request",
        extra={"mode": hub_mode, "token_received": bool(hub_verify_token)},
    )

    challenge = verify_challenge(hub_mode, hub_verify_token, hub_challenge, settings.WEBHOOK_VERIFY_TOKEN)
    if challenge is None:
        raise ForbiddenError("Verification failed")
    return Response(content=challenge, media_type="text/plain")
