"""
Webhook Handler

Ingests events pushed by the provider process:

- incoming messages, routed to the session of the recipient number
- delivery status updates for previously stored messages

Also answers the subscription handshake used when registering a webhook.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from whatsapp_gateway.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from whatsapp_gateway.persistence.models import MessageStatus, Tenant, WhatsAppMessage
from whatsapp_gateway.persistence.repo import WhatsAppRepository
from whatsapp_gateway.routing.phone import normalize_phone

logger = logging.getLogger(__name__)


def verify_challenge(
    mode: str | None,
    token: str | None,
    challenge: str | None,
    verify_token: str,
) -> str | None:
    """
    Check a webhook subscription handshake.

    Returns:
        The challenge to echo back, or None if the request must be refused
    """
    if mode == "subscribe" and token and token == verify_token and challenge is not None:
        logger.info("Webhook verified successfully")
        return challenge

    logger.warning(f"Webhook verification failed: mode={mode}")
    return None


class WebhookHandler:
    """Persists inbound messages and status updates for a tenant."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WhatsAppRepository(db)

    def handle_incoming_message(
        self,
        tenant: Tenant,
        message_id: str,
        from_number: str,
        to_number: str,
        message_type: str,
        text_content: str | None = None,
        media_url: str | None = None,
        media_mime_type: str | None = None,
        timestamp: datetime | None = None,
    ) -> tuple[WhatsAppMessage, bool]:
        """
        Store an inbound message.

        Returns:
            Tuple of (message, created). created is False when the same
            tenant already stored this message id.
        """
        sender = normalize_phone(from_number)
        recipient = normalize_phone(to_number)
        session = self.repo.get_session(tenant.id, recipient)
        if session is None:
            logger.warning(
                "Incoming message for unknown session",
                extra={"message_id": message_id, "to_number": to_number},
            )
            raise BadRequestError("Session not found for recipient phone number")

        existing = self.repo.get_message_by_message_id(message_id)
        if existing is not None:
            if existing.tenant_id != tenant.id:
                raise ConflictError(f"Message {message_id} already exists")
            logger.info(f"Duplicate incoming message {message_id} ignored")
            return existing, False

        content: dict[str, Any] = {
            "text": text_content,
            "mediaUrl": media_url,
            "mediaMimeType": media_mime_type,
        }

        message = self.repo.create_message(
            tenant_id=tenant.id,
            session_id=session.id,
            message_id=message_id,
            from_number=sender,
            to_number=recipient,
            message_type=message_type,
            content=content,
            status=MessageStatus.RECEIVED,
            timestamp=timestamp,
        )

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Message {message_id} already exists") from e

        logger.info(
            f"Incoming {message_type} message stored",
            extra={"message_id": message_id, "session_id": str(session.id)},
        )
        return message, True

    def handle_status_update(
        self,
        tenant: Tenant,
        message_id: str,
        status: MessageStatus | str,
        timestamp: datetime | None = None,
        error: str | None = None,
    ) -> WhatsAppMessage:
        """Apply a delivery status update to a stored message."""
        message = self.repo.get_message_by_message_id(message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")

        if message.tenant_id != tenant.id:
            logger.warning(
                "Status update for message of another tenant",
                extra={"message_id": message_id},
            )
            raise UnauthorizedError("Message does not belong to tenant")

        self.repo.update_message_status(message, MessageStatus(status), timestamp=timestamp, error=error)
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConflictError(f"Message {message_id} was modified concurrently") from e

        logger.info(
            f"Message {message_id} status updated to {message.status}",
            extra={"message_id": message_id},
        )
        return message
