"""
Message Service

Outbound messages through a tenant's session, plus message history.

Every send is recorded: a successful send as a ``sent`` row keyed by the
provider message id, a failed one as a ``failed`` row keyed by a local id.
"""

import logging
from typing import Any, Awaitable, Callable
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whatsapp_gateway.exceptions import ConflictError, NotFoundError, SessionInactiveError
from whatsapp_gateway.persistence.models import (
    MessageStatus,
    MessageType,
    Tenant,
    WhatsAppMessage,
    WhatsAppSession,
)
from whatsapp_gateway.persistence.repo import WhatsAppRepository
from whatsapp_gateway.providers.base import ProviderError, ProviderResponse, SessionHandle, WhatsAppProvider
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.routing.phone import normalize_phone

logger = logging.getLogger(__name__)

SendCall = Callable[[WhatsAppProvider, SessionHandle, str], Awaitable[ProviderResponse]]


class MessageService:
    """Sends messages for a tenant and lists stored history."""

    def __init__(self, db: Session, providers: ProviderFactory):
        self.db = db
        self.repo = WhatsAppRepository(db)
        self.providers = providers

    async def send_text(
        self,
        tenant: Tenant,
        from_phone: str,
        to: str,
        text: str,
        reply_to: str | None = None,
    ) -> WhatsAppMessage:
        """Send a text message from one of the tenant's sessions."""
        return await self._dispatch(
            tenant,
            from_phone,
            to,
            MessageType.TEXT,
            {"text": text, "replyTo": reply_to},
            lambda provider, handle, recipient: provider.send_text(handle, recipient, text, reply_to=reply_to),
        )

    async def send_media(
        self,
        tenant: Tenant,
        from_phone: str,
        to: str,
        media_url: str,
        media_type: str,
        caption: str | None = None,
        mime_type: str | None = None,
        file_name: str | None = None,
    ) -> WhatsAppMessage:
        """Send an image, video or document by URL."""
        content = {
            "mediaUrl": media_url,
            "mediaMimeType": mime_type,
            "caption": caption,
            "fileName": file_name,
        }
        return await self._dispatch(
            tenant,
            from_phone,
            to,
            MessageType(media_type),
            content,
            lambda provider, handle, recipient: provider.send_media(
                handle,
                recipient,
                media_url,
                media_type,
                caption=caption,
                mime_type=mime_type,
                file_name=file_name,
            ),
        )

    async def send_location(
        self,
        tenant: Tenant,
        from_phone: str,
        to: str,
        latitude: float,
        longitude: float,
        name: str | None = None,
        address: str | None = None,
    ) -> WhatsAppMessage:
        content = {"latitude": latitude, "longitude": longitude, "name": name, "address": address}
        return await self._dispatch(
            tenant,
            from_phone,
            to,
            MessageType.LOCATION,
            content,
            lambda provider, handle, recipient: provider.send_location(
                handle, recipient, latitude, longitude, name=name, address=address
            ),
        )

    async def send_audio(
        self,
        tenant: Tenant,
        from_phone: str,
        to: str,
        audio_url: str,
        voice_note: bool = False,
    ) -> WhatsAppMessage:
        content = {"mediaUrl": audio_url, "voiceNote": voice_note}
        return await self._dispatch(
            tenant,
            from_phone,
            to,
            MessageType.AUDIO,
            content,
            lambda provider, handle, recipient: provider.send_audio(
                handle, recipient, audio_url, voice_note=voice_note
            ),
        )

    def list_messages(self, tenant: Tenant, phone_number: str, limit: int = 50) -> list[WhatsAppMessage]:
        """Messages of one session, newest first."""
        session = self._get_session(tenant, normalize_phone(phone_number))
        return self.repo.get_recent_messages(session.id, limit=limit)

    def _get_session(self, tenant: Tenant, normalized_phone: str) -> WhatsAppSession:
        session = self.repo.get_session(tenant.id, normalized_phone)
        if session is None:
            raise NotFoundError(f"Session not found for phone number {normalized_phone}")
        return session

    async def _dispatch(
        self,
        tenant: Tenant,
        from_phone: str,
        to: str,
        message_type: MessageType,
        content: dict[str, Any],
        send: SendCall,
    ) -> WhatsAppMessage:
        from_number = normalize_phone(from_phone)
        to_number = normalize_phone(to)

        session = self._get_session(tenant, from_number)
        if not session.is_active:
            raise SessionInactiveError(f"Session for phone number {from_number} is not active")

        handle = SessionHandle(tenant_id=tenant.id, phone_number=from_number)
        provider = self.providers.get(tenant, session.provider_type)
        response = await send(provider, handle, to_number)

        content = {key: value for key, value in content.items() if value is not None}

        if not response.success or not response.message_id:
            error = response.error_message or "Provider returned no message id"
            content["error"] = error
            self.repo.create_message(
                tenant_id=tenant.id,
                session_id=session.id,
                message_id=f"local-{uuid4()}",
                from_number=from_number,
                to_number=to_number,
                message_type=message_type.value,
                content=content,
                status=MessageStatus.FAILED,
            )
            self._commit()

            logger.error(
                f"Failed to send {message_type.value} message",
                extra={"from_number": from_number, "to_number": to_number, "error_code": response.error_code},
            )
            raise ProviderError(
                message=error,
                code=response.error_code,
                details=response.raw_response,
            )

        message = self.repo.create_message(
            tenant_id=tenant.id,
            session_id=session.id,
            message_id=response.message_id,
            from_number=from_number,
            to_number=to_number,
            message_type=message_type.value,
            content=content,
            status=MessageStatus.SENT,
        )
        self._commit()
        self.db.refresh(message)

        logger.info(
            f"Sent {message_type.value} message",
            extra={"message_id": response.message_id, "from_number": from_number, "to_number": to_number},
        )
        return message

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Message already recorded") from e
