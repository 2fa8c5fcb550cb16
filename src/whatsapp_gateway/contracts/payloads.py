"""
Gateway Payload Models

Pydantic models for API requests, responses and provider webhooks.
Webhook bodies use the sidecar's camelCase field names.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from whatsapp_gateway.persistence.models import MessageStatus, MessageType, ProviderType


# =============================================================================
# Auth
# =============================================================================


class TokenRequest(BaseModel):
    client_id: str = Field(..., min_length=1, description="Tenant client identifier")
    client_secret: str = Field(..., min_length=1, description="Tenant client secret")


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# =============================================================================
# Sessions
# =============================================================================


class InitializeSessionRequest(BaseModel):
    phone_number: str = Field(..., min_length=1, description="Phone number to connect")
    provider_type: ProviderType = Field(default=ProviderType.BAILEYS, description="Provider backing the session")


class SessionStatusResponse(BaseModel):
    """Connection state as reported by the provider."""

    is_connected: bool
    status: str
    phone_number: str | None = None
    qr_code: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    """Stored session record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    phone_number: str
    provider_type: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class QRCodeResponse(BaseModel):
    phone_number: str
    qr_code: str | None = None


# =============================================================================
# Outbound messages
# =============================================================================


class SendMessageBase(BaseModel):
    phone_number: str = Field(..., min_length=1, description="Sending session phone number")
    to: str = Field(..., min_length=1, description="Recipient phone number")


class SendTextRequest(SendMessageBase):
    text: str = Field(..., min_length=1, description="Message text")
    reply_to: str | None = Field(None, description="Message ID to reply to")


class SendMediaRequest(SendMessageBase):
    media_url: str = Field(..., min_length=1, description="Public URL of the media")
    media_type: Literal["image", "video", "document"] = Field(..., description="Kind of media")
    caption: str | None = None
    mime_type: str | None = None
    file_name: str | None = None


class SendLocationRequest(SendMessageBase):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str | None = None
    address: str | None = None


class SendAudioRequest(SendMessageBase):
    audio_url: str = Field(..., min_length=1)
    voice_note: bool = Field(default=False, description="Render as a push-to-talk voice note")


class MessageResponse(BaseModel):
    """Stored message record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message_id: str
    from_number: str
    to_number: str
    message_type: str
    content: dict[str, Any]
    status: str
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Webhooks
# =============================================================================


class IncomingMessageWebhook(BaseModel):
    """Inbound message pushed by the provider process."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(..., alias="messageId", min_length=1, description="Provider message ID")
    from_number: str = Field(..., alias="from", min_length=1, description="Sender phone number")
    to_number: str = Field(..., alias="to", min_length=1, description="Recipient (session) phone number")
    message_type: MessageType = Field(default=MessageType.TEXT, alias="type")
    text_content: str | None = Field(None, alias="textContent")
    media_url: str | None = Field(None, alias="mediaUrl")
    media_mime_type: str | None = Field(None, alias="mediaMimeType")
    timestamp: datetime = Field(..., description="Message timestamp from provider")

    @field_validator("message_type", mode="before")
    @classmethod
    def _unknown_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() not in {t.value for t in MessageType}:
            return MessageType.UNKNOWN
        return value.lower() if isinstance(value, str) else value


class MessageStatusUpdateWebhook(BaseModel):
    """Delivery status pushed by the provider process."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(..., alias="messageId", min_length=1, description="Provider message ID")
    status: MessageStatus = Field(..., description="New message status")
    timestamp: datetime = Field(..., description="Status timestamp")
    error: str | None = Field(None, description="Error description (failed deliveries)")


class WebhookAck(BaseModel):
    message: str
    status: Literal["processed", "duplicate"] = "processed"
