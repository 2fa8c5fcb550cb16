"""
Gateway Contracts

Pydantic models shared by the HTTP API and the provider webhooks.
"""

from whatsapp_gateway.contracts.payloads import (
    IncomingMessageWebhook,
    InitializeSessionRequest,
    MessageResponse,
    MessageStatusUpdateWebhook,
    QRCodeResponse,
    SendAudioRequest,
    SendLocationRequest,
    SendMediaRequest,
    SendTextRequest,
    SessionResponse,
    SessionStatusResponse,
    TokenRequest,
    TokenResponse,
    WebhookAck,
)

__all__ = [
    "TokenRequest",
    "TokenResponse",
    "InitializeSessionRequest",
    "SessionStatusResponse",
    "SessionResponse",
    "QRCodeResponse",
    "SendTextRequest",
    "SendMediaRequest",
    "SendLocationRequest",
    "SendAudioRequest",
    "MessageResponse",
    "IncomingMessageWebhook",
    "MessageStatusUpdateWebhook",
    "WebhookAck",
]
