"""
WhatsApp Provider Base

Abstract interface for WhatsApp connector processes.
Implementations: Baileys sidecar, Meta Cloud API, Stub (for development).

Every call receives an explicit SessionHandle; providers keep no notion of
a "current" session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID


class ProviderError(Exception):
    """Error from WhatsApp provider."""

    status_code = 502

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.retryable = retryable


@dataclass(frozen=True)
class SessionHandle:
    """Identifies one provider-side session: tenant + normalized phone."""

    tenant_id: UUID
    phone_number: str

    @property
    def session_key(self) -> str:
        return f"tenant-{self.tenant_id}-{self.phone_number}"


@dataclass
class ProviderConfig:
    """Per-tenant configuration handed to the provider on initialize."""

    tenant_id: UUID
    preferred_provider: str
    client_id: str
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionStatus:
    """Connection state reported by a provider."""

    is_connected: bool
    status: str
    phone_number: str | None = None
    qr_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResponse:
    """
    Response from provider after sending a message.
    """

    success: bool
    message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


class WhatsAppProvider(ABC):
    """
    Abstract interface for WhatsApp providers.

    Session operations raise ProviderError on failure.
    Send operations report failure through ProviderResponse.
    """

    @abstractmethod
    async def initialize(self, handle: SessionHandle, config: ProviderConfig) -> SessionStatus:
        """
        Start (or restart) the provider-side session.

        Args:
            handle: Session to initialize
            config: Tenant configuration

        Returns:
            SessionStatus with the connection state and provider metadata
        """
        ...

    @abstractmethod
    async def get_status(self, handle: SessionHandle) -> SessionStatus:
        """Get live connection state for a session."""
        ...

    @abstractmethod
    async def disconnect(self, handle: SessionHandle) -> None:
        """Log out and tear down the provider-side session."""
        ...

    @abstractmethod
    async def get_qr_code(self, handle: SessionHandle) -> str | None:
        """Get the pairing QR code, or None when the session needs none."""
        ...

    @abstractmethod
    async def send_text(
        self,
        handle: SessionHandle,
        to: str,
        text: str,
        reply_to: str | None = None,
    ) -> ProviderResponse:
        """
        Send a text message.

        Args:
            handle: Sending session
            to: Recipient phone number (digits only)
            text: Message text
            reply_to: Message ID to reply to (optional)

        Returns:
            ProviderResponse with message ID if successful
        """
        ...

    @abstractmethod
    async def send_media(
        self,
        handle: SessionHandle,
        to: str,
        media_url: str,
        media_type: str,
        caption: str | None = None,
        mime_type: str | None = None,
        file_name: str | None = None,
    ) -> ProviderResponse:
        """Send an image, video or document by URL."""
        ...

    @abstractmethod
    async def send_location(
        self,
        handle: SessionHandle,
        to: str,
        latitude: float,
        longitude: float,
        name: str | None = None,
        address: str | None = None,
    ) -> ProviderResponse:
        """Send a location pin."""
        ...

    @abstractmethod
    async def send_audio(
        self,
        handle: SessionHandle,
        to: str,
        audio_url: str,
        voice_note: bool = False,
    ) -> ProviderResponse:
        """Send an audio file, optionally as a voice note."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
