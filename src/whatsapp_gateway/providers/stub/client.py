"""
Stub WhatsApp Provider

Development provider that keeps sessions in memory and logs all operations
without making real API calls. Useful for local development and testing.
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from whatsapp_gateway.providers.base import (
    ProviderConfig,
    ProviderError,
    ProviderResponse,
    SessionHandle,
    SessionStatus,
    WhatsAppProvider,
)

logger = logging.getLogger(__name__)


class StubWhatsAppProvider(WhatsAppProvider):
    """
    Stub provider for development and testing.

    - Keeps per-session connection state in memory
    - Records every call in ``calls`` and every send in ``sent_messages``,
      keeping the latest ``history_limit`` entries of each
    - Generates fake message IDs
    - Can be configured to simulate disconnect and send failures
    """

    def __init__(
        self,
        connect_on_initialize: bool = True,
        fail_disconnect: bool = False,
        fail_sends: bool = False,
        history_limit: int = 1000,
    ):
        self.connect_on_initialize = connect_on_initialize
        self.fail_disconnect = fail_disconnect
        self.fail_sends = fail_sends
        self.history_limit = history_limit
        self.connected: dict[str, bool] = {}
        self.calls: list[tuple[str, str]] = []
        self.sent_messages: list[dict[str, Any]] = []

    def _remember(self, history: list, entry: Any) -> None:
        history.append(entry)
        if len(history) > self.history_limit:
            del history[: len(history) - self.history_limit]

    def set_connected(self, handle: SessionHandle, connected: bool) -> None:
        """Force the live state of a session."""
        self.connected[handle.session_key] = connected

    def calls_for(self, operation: str) -> list[str]:
        """Session keys passed to ``operation``, in call order."""
        return [key for op, key in self.calls if op == operation]

    def _status(self, handle: SessionHandle) -> SessionStatus:
        connected = self.connected.get(handle.session_key, False)
        return SessionStatus(
            is_connected=connected,
            status="connected" if connected else "disconnected",
            phone_number=handle.phone_number,
            qr_code=None if connected else f"stub-qr-{handle.session_key}",
            metadata={"stub": True, "session_key": handle.session_key},
        )

    async def initialize(self, handle: SessionHandle, config: ProviderConfig) -> SessionStatus:
        self._remember(self.calls, ("initialize", handle.session_key))
        self.connected[handle.session_key] = self.connect_on_initialize
        logger.info(f"[STUB] Initialized session", extra={"session_key": handle.session_key})
        return self._status(handle)

    async def get_status(self, handle: SessionHandle) -> SessionStatus:
        self._remember(self.calls, ("get_status", handle.session_key))
        return self._status(handle)

    async def disconnect(self, handle: SessionHandle) -> None:
        self._remember(self.calls, ("disconnect", handle.session_key))
        if self.fail_disconnect:
            raise ProviderError("Simulated disconnect failure", code="STUB_SIMULATED_FAILURE")
        self.connected[handle.session_key] = False
        logger.info(f"[STUB] Disconnected session", extra={"session_key": handle.session_key})

    async def get_qr_code(self, handle: SessionHandle) -> str | None:
        self._remember(self.calls, ("get_qr_code", handle.session_key))
        return self._status(handle).qr_code

    async def _record_send(self, handle: SessionHandle, kind: str, to: str, **fields: Any) -> ProviderResponse:
        self._remember(self.calls, (f"send_{kind}", handle.session_key))
        message_id = f"stub_{kind}_{uuid4().hex[:16]}"

        self._remember(self.sent_messages, {
            "type": kind,
            "session_key": handle.session_key,
            "to": to,
            "message_id": message_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        })

        logger.info(
            f"[STUB] Sending {kind} message",
            extra={"to": to, "message_id": message_id},
        )

        if self.fail_sends:
            return ProviderResponse(
                success=False,
                error_code="STUB_SIMULATED_FAILURE",
                error_message="Simulated failure for testing",
            )

        return ProviderResponse(
            success=True,
            message_id=message_id,
            raw_response={"stub": True, "message_id": message_id},
        )

    async def send_text(self, handle, to, text, reply_to=None) -> ProviderResponse:
        return await self._record_send(handle, "text", to, text=text, reply_to=reply_to)

    async def send_media(
        self, handle, to, media_url, media_type, caption=None, mime_type=None, file_name=None
    ) -> ProviderResponse:
        return await self._record_send(
            handle, "media", to, media_url=media_url, media_type=media_type, caption=caption
        )

    async def send_location(self, handle, to, latitude, longitude, name=None, address=None) -> ProviderResponse:
        return await self._record_send(
            handle, "location", to, latitude=latitude, longitude=longitude, name=name
        )

    async def send_audio(self, handle, to, audio_url, voice_note=False) -> ProviderResponse:
        return await self._record_send(handle, "audio", to, audio_url=audio_url, voice_note=voice_note)
