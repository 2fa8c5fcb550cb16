"""
Baileys WhatsApp Provider

Provider for the Baileys sidecar (Node.js WhatsApp Web service).
Uses its REST API to manage sessions and send messages.

Sessions are addressed by SessionHandle.session_key, so one sidecar
serves every tenant and phone number.
"""

import logging
from typing import Any

import httpx

from whatsapp_gateway.providers.base import (
    ProviderConfig,
    ProviderError,
    ProviderResponse,
    SessionHandle,
    SessionStatus,
    WhatsAppProvider,
)

logger = logging.getLogger(__name__)


class BaileysProvider(WhatsAppProvider):
    """
    Baileys sidecar provider for WhatsApp.

    Each (tenant, phone) pair has its own sidecar session identified by
    its session key.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Baileys provider.

        Args:
            api_url: Base URL of the sidecar (e.g., "http://localhost:3000")
            api_key: API key sent in the ``apikey`` header
            timeout: HTTP request timeout
            transport: Optional httpx transport (tests)
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["apikey"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated API request."""
        client = await self._get_client()

        try:
            response = await client.request(method.upper(), endpoint, json=json_data)
        except httpx.RequestError as e:
            logger.error(f"HTTP request to Baileys service failed: {e}")
            raise ProviderError(
                message=f"HTTP request failed: {e}",
                code="HTTP_ERROR",
                retryable=True,
            ) from e

        try:
            response_data = response.json() if response.content else {}
        except ValueError:
            response_data = {"raw": response.text}
        if not isinstance(response_data, dict):
            response_data = {"raw": response_data}

        if response.status_code >= 400:
            error = response_data.get("error") or response_data.get("message", "Unknown error")
            raise ProviderError(
                message=str(error),
                code=str(response.status_code),
                details=response_data,
                retryable=response.status_code >= 500,
            )

        return response_data

    @staticmethod
    def _to_status(handle: SessionHandle, data: dict[str, Any]) -> SessionStatus:
        connected = bool(data.get("connected", False))
        return SessionStatus(
            is_connected=connected,
            status=data.get("status") or ("connected" if connected else "disconnected"),
            phone_number=data.get("phoneNumber") or handle.phone_number,
            qr_code=data.get("qrCode"),
            metadata=data.get("metadata") or {},
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    async def initialize(self, handle: SessionHandle, config: ProviderConfig) -> SessionStatus:
        """Start a sidecar session (returns a QR code until paired)."""
        endpoint = f"/sessions/{handle.session_key}/init"

        payload = {
            "phoneNumber": handle.phone_number,
            "tenantId": str(config.tenant_id),
            "clientId": config.client_id,
        }

        response = await self._make_request("POST", endpoint, payload)
        status = self._to_status(handle, response)

        logger.info(
            "Initialized Baileys session",
            extra={"session_key": handle.session_key, "connected": status.is_connected},
        )
        return status

    async def get_status(self, handle: SessionHandle) -> SessionStatus:
        """Get live status of a sidecar session."""
        endpoint = f"/sessions/{handle.session_key}/status"
        response = await self._make_request("GET", endpoint)
        return self._to_status(handle, response)

    async def disconnect(self, handle: SessionHandle) -> None:
        """Log out and delete a sidecar session."""
        endpoint = f"/sessions/{handle.session_key}"
        await self._make_request("DELETE", endpoint)
        logger.info("Disconnected Baileys session", extra={"session_key": handle.session_key})

    async def get_qr_code(self, handle: SessionHandle) -> str | None:
        """Get the pairing QR code of a sidecar session."""
        endpoint = f"/sessions/{handle.session_key}/qr"
        response = await self._make_request("GET", endpoint)
        return response.get("qrCode")

    # =========================================================================
    # Messages
    # =========================================================================

    async def _send(
        self,
        handle: SessionHandle,
        kind: str,
        payload: dict[str, Any],
    ) -> ProviderResponse:
        endpoint = f"/sessions/{handle.session_key}/messages/{kind}"

        try:
            response = await self._make_request("POST", endpoint, payload)
            key = response.get("key")
            message_id = response.get("messageId") or (key.get("id") if isinstance(key, dict) else None)

            logger.info(
                f"Sent {kind} message via Baileys",
                extra={"to": payload.get("to"), "message_id": message_id, "session_key": handle.session_key},
            )

            return ProviderResponse(
                success=True,
                message_id=message_id,
                raw_response=response,
            )

        except ProviderError as e:
            logger.error(f"Failed to send {kind} message: {e}")
            return ProviderResponse(
                success=False,
                error_code=e.code,
                error_message=str(e),
                raw_response=e.details,
            )

    async def send_text(
        self,
        handle: SessionHandle,
        to: str,
        text: str,
        reply_to: str | None = None,
    ) -> ProviderResponse:
        """Send a text message via the sidecar."""
        payload: dict[str, Any] = {"to": to, "text": text}
        if reply_to:
            payload["quoted"] = reply_to
        return await self._send(handle, "text", payload)

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
        """Send an image, video or document via the sidecar."""
        payload: dict[str, Any] = {
            "to": to,
            "mediaUrl": media_url,
            "mediaType": media_type,
        }
        if caption:
            payload["caption"] = caption
        if mime_type:
            payload["mimeType"] = mime_type
        if file_name:
            payload["fileName"] = file_name
        return await self._send(handle, "media", payload)

    async def send_location(
        self,
        handle: SessionHandle,
        to: str,
        latitude: float,
        longitude: float,
        name: str | None = None,
        address: str | None = None,
    ) -> ProviderResponse:
        """Send a location via the sidecar."""
        payload: dict[str, Any] = {
            "to": to,
            "latitude": latitude,
            "longitude": longitude,
        }
        if name:
            payload["name"] = name
        if address:
            payload["address"] = address
        return await self._send(handle, "location", payload)

    async def send_audio(
        self,
        handle: SessionHandle,
        to: str,
        audio_url: str,
        voice_note: bool = False,
    ) -> ProviderResponse:
        """Send audio via the sidecar (ptt=True renders as a voice note)."""
        payload = {"to": to, "audioUrl": audio_url, "ptt": voice_note}
        return await self._send(handle, "audio", payload)
