"""
Meta Cloud API WhatsApp Provider

Provider for the WhatsApp Business Cloud API (Graph API v18.0+).
The Cloud API has no socket to pair or tear down: a session is
"connected" as long as the phone number is reachable with the tenant's
credentials.
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

# Meta Graph API configuration
GRAPH_API_VERSION = "v18.0"
GRAPH_API_BASE_URL = f"https://graph.facebook.com/{GRAPH_API_VERSION}"

PHONE_NUMBER_FIELDS = "display_phone_number,verified_name,quality_rating"


class MetaCloudProvider(WhatsAppProvider):
    """
    Meta Cloud API provider for WhatsApp Business.

    One instance per tenant: it carries that tenant's phone_number_id and
    access token.
    """

    def __init__(
        self,
        phone_number_id: str | None,
        access_token: str | None,
        timeout: float = 30.0,
        base_url: str = GRAPH_API_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _require_credentials(self) -> tuple[str, str]:
        if not self.phone_number_id or not self.access_token:
            raise ProviderError(
                message="Meta Cloud API credentials are not configured for this tenant",
                code="MISSING_CREDENTIALS",
            )
        return self.phone_number_id, self.access_token

    async def _make_request(
        self,
        method: str,
        path: str,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated Graph API request."""
        _, access_token = self._require_credentials()
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {access_token}"}
        url = f"{self.base_url}{path}"

        try:
            if method.upper() == "GET":
                response = await client.get(url, headers=headers, params=params)
            else:
                response = await client.post(url, headers=headers, json=json_data)
        except httpx.RequestError as e:
            logger.error(f"HTTP request failed: {e}")
            raise ProviderError(
                message=f"HTTP request failed: {e}",
                code="HTTP_ERROR",
                retryable=True,
            ) from e

        try:
            response_data = response.json()
        except ValueError:
            response_data = {}
        if not isinstance(response_data, dict):
            response_data = {"raw": response_data}

        if response.status_code >= 400:
            error = response_data.get("error") or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise ProviderError(
                message=error.get("message", "Unknown error"),
                code=str(error.get("code", response.status_code)),
                details=error,
                retryable=response.status_code >= 500,
            )

        return response_data

    # =========================================================================
    # Sessions
    # =========================================================================

    async def _phone_number_status(self, handle: SessionHandle) -> SessionStatus:
        phone_number_id, _ = self._require_credentials()
        response = await self._make_request(
            "GET", f"/{phone_number_id}", params={"fields": PHONE_NUMBER_FIELDS}
        )
        return SessionStatus(
            is_connected=True,
            status="connected",
            phone_number=handle.phone_number,
            metadata={
                "phone_number_id": phone_number_id,
                "display_phone_number": response.get("display_phone_number"),
                "verified_name": response.get("verified_name"),
                "quality_rating": response.get("quality_rating"),
            },
        )

    async def initialize(self, handle: SessionHandle, config: ProviderConfig) -> SessionStatus:
        """Validate the tenant's credentials against the phone number."""
        status = await self._phone_number_status(handle)
        logger.info(
            "Initialized Meta Cloud session",
            extra={"session_key": handle.session_key, "phone_number_id": self.phone_number_id},
        )
        return status

    async def get_status(self, handle: SessionHandle) -> SessionStatus:
        """A reachable phone number is a connected session."""
        return await self._phone_number_status(handle)

    async def disconnect(self, handle: SessionHandle) -> None:
        """Nothing to tear down on the Cloud API side."""
        logger.info("Meta Cloud session released", extra={"session_key": handle.session_key})

    async def get_qr_code(self, handle: SessionHandle) -> str | None:
        """Cloud API numbers are never paired by QR code."""
        return None

    # =========================================================================
    # Messages
    # =========================================================================

    async def _send(self, to: str, message_type: str, body: dict[str, Any]) -> ProviderResponse:
        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": message_type,
            **body,
        }

        try:
            phone_number_id, _ = self._require_credentials()
            response = await self._make_request("POST", f"/{phone_number_id}/messages", payload)
            messages = response.get("messages")
            first = messages[0] if isinstance(messages, list) and messages else {}
            message_id = first.get("id") if isinstance(first, dict) else None

            logger.info(
                f"Sent {message_type} message via Meta API",
                extra={"to": to, "message_id": message_id},
            )

            return ProviderResponse(
                success=True,
                message_id=message_id,
                raw_response=response,
            )

        except ProviderError as e:
            logger.error(f"Failed to send {message_type} message: {e}")
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
        """Send a text message via Graph API."""
        body: dict[str, Any] = {"text": {"preview_url": False, "body": text}}
        if reply_to:
            body["context"] = {"message_id": reply_to}
        return await self._send(to, "text", body)

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
        """Send image/video/document by link via Graph API."""
        media: dict[str, Any] = {"link": media_url}
        if caption:
            media["caption"] = caption
        if file_name and media_type == "document":
            media["filename"] = file_name
        return await self._send(to, media_type, {media_type: media})

    async def send_location(
        self,
        handle: SessionHandle,
        to: str,
        latitude: float,
        longitude: float,
        name: str | None = None,
        address: str | None = None,
    ) -> ProviderResponse:
        """Send a location via Graph API."""
        location: dict[str, Any] = {"latitude": latitude, "longitude": longitude}
        if name:
            location["name"] = name
        if address:
            location["address"] = address
        return await self._send(to, "location", {"location": location})

    async def send_audio(
        self,
        handle: SessionHandle,
        to: str,
        audio_url: str,
        voice_note: bool = False,
    ) -> ProviderResponse:
        """Send audio by link via Graph API."""
        return await self._send(to, "audio", {"audio": {"link": audio_url}})
