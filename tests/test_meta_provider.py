"""
Tests for the Meta Cloud API provider.
"""

import json
from uuid import UUID

import httpx
import pytest

from whatsapp_gateway.providers.base import ProviderConfig, ProviderError, SessionHandle
from whatsapp_gateway.providers.meta_cloud import MetaCloudProvider

TENANT_ID = UUID("12345678-1234-1234-1234-123456789012")


@pytest.fixture
def handle():
    return SessionHandle(tenant_id=TENANT_ID, phone_number="5511999990000")


def make_provider(handler, phone_number_id="1234567890", access_token="meta-token"):
    requests = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    provider = MetaCloudProvider(
        phone_number_id=phone_number_id,
        access_token=access_token,
        transport=httpx.MockTransport(record),
    )
    return provider, requests


class TestMetaCloudProvider:
    @pytest.mark.asyncio
    async def test_initialize_checks_phone_number(self, handle):
        provider, requests = make_provider(
            lambda request: httpx.Response(
                200, json={"display_phone_number": "+55 11 99999-0000", "verified_name": "Acme"}
            )
        )
        config = ProviderConfig(tenant_id=TENANT_ID, preferred_provider="meta_api", client_id="acme")

        status = await provider.initialize(handle, config)

        assert status.is_connected is True
        assert status.metadata["verified_name"] == "Acme"
        assert requests[0].url.path == "/v18.0/1234567890"
        assert requests[0].headers["Authorization"] == "Bearer meta-token"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, handle):
        provider, requests = make_provider(lambda request: httpx.Response(200), access_token=None)

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_status(handle)

        assert exc_info.value.code == "MISSING_CREDENTIALS"
        assert requests == []

    @pytest.mark.asyncio
    async def test_graph_error(self, handle):
        provider, _ = make_provider(
            lambda request: httpx.Response(
                401, json={"error": {"message": "Invalid OAuth access token", "code": 190}}
            )
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_status(handle)

        assert exc_info.value.message == "Invalid OAuth access token"
        assert exc_info.value.code == "190"

    @pytest.mark.asyncio
    async def test_disconnect_and_qr_are_local(self, handle):
        provider, requests = make_provider(lambda request: httpx.Response(200))

        await provider.disconnect(handle)

        assert await provider.get_qr_code(handle) is None
        assert requests == []

    @pytest.mark.asyncio
    async def test_send_text(self, handle):
        provider, requests = make_provider(
            lambda request: httpx.Response(200, json={"messages": [{"id": "wamid.HBgM"}]})
        )

        response = await provider.send_text(handle, "5511888888888", "Olá")

        assert response.success is True
        assert response.message_id == "wamid.HBgM"
        assert requests[0].url.path == "/v18.0/1234567890/messages"
        body = json.loads(requests[0].content)
        assert body["type"] == "text"
        assert body["text"]["body"] == "Olá"

    @pytest.mark.asyncio
    async def test_send_document_with_filename(self, handle):
        provider, requests = make_provider(
            lambda request: httpx.Response(200, json={"messages": [{"id": "wamid.doc"}]})
        )

        await provider.send_media(
            handle, "5511888888888", "https://cdn.example.com/a.pdf", "document", file_name="a.pdf"
        )

        body = json.loads(requests[0].content)
        assert body["document"] == {"link": "https://cdn.example.com/a.pdf", "filename": "a.pdf"}

    @pytest.mark.asyncio
    async def test_send_failure(self, handle):
        provider, _ = make_provider(
            lambda request: httpx.Response(400, json={"error": {"message": "Recipient not allowed", "code": 131030}})
        )

        response = await provider.send_location(handle, "5511888888888", -23.5, -46.6)

        assert response.success is False
        assert response.error_code == "131030"

    @pytest.mark.asyncio
    async def test_send_without_message_ids(self, handle):
        provider, _ = make_provider(lambda request: httpx.Response(200, json={"messages": []}))

        response = await provider.send_text(handle, "5511888888888", "Olá")

        assert response.success is True
        assert response.message_id is None

    @pytest.mark.asyncio
    async def test_plain_string_error_body(self, handle):
        provider, _ = make_provider(lambda request: httpx.Response(401, json={"error": "bad token"}))

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_status(handle)

        assert exc_info.value.message == "bad token"
        assert exc_info.value.code == "401"

    @pytest.mark.asyncio
    async def test_send_with_non_object_body(self, handle):
        provider, _ = make_provider(lambda request: httpx.Response(502, json=["upstream", "down"]))

        response = await provider.send_text(handle, "5511888888888", "Olá")

        assert response.success is False
        assert response.error_code == "502"
        assert response.error_message == "Unknown error"
