"""
Tests for the in-memory stub provider.
"""

from uuid import UUID

import pytest

from whatsapp_gateway.providers.base import SessionHandle
from whatsapp_gateway.providers.stub import StubWhatsAppProvider

HANDLE = SessionHandle(tenant_id=UUID("12345678-1234-1234-1234-123456789012"), phone_number="5511999990000")


@pytest.mark.asyncio
async def test_history_keeps_latest_entries():
    provider = StubWhatsAppProvider(history_limit=3)

    for i in range(5):
        await provider.send_text(HANDLE, "5511888888888", f"msg {i}")

    assert [m["text"] for m in provider.sent_messages] == ["msg 2", "msg 3", "msg 4"]
    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_connection_state_per_session():
    provider = StubWhatsAppProvider(connect_on_initialize=False)
    other = SessionHandle(tenant_id=HANDLE.tenant_id, phone_number="5511777777777")

    provider.set_connected(HANDLE, True)

    assert (await provider.get_status(HANDLE)).is_connected is True
    assert (await provider.get_status(other)).is_connected is False
    assert await provider.get_qr_code(other) == f"stub-qr-{other.session_key}"
