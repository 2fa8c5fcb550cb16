"""
Tests for outbound messages and message history.
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from whatsapp_gateway.exceptions import NotFoundError, SessionInactiveError
from whatsapp_gateway.persistence.models import MessageStatus, ProviderType, WhatsAppMessage
from whatsapp_gateway.providers.baileys import BaileysProvider
from whatsapp_gateway.providers.base import ProviderError
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.service import MessageService


@pytest.fixture
def service(db, providers):
    return MessageService(db, providers)


@pytest.fixture
def active_session(db, repo, tenant):
    session = repo.create_session(
        tenant_id=tenant.id,
        phone_number="5511999990000",
        provider_type=ProviderType.BAILEYS,
        is_active=True,
    )
    db.commit()
    return session


class TestSendMessages:
    """Tests for the send_* operations."""

    @pytest.mark.asyncio
    async def test_send_text_records_sent_message(self, db, service, tenant, active_session, stub_provider):
        message = await service.send_text(tenant, "+55 11 99999-0000", "+55 11 98888-8888", "Olá!")

        assert message.status == "sent"
        assert message.message_id.startswith("stub_text_")
        assert message.from_number == "5511999990000"
        assert message.to_number == "5511988888888"
        assert message.content == {"text": "Olá!"}
        assert message.session_id == active_session.id

        sent = stub_provider.sent_messages[0]
        assert sent["to"] == "5511988888888"
        assert sent["session_key"] == f"tenant-{tenant.id}-5511999990000"

    @pytest.mark.asyncio
    async def test_send_media(self, service, tenant, active_session, stub_provider):
        message = await service.send_media(
            tenant,
            "5511999990000",
            "5511988888888",
            "https://cdn.example.com/catalogo.pdf",
            "document",
            caption="Catálogo",
            mime_type="application/pdf",
            file_name="catalogo.pdf",
        )

        assert message.message_type == "document"
        assert message.content["mediaUrl"] == "https://cdn.example.com/catalogo.pdf"
        assert message.content["fileName"] == "catalogo.pdf"
        assert stub_provider.sent_messages[0]["media_type"] == "document"

    @pytest.mark.asyncio
    async def test_send_location(self, service, tenant, active_session):
        message = await service.send_location(
            tenant, "5511999990000", "5511988888888", -23.55, -46.63, name="Loja Centro"
        )

        assert message.message_type == "location"
        assert message.content == {"latitude": -23.55, "longitude": -46.63, "name": "Loja Centro"}

    @pytest.mark.asyncio
    async def test_send_audio(self, service, tenant, active_session, stub_provider):
        message = await service.send_audio(
            tenant, "5511999990000", "5511988888888", "https://cdn.example.com/a.ogg", voice_note=True
        )

        assert message.message_type == "audio"
        assert message.content == {"mediaUrl": "https://cdn.example.com/a.ogg", "voiceNote": True}
        assert stub_provider.sent_messages[0]["voice_note"] is True

    @pytest.mark.asyncio
    async def test_unknown_session(self, db, service, tenant):
        with pytest.raises(NotFoundError):
            await service.send_text(tenant, "5511999990000", "5511988888888", "Olá!")

        assert db.query(WhatsAppMessage).count() == 0

    @pytest.mark.asyncio
    async def test_inactive_session_rejects_sends(self, db, repo, service, tenant, active_session, stub_provider):
        repo.set_session_active(active_session, False)
        db.commit()

        with pytest.raises(SessionInactiveError):
            await service.send_text(tenant, "5511999990000", "5511988888888", "Olá!")

        assert stub_provider.sent_messages == []
        assert db.query(WhatsAppMessage).count() == 0

    @pytest.mark.asyncio
    async def test_provider_failure_records_failed_message(self, db, service, tenant, active_session, stub_provider):
        stub_provider.fail_sends = True

        with pytest.raises(ProviderError) as exc_info:
            await service.send_text(tenant, "5511999990000", "5511988888888", "Olá!")

        assert exc_info.value.code == "STUB_SIMULATED_FAILURE"
        failed = db.query(WhatsAppMessage).one()
        assert failed.status == "failed"
        assert failed.message_id.startswith("local-")
        assert failed.content["error"] == "Simulated failure for testing"
    @pytest.mark.asyncio
    async def test_malformed_upstream_body_records_failed_message(self, db, settings, tenant, active_session):
        settings.WHATSAPP_PROVIDER_MODE = "live"
        factory = ProviderFactory(settings)
        factory._baileys = BaileysProvider(
            api_url="http://baileys:3000",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, json=["boom"])),
        )
        service = MessageService(db, factory)

        with pytest.raises(ProviderError) as exc_info:
            await service.send_text(tenant, "5511999990000", "5511988888888", "Olá!")

        assert exc_info.value.code == "500"
        failed = db.query(WhatsAppMessage).one()
        assert failed.status == "failed"
        assert failed.content["text"] == "Olá!"

        await factory.close()



class TestListMessages:
    """Tests for list_messages."""

    def test_newest_first_with_limit(self, db, repo, service, tenant, active_session):
        base = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
        for i in range(3):
            repo.create_message(
                tenant_id=tenant.id,
                session_id=active_session.id,
                message_id=f"wamid.{i}",
                from_number="5511988888888",
                to_number="5511999990000",
                message_type="text",
                content={"text": f"mensagem {i}"},
                status=MessageStatus.RECEIVED,
                timestamp=base + timedelta(minutes=i),
            )
        db.commit()

        messages = service.list_messages(tenant, "+55 11 99999-0000", limit=2)

        assert [m.message_id for m in messages] == ["wamid.2", "wamid.1"]

    def test_unknown_session(self, service, tenant):
        with pytest.raises(NotFoundError):
            service.list_messages(tenant, "5511999990000")
