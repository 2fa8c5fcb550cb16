"""
Tests for tenant onboarding and provider selection.
"""

import asyncio

import pytest
from cryptography.fernet import Fernet

from whatsapp_gateway.core.security import decode_access_token, decrypt_credential, verify_secret
from whatsapp_gateway.core.settings import get_settings
from whatsapp_gateway.exceptions import ConflictError, UnauthorizedError
from whatsapp_gateway.persistence.models import ProviderType
from whatsapp_gateway.providers.baileys import BaileysProvider
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.providers.meta_cloud import MetaCloudProvider
from whatsapp_gateway.service import TenantService


@pytest.fixture
def service(db):
    return TenantService(db)


@pytest.fixture
def encryption_key(monkeypatch):
    key = Fernet.generate_key().decode()
    monkeypatch.setenv("WHATSAPP_ENCRYPTION_KEY", key)
    get_settings.cache_clear()
    yield key
    get_settings.cache_clear()


class TestTenantService:
    def test_create_tenant_stores_hashed_secret(self, service):
        tenant, secret = service.create_tenant("initech", "Initech")

        assert tenant.client_id == "initech"
        assert tenant.is_active is True
        assert tenant.client_secret_hash != secret
        assert verify_secret(secret, tenant.client_secret_hash)

    def test_duplicate_client_id(self, service, tenant):
        with pytest.raises(ConflictError):
            service.create_tenant("acme", "Acme again")

    def test_issue_token(self, service):
        tenant, secret = service.create_tenant("initech", "Initech")

        payload = decode_access_token(service.issue_token("initech", secret))

        assert payload["sub"] == "initech"
        assert payload["tenant_id"] == str(tenant.id)

    def test_issue_token_bad_secret(self, service):
        service.create_tenant("initech", "Initech")

        with pytest.raises(UnauthorizedError):
            service.issue_token("initech", "wrong")

    def test_issue_token_unknown_client(self, service):
        with pytest.raises(UnauthorizedError):
            service.issue_token("nobody", "whatever")

    def test_set_meta_credentials_encrypts_token(self, db, service, tenant, encryption_key):
        service.set_meta_credentials(tenant, "1234567890", "meta-token")

        db.refresh(tenant)
        meta = tenant.settings["meta"]
        assert meta["phone_number_id"] == "1234567890"
        assert meta["access_token"] != "meta-token"
        assert decrypt_credential(meta["access_token"], encryption_key) == "meta-token"


class TestProviderFactory:
    def test_stub_mode_returns_stub(self, providers, stub_provider, tenant):
        assert providers.get(tenant, ProviderType.BAILEYS) is stub_provider
        assert providers.get(tenant, "meta_api") is stub_provider

    @pytest.mark.asyncio
    async def test_live_mode_selects_by_provider_type(self, settings, db, service, tenant, encryption_key):
        settings.WHATSAPP_PROVIDER_MODE = "live"
        settings.WHATSAPP_ENCRYPTION_KEY = encryption_key
        service.set_meta_credentials(tenant, "1234567890", "meta-token")
        factory = ProviderFactory(settings)

        baileys = factory.get(tenant, ProviderType.BAILEYS)
        meta = factory.get(tenant, ProviderType.META_API)

        assert isinstance(baileys, BaileysProvider)
        assert factory.get(tenant, "baileys") is baileys
        assert isinstance(meta, MetaCloudProvider)
        assert meta.phone_number_id == "1234567890"
        assert meta.access_token == "meta-token"
        assert factory.get(tenant, ProviderType.META_API) is meta

        await factory.close()

    @pytest.mark.asyncio
    async def test_changed_credentials_replace_cached_meta_provider(
        self, settings, db, service, tenant, encryption_key
    ):
        settings.WHATSAPP_PROVIDER_MODE = "live"
        settings.WHATSAPP_ENCRYPTION_KEY = encryption_key
        service.set_meta_credentials(tenant, "1234567890", "meta-token")
        factory = ProviderFactory(settings)

        old = factory.get(tenant, ProviderType.META_API)
        old_client = await old._get_client()

        service.set_meta_credentials(tenant, "1234567890", "rotated-token")
        new = factory.get(tenant, ProviderType.META_API)
        await asyncio.gather(*factory._closing)

        assert new is not old
        assert new.access_token == "rotated-token"
        assert old_client.is_closed
        assert len(factory._meta) == 1

        await factory.close()
