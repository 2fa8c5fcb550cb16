"""
Provider Factory

Hands out the provider for a tenant + provider type and owns the HTTP
clients behind them. One factory lives for the whole application.
"""

import asyncio
import logging
from uuid import UUID

from whatsapp_gateway.core.security import decrypt_credential
from whatsapp_gateway.core.settings import Settings
from whatsapp_gateway.persistence.models import ProviderType, Tenant
from whatsapp_gateway.providers.baileys import BaileysProvider
from whatsapp_gateway.providers.base import WhatsAppProvider
from whatsapp_gateway.providers.meta_cloud import MetaCloudProvider
from whatsapp_gateway.providers.stub import StubWhatsAppProvider

logger = logging.getLogger(__name__)


class ProviderFactory:
    """
    Resolves WhatsApp providers.

    - Baileys: one shared client for every tenant (sessions are keyed per call)
    - Meta Cloud: one client per tenant, built from the tenant's settings
    - Stub mode: a single in-memory provider for everything
    """

    def __init__(self, settings: Settings, stub: StubWhatsAppProvider | None = None):
        self.settings = settings
        self._stub = stub or (StubWhatsAppProvider() if settings.use_stub_provider else None)
        self._baileys: BaileysProvider | None = None
        self._meta: dict[UUID, tuple[tuple[str | None, str | None], MetaCloudProvider]] = {}
        self._closing: set[asyncio.Task] = set()

    def get(self, tenant: Tenant, provider_type: ProviderType | str) -> WhatsAppProvider:
        """
        Get the provider for a tenant.

        Args:
            tenant: Tenant owning the session
            provider_type: Provider backing the session

        Returns:
            Provider instance
        """
        provider_type = ProviderType(provider_type)

        if self._stub is not None:
            return self._stub

        if provider_type == ProviderType.META_API:
            return self._get_meta(tenant)

        if self._baileys is None:
            self._baileys = BaileysProvider(
                api_url=self.settings.BAILEYS_SERVICE_URL,
                api_key=self.settings.BAILEYS_API_KEY,
                timeout=self.settings.PROVIDER_TIMEOUT_SECONDS,
            )
        return self._baileys

    def _get_meta(self, tenant: Tenant) -> MetaCloudProvider:
        meta_settings = (tenant.settings or {}).get("meta", {})
        phone_number_id = meta_settings.get("phone_number_id")
        stored_token = meta_settings.get("access_token")

        # One provider per tenant; changed credentials replace it
        credentials = (phone_number_id, stored_token)
        cached = self._meta.get(tenant.id)
        if cached is not None:
            cached_credentials, provider = cached
            if cached_credentials == credentials:
                return provider
            self._retire(provider)

        provider = MetaCloudProvider(
            phone_number_id=phone_number_id,
            access_token=decrypt_credential(stored_token, self.settings.WHATSAPP_ENCRYPTION_KEY),
            timeout=self.settings.PROVIDER_TIMEOUT_SECONDS,
        )
        self._meta[tenant.id] = (credentials, provider)
        return provider

    def _retire(self, provider: MetaCloudProvider) -> None:
        """Close a replaced provider's client in the background."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop to close it on
            return
        task = loop.create_task(provider.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)
        logger.info("Replaced Meta Cloud provider after credential change")

    async def close(self) -> None:
        """Close every HTTP client owned by the factory."""
        if self._baileys is not None:
            await self._baileys.close()
        for _, provider in self._meta.values():
            await provider.close()
        self._meta.clear()
        if self._closing:
            await asyncio.gather(*self._closing)
        logger.info("Provider clients closed")
