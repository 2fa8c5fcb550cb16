"""
Session Service

Session lifecycle for a tenant phone number:

    absent -> initializing -> active | inactive   (initialize)
    active <-> inactive                            (status reconciliation, disconnect)
    active | inactive -> absent                    (replacement on initialize)

Local ``is_active`` mirrors what the provider last reported. Session rows are
versioned: when two requests reconcile the same session at once, the later
commit fails with a conflict instead of overwriting the earlier one.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from whatsapp_gateway.exceptions import ConflictError
from whatsapp_gateway.persistence.models import ProviderType, Tenant, WhatsAppSession
from whatsapp_gateway.persistence.repo import WhatsAppRepository
from whatsapp_gateway.providers.base import ProviderConfig, SessionHandle, SessionStatus
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.routing.phone import normalize_phone

logger = logging.getLogger(__name__)

NOT_FOUND_STATUS = "not_found"


class SessionService:
    """
    Orchestrates session creation, replacement, status and disconnect.

    Persists through the repository and reaches the provider through an
    explicit SessionHandle per call.
    """

    def __init__(self, db: Session, providers: ProviderFactory):
        self.db = db
        self.repo = WhatsAppRepository(db)
        self.providers = providers

    async def initialize_session(
        self,
        tenant: Tenant,
        phone_number: str,
        provider_type: ProviderType = ProviderType.BAILEYS,
    ) -> SessionStatus:
        """
        Create a session, replacing any existing one for the same number.

        An existing active session gets one best-effort provider disconnect;
        its failure is logged and the replacement continues.

        Returns:
            Status reported by the provider on initialize
        """
        normalized_phone = normalize_phone(phone_number)
        provider_type = ProviderType(provider_type)
        handle = SessionHandle(tenant_id=tenant.id, phone_number=normalized_phone)

        logger.info(
            "Initializing session",
            extra={
                "tenant_id": str(tenant.id),
                "phone_number": phone_number,
                "normalized_phone": normalized_phone,
                "provider": provider_type.value,
            },
        )

        existing = self.repo.get_session(tenant.id, normalized_phone)
        if existing:
            await self._replace_existing(tenant, existing, handle)

        config = ProviderConfig(
            tenant_id=tenant.id,
            preferred_provider=provider_type.value,
            client_id=f"tenant-{tenant.id}",
            settings=dict(tenant.settings or {}),
        )

        provider = self.providers.get(tenant, provider_type)
        status = await provider.initialize(handle, config)

        self.repo.create_session(
            tenant_id=tenant.id,
            phone_number=normalized_phone,
            provider_type=provider_type,
            is_active=status.is_connected,
            session_data=status.metadata,
        )
        self._commit(f"Session already exists for phone {normalized_phone}")

        logger.info(
            f"New session created for phone {normalized_phone}",
            extra={"connected": status.is_connected, "status": status.status},
        )
        return status

    async def _replace_existing(
        self,
        tenant: Tenant,
        existing: WhatsAppSession,
        handle: SessionHandle,
    ) -> None:
        logger.info(
            f"Found existing session for phone {handle.phone_number}, replacing it",
            extra={"session_id": str(existing.id), "was_active": existing.is_active},
        )

        if existing.is_active:
            provider = self.providers.get(tenant, existing.provider_type)
            try:
                await provider.disconnect(handle)
                logger.info(f"Disconnected existing active session for phone {handle.phone_number}")
            except Exception as e:
                logger.warning(
                    f"Failed to disconnect existing session, continuing with deletion: {e}",
                    exc_info=True,
                )

        self.repo.delete_session(existing)
        self._commit(f"Session for phone {handle.phone_number} was modified concurrently")

        logger.info(f"Deleted existing session for phone {handle.phone_number}")

    async def get_session_status(self, tenant: Tenant, phone_number: str) -> SessionStatus:
        """
        Get live status and reconcile the stored active flag.

        A missing session yields a "not_found" status without calling the provider.
        """
        normalized_phone = normalize_phone(phone_number)
        session = self.repo.get_session(tenant.id, normalized_phone)

        if session is None:
            logger.warning(
                "Session not found",
                extra={"tenant_id": str(tenant.id), "phone_number": phone_number},
            )
            return SessionStatus(
                is_connected=False,
                status=NOT_FOUND_STATUS,
                phone_number=phone_number,
            )

        handle = SessionHandle(tenant_id=tenant.id, phone_number=normalized_phone)
        provider = self.providers.get(tenant, session.provider_type)
        provider_status = await provider.get_status(handle)

        if session.is_active != provider_status.is_connected:
            logger.info(
                f"Session state changed for phone {normalized_phone}",
                extra={"was_active": session.is_active, "is_active": provider_status.is_connected},
            )
            self.repo.set_session_active(session, provider_status.is_connected)
            self._commit()

        return provider_status

    async def disconnect_session(self, tenant: Tenant, phone_number: str) -> bool:
        """
        Disconnect a session at the provider and mark it inactive.

        Returns:
            False if no session exists, True once disconnected
        """
        normalized_phone = normalize_phone(phone_number)
        session = self.repo.get_session(tenant.id, normalized_phone)

        if session is None:
            logger.warning(
                "Session not found for disconnect",
                extra={"tenant_id": str(tenant.id), "phone_number": phone_number},
            )
            return False

        handle = SessionHandle(tenant_id=tenant.id, phone_number=normalized_phone)
        provider = self.providers.get(tenant, session.provider_type)
        await provider.disconnect(handle)

        self.repo.set_session_active(session, False)
        self._commit()

        logger.info(f"Session disconnected for phone {normalized_phone}")
        return True

    def list_active_sessions(self, tenant: Tenant) -> list[WhatsAppSession]:
        """Active sessions of a tenant, from the database only."""
        return self.repo.get_active_sessions(tenant.id)

    async def get_qr_code(self, tenant: Tenant, phone_number: str) -> str | None:
        """Pairing QR code for a session, None if the session is unknown."""
        normalized_phone = normalize_phone(phone_number)
        session = self.repo.get_session(tenant.id, normalized_phone)

        if session is None:
            logger.warning(
                "Session not found for QR code",
                extra={"tenant_id": str(tenant.id), "phone_number": phone_number},
            )
            return None

        handle = SessionHandle(tenant_id=tenant.id, phone_number=normalized_phone)
        provider = self.providers.get(tenant, session.provider_type)
        return await provider.get_qr_code(handle)

    def _commit(self, conflict_message: str = "Session was modified concurrently") -> None:
        try:
            self.db.commit()
        except (IntegrityError, StaleDataError) as e:
            self.db.rollback()
            raise ConflictError(conflict_message) from e
