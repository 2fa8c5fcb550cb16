"""
WhatsApp Repository

Repository pattern for gateway database operations.
Provides CRUD operations and common queries for tenants, sessions and messages.
The repository never commits; callers own the transaction.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from whatsapp_gateway.persistence.models import (
    MessageStatus,
    ProviderType,
    Tenant,
    WhatsAppMessage,
    WhatsAppSession,
    utcnow,
)


class WhatsAppRepository:
    """Repository for gateway database operations."""

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # Tenants
    # =========================================================================

    def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def get_tenant_by_client_id(self, client_id: str) -> Tenant | None:
        """Get tenant by client identifier."""
        return self.db.query(Tenant).filter(Tenant.client_id == client_id).first()

    def list_tenants(self) -> list[Tenant]:
        """List all tenants."""
        return self.db.query(Tenant).order_by(Tenant.created_at).all()

    def create_tenant(
        self,
        client_id: str,
        name: str,
        client_secret_hash: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> Tenant:
        """Create a new tenant."""
        tenant = Tenant(
            client_id=client_id,
            name=name,
            client_secret_hash=client_secret_hash,
            settings=settings or {},
            is_active=True,
        )
        self.db.add(tenant)
        return tenant

    def update_tenant_settings(self, tenant: Tenant, settings: dict[str, Any]) -> None:
        """Replace the tenant settings document."""
        tenant.settings = dict(settings)
        tenant.updated_at = utcnow()

    # =========================================================================
    # Sessions
    # =========================================================================

    def get_session(self, tenant_id: UUID, phone_number: str) -> WhatsAppSession | None:
        """Get session by tenant and normalized phone number."""
        return (
            self.db.query(WhatsAppSession)
            .filter(
                WhatsAppSession.tenant_id == tenant_id,
                WhatsAppSession.phone_number == phone_number,
            )
            .first()
        )

    def get_active_sessions(self, tenant_id: UUID) -> list[WhatsAppSession]:
        """Get all active sessions for a tenant."""
        return (
            self.db.query(WhatsAppSession)
            .filter(
                WhatsAppSession.tenant_id == tenant_id,
                WhatsAppSession.is_active == True,  # noqa: E712
            )
            .order_by(WhatsAppSession.created_at)
            .all()
        )

    def get_all_sessions(self, tenant_id: UUID) -> list[WhatsAppSession]:
        """Get all sessions for a tenant, active or not."""
        return (
            self.db.query(WhatsAppSession)
            .filter(WhatsAppSession.tenant_id == tenant_id)
            .order_by(WhatsAppSession.created_at)
            .all()
        )

    def create_session(
        self,
        tenant_id: UUID,
        phone_number: str,
        provider_type: ProviderType,
        is_active: bool,
        session_data: dict[str, Any] | None = None,
    ) -> WhatsAppSession:
        """Create a new session record."""
        session = WhatsAppSession(
            tenant_id=tenant_id,
            phone_number=phone_number,
            provider_type=provider_type.value,
            is_active=is_active,
            session_data=session_data or {},
        )
        self.db.add(session)
        return session

    def set_session_active(self, session: WhatsAppSession, is_active: bool) -> None:
        """Update the active flag of a session."""
        session.is_active = is_active
        session.updated_at = utcnow()

    def delete_session(self, session: WhatsAppSession) -> None:
        """Delete a session record."""
        self.db.delete(session)

    # =========================================================================
    # Messages
    # =========================================================================

    def get_message_by_message_id(self, message_id: str) -> WhatsAppMessage | None:
        """Get message by its external (provider) identifier."""
        return (
            self.db.query(WhatsAppMessage)
            .filter(WhatsAppMessage.message_id == message_id)
            .first()
        )

    def create_message(
        self,
        tenant_id: UUID,
        session_id: UUID,
        message_id: str,
        from_number: str,
        to_number: str,
        message_type: str,
        content: dict[str, Any] | None = None,
        status: MessageStatus = MessageStatus.PENDING,
        timestamp: datetime | None = None,
    ) -> WhatsAppMessage:
        """Create a new message record."""
        now = timestamp or utcnow()
        message = WhatsAppMessage(
            tenant_id=tenant_id,
            session_id=session_id,
            message_id=message_id,
            from_number=from_number,
            to_number=to_number,
            message_type=message_type,
            content=content or {},
            status=status.value,
            ai_processed=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(message)
        return message

    def update_message_status(
        self,
        message: WhatsAppMessage,
        status: MessageStatus,
        timestamp: datetime | None = None,
        error: str | None = None,
    ) -> None:
        """
        Update message status.

        A non-empty error replaces the ``error`` key of the content document.
        """
        message.status = status.value
        message.updated_at = timestamp or utcnow()
        if error:
            content = dict(message.content or {})
            content["error"] = error
            message.content = content

    def get_recent_messages(
        self,
        session_id: UUID,
        limit: int = 50,
    ) -> list[WhatsAppMessage]:
        """Get recent messages for a session, newest first."""
        return (
            self.db.query(WhatsAppMessage)
            .filter(WhatsAppMessage.session_id == session_id)
            .order_by(WhatsAppMessage.created_at.desc())
            .limit(limit)
            .all()
        )
