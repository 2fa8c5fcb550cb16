"""
Tenant Service

Tenant onboarding and the client-credentials token exchange.
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whatsapp_gateway.core.security import (
    create_access_token,
    encrypt_credential,
    generate_client_secret,
    hash_secret,
    verify_secret,
)
from whatsapp_gateway.exceptions import ConflictError, UnauthorizedError
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.persistence.repo import WhatsAppRepository

logger = logging.getLogger(__name__)


class TenantService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = WhatsAppRepository(db)

    def create_tenant(
        self,
        client_id: str,
        name: str,
        settings: dict[str, Any] | None = None,
    ) -> tuple[Tenant, str]:
        """
        Create a tenant with a fresh client secret.

        Returns:
            Tuple of (tenant, plain client secret). The secret is not stored.
        """
        if self.repo.get_tenant_by_client_id(client_id):
            raise ConflictError(f"Tenant with client_id {client_id} already exists")

        client_secret = generate_client_secret()
        tenant = self.repo.create_tenant(
            client_id=client_id,
            name=name,
            client_secret_hash=hash_secret(client_secret),
            settings=settings,
        )

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Tenant with client_id {client_id} already exists") from e

        self.db.refresh(tenant)
        logger.info(f"Tenant created: {client_id}", extra={"tenant_id": str(tenant.id)})
        return tenant, client_secret

    def authenticate(self, client_id: str, client_secret: str) -> Tenant:
        tenant = self.repo.get_tenant_by_client_id(client_id)
        if not tenant or not tenant.is_active or not verify_secret(client_secret, tenant.client_secret_hash):
            logger.warning(f"Failed token request for client_id {client_id}")
            raise UnauthorizedError("Invalid client credentials")
        return tenant

    def issue_token(self, client_id: str, client_secret: str) -> str:
        """Exchange client credentials for a bearer token."""
        tenant = self.authenticate(client_id, client_secret)
        return create_access_token({"sub": tenant.client_id, "tenant_id": str(tenant.id)})

    def set_meta_credentials(self, tenant: Tenant, phone_number_id: str, access_token: str) -> Tenant:
        """Store Meta Cloud API credentials (access token encrypted) in tenant settings."""
        settings = dict(tenant.settings or {})
        settings["meta"] = {
            "phone_number_id": phone_number_id,
            "access_token": encrypt_credential(access_token),
        }
        self.repo.update_tenant_settings(tenant, settings)
        self.db.commit()

        logger.info("Meta credentials updated", extra={"tenant_id": str(tenant.id)})
        return tenant
