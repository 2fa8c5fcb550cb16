"""
Tenant Resolver

Resolves the tenant for a request from the tenant header.
The header carries either the tenant UUID or its client_id.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.persistence.repo import WhatsAppRepository

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-Id"


class TenantResolver:
    """Resolves tenants from request identifiers."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WhatsAppRepository(db)

    def resolve(self, identifier: str | None) -> Tenant | None:
        """
        Resolve an active tenant from a header value.

        Args:
            identifier: Tenant UUID or client_id

        Returns:
            Tenant if found and active, None otherwise
        """
        if not identifier:
            return None

        identifier = identifier.strip()
        tenant = None

        try:
            tenant = self.repo.get_tenant(UUID(identifier))
        except ValueError:
            pass

        if tenant is None:
            tenant = self.repo.get_tenant_by_client_id(identifier)

        if tenant is None or not tenant.is_active:
            logger.warning(f"No active tenant found for identifier: {identifier}")
            return None

        logger.debug(
            "Resolved tenant from header",
            extra={"identifier": identifier, "tenant_id": str(tenant.id)},
        )
        return tenant
