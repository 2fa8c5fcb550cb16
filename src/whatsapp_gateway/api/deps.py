"""
API dependencies

Tenant authentication: the tenant header names the tenant, the bearer
token proves it. Both must agree.
"""

import logging

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from whatsapp_gateway.core.db import get_db
from whatsapp_gateway.core.request_context import set_request_context
from whatsapp_gateway.core.security import decode_access_token
from whatsapp_gateway.core.settings import Settings
from whatsapp_gateway.exceptions import UnauthorizedError
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.routing.tenant_resolver import TENANT_HEADER, TenantResolver
from whatsapp_gateway.service import MessageService, SessionService, TenantService, WebhookHandler

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_provider_factory(request: Request) -> ProviderFactory:
    return request.app.state.providers


async def get_current_tenant(
    request: Request,
    tenant_header: str | None = Header(None, alias=TENANT_HEADER),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Tenant:
    """
    Resolve the calling tenant.

    Raises:
        UnauthorizedError: missing header, unknown tenant, missing or
            invalid token, or a token issued to another tenant
    """
    if not tenant_header:
        raise UnauthorizedError(f"Missing {TENANT_HEADER} header")

    tenant = TenantResolver(db).resolve(tenant_header)
    if tenant is None:
        raise UnauthorizedError("Unknown tenant")

    if credentials is None:
        raise UnauthorizedError("Missing bearer token")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")

    if payload.get("tenant_id") != str(tenant.id):
        logger.warning(
            "Token tenant does not match tenant header",
            extra={"header": tenant_header, "token_tenant_id": payload.get("tenant_id")},
        )
        raise UnauthorizedError("Token does not belong to tenant")

    request.state.tenant_id = str(tenant.id)
    set_request_context(tenant_id=str(tenant.id))
    return tenant


def get_session_service(
    db: Session = Depends(get_db),
    providers: ProviderFactory = Depends(get_provider_factory),
) -> SessionService:
    return SessionService(db, providers)


def get_message_service(
    db: Session = Depends(get_db),
    providers: ProviderFactory = Depends(get_provider_factory),
) -> MessageService:
    return MessageService(db, providers)


def get_webhook_handler(db: Session = Depends(get_db)) -> WebhookHandler:
    return WebhookHandler(db)


def get_tenant_service(db: Session = Depends(get_db)) -> TenantService:
    return TenantService(db)
