from fastapi import APIRouter, Depends

from whatsapp_gateway.api.deps import get_tenant_service
from whatsapp_gateway.contracts import TokenRequest, TokenResponse
from whatsapp_gateway.service import TenantService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenResponse)
async def issue_token(
    body: TokenRequest,
    tenants: TenantService = Depends(get_tenant_service),
):
    """Exchange tenant client credentials for a bearer token."""
    access_token = tenants.issue_token(body.client_id, body.client_secret)
    return TokenResponse(access_token=access_token)
