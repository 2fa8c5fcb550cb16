"""Session endpoints: initialize, status, disconnect, list, QR code."""

import logging

from fastapi import APIRouter, Depends, Query

from whatsapp_gateway.api.deps import get_current_tenant, get_session_service
from whatsapp_gateway.contracts import (
    InitializeSessionRequest,
    QRCodeResponse,
    SessionResponse,
    SessionStatusResponse,
)
from whatsapp_gateway.exceptions import NotFoundError
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.providers.base import SessionStatus
from whatsapp_gateway.service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _status_response(status: SessionStatus) -> SessionStatusResponse:
    return SessionStatusResponse(
        is_connected=status.is_connected,
        status=status.status,
        phone_number=status.phone_number,
        qr_code=status.qr_code,
        metadata=status.metadata,
    )


@router.post("/initialize", response_model=SessionStatusResponse)
async def initialize_session(
    body: InitializeSessionRequest,
    tenant: Tenant = Depends(get_current_tenant),
    sessions: SessionService = Depends(get_session_service),
):
    """
    Initialize a WhatsApp session for a phone number.

    An existing session for the same number is replaced.
    """
    status = await sessions.initialize_session(tenant, body.phone_number, body.provider_type)
    return _status_response(status)


@router.get("/status", response_model=SessionStatusResponse)
async def get_session_status(
    phone_number: str = Query(..., min_length=1),
    tenant: Tenant = Depends(get_current_tenant),
    sessions: SessionService = Depends(get_session_service),
):
    status = await sessions.get_session_status(tenant, phone_number)
    return _status_response(status)


@router.delete("/disconnect")
async def disconnect_session(
    phone_number: str = Query(..., min_length=1),
    tenant: Tenant = Depends(get_current_tenant),
    sessions: SessionService = Depends(get_session_service),
):
    disconnected = await sessions.disconnect_session(tenant, phone_number)
    if not disconnected:
        raise NotFoundError("Session not found")
    return {"message": "Session disconnected successfully"}


@router.get("", response_model=list[SessionResponse])
async def list_active_sessions(
    tenant: Tenant = Depends(get_current_tenant),
    sessions: SessionService = Depends(get_session_service),
):
    """List the tenant's active sessions."""
    return sessions.list_active_sessions(tenant)


@router.get("/qr-code", response_model=QRCodeResponse)
async def get_qr_code(
    phone_number: str = Query(..., min_length=1),
    tenant: Tenant = Depends(get_current_tenant),
    sessions: SessionService = Depends(get_session_service),
):
    qr_code = await sessions.get_qr_code(tenant, phone_number)
    if qr_code is None:
        raise NotFoundError("QR code not available")
    return QRCodeResponse(phone_number=phone_number, qr_code=qr_code)
