"""Outbound message endpoints and message history."""

from fastapi import APIRouter, Depends, Query

from whatsapp_gateway.api.deps import get_current_tenant, get_message_service
from whatsapp_gateway.contracts import (
    MessageResponse,
    SendAudioRequest,
    SendLocationRequest,
    SendMediaRequest,
    SendTextRequest,
)
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/text", response_model=MessageResponse)
async def send_text(
    body: SendTextRequest,
    tenant: Tenant = Depends(get_current_tenant),
    messages: MessageService = Depends(get_message_service),
):
    return await messages.send_text(tenant, body.phone_number, body.to, body.text, reply_to=body.reply_to)


@router.post("/media", response_model=MessageResponse)
async def send_media(
    body: SendMediaRequest,
    tenant: Tenant = Depends(get_current_tenant),
    messages: MessageService = Depends(get_message_service),
):
    return await messages.send_media(
        tenant,
        body.phone_number,
        body.to,
        body.media_url,
        body.media_type,
        caption=body.caption,
        mime_type=body.mime_type,
        file_name=body.file_name,
    )


@router.post("/location", response_model=MessageResponse)
async def send_location(
    body: SendLocationRequest,
    tenant: Tenant = Depends(get_current_tenant),
    messages: MessageService = Depends(get_message_service),
):
    return await messages.send_location(
        tenant,
        body.phone_number,
        body.to,
        body.latitude,
        body.longitude,
        name=body.name,
        address=body.address,
    )


@router.post("/audio", response_model=MessageResponse)
async def send_audio(
    body: SendAudioRequest,
    tenant: Tenant = Depends(get_current_tenant),
    messages: MessageService = Depends(get_message_service),
):
    return await messages.send_audio(tenant, body.phone_number, body.to, body.audio_url, voice_note=body.voice_note)


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    phone_number: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=500),
    tenant: Tenant = Depends(get_current_tenant),
    messages: MessageService = Depends(get_message_service),
):
    """Messages of one session, newest first."""
    return messages.list_messages(tenant, phone_number, limit=limit)
