from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from messaging_service.api.deps import CurrentIdentity, RuntimeDep, UoWDep
from messaging_service.api.v1.schemas.common import PaginatedResponse
from messaging_service.api.v1.schemas.message import (
    MarkReadResponse,
    MessageResponse,
    SendMessageRequest,
)
from messaging_service.infrastructure.db.repositories._cursor import encode_cursor
from messaging_service.services import message_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=PaginatedResponse[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    identity: CurrentIdentity,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> PaginatedResponse[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, identity, cursor, limit, uow,
    )
    next_cursor = None
    if len(messages) == limit:
        next_cursor = encode_cursor(messages[-1].created_at, messages[-1].id)
    return PaginatedResponse[MessageResponse](
        items=[MessageResponse.model_validate(m, from_attributes=True) for m in messages],
        next_cursor=next_cursor,
    )


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    identity: CurrentIdentity,
    runtime: RuntimeDep,
) -> MessageResponse:
    # Same path as the WebSocket event so connected clients see REST sends live
    msg = await runtime.dispatcher.send(
        conversation_id, identity, body.receiver_id, body.message_text,
    )
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_read(
    conversation_id: UUID,
    identity: CurrentIdentity,
    runtime: RuntimeDep,
) -> MarkReadResponse:
    read_count = await runtime.receipts.mark_read(conversation_id, identity)
    return MarkReadResponse(conversation_id=conversation_id, read_count=read_count)
