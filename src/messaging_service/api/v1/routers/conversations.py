from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from messaging_service.api.deps import CurrentIdentity, RuntimeDep, UoWDep
from messaging_service.api.v1.schemas.common import PaginatedResponse
from messaging_service.api.v1.schemas.conversation import (
    ConversationResponse,
    ConversationSummaryResponse,
    CreateConversationRequest,
)
from messaging_service.infrastructure.db.repositories._cursor import encode_cursor
from messaging_service.services import conversation_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    body: CreateConversationRequest,
    identity: CurrentIdentity,
    uow: UoWDep,
    response: Response,
) -> ConversationResponse:
    conv, created = await conversation_service.get_or_create_conversation(
        identity, body.participant_id, uow,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.get("", response_model=PaginatedResponse[ConversationSummaryResponse])
async def list_conversations(
    identity: CurrentIdentity,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[ConversationSummaryResponse]:
    summaries = await conversation_service.list_conversations(identity, cursor, limit, uow)
    next_cursor = None
    if len(summaries) == limit:
        last = summaries[-1].conversation
        next_cursor = encode_cursor(last.last_message_at, last.id)
    return PaginatedResponse[ConversationSummaryResponse](
        items=[ConversationSummaryResponse.from_dto(s) for s in summaries],
        next_cursor=next_cursor,
    )


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    identity: CurrentIdentity,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(conversation_id, identity, uow)
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    identity: CurrentIdentity,
    uow: UoWDep,
    runtime: RuntimeDep,
) -> Response:
    await conversation_service.delete_conversation(conversation_id, identity, uow)
    for member_id in runtime.rooms.members(conversation_id):
        await runtime.rooms.leave(conversation_id, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
