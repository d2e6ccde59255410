from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from messaging_service.application.dto.conversation import ConversationSummaryDTO


class CreateConversationRequest(BaseModel):
    participant_id: UUID


class ConversationResponse(BaseModel):
    id: UUID
    initiator_id: UUID
    counterpart_id: UUID
    tenant_id: UUID
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ConversationSummaryResponse(ConversationResponse):
    peer_id: UUID
    unread_count: int
    last_message: str | None = None
    last_message_sender_id: UUID | None = None

    @classmethod
    def from_dto(cls, dto: ConversationSummaryDTO) -> ConversationSummaryResponse:
        conv = dto.conversation
        return cls(
            id=conv.id,
            initiator_id=conv.initiator_id,
            counterpart_id=conv.counterpart_id,
            tenant_id=conv.tenant_id,
            last_message_at=dto.last_message_at,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
            peer_id=dto.peer_id,
            unread_count=dto.unread_count,
            last_message=dto.last_message,
            last_message_sender_id=dto.last_message_sender_id,
        )
