from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class SendMessageRequest(BaseModel):
    receiver_id: UUID
    message_text: str | None = None


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    receiver_id: UUID
    # Entities call it ``text``; the wire calls it ``message_text``
    message_text: str = Field(validation_alias=AliasChoices("text", "message_text"))
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MarkReadResponse(BaseModel):
    conversation_id: UUID
    read_count: int


class UnreadCountResponse(BaseModel):
    count: int
