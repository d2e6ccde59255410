"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from messaging_service.application.dto.identity import Identity
from messaging_service.domain.entities.message import Message


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # join_conversation | send_message | mark_as_read | typing | ...
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # new_message | messages_read | user_typing | error | pong | ...
    data: dict[str, Any] = {}


class ConversationRef(BaseModel):
    conversation_id: UUID


class SendMessageData(BaseModel):
    conversation_id: UUID
    receiver_id: UUID
    message_text: str | None = None


class OnlineStatusQuery(BaseModel):
    user_id: UUID


def message_payload(msg: Message) -> dict[str, Any]:
    return {
        "id": str(msg.id),
        "conversation_id": str(msg.conversation_id),
        "sender_id": str(msg.sender_id),
        "receiver_id": str(msg.receiver_id),
        "message_text": msg.text,
        "is_read": msg.is_read,
        "read_at": msg.read_at.isoformat() if msg.read_at else None,
        "created_at": msg.created_at.isoformat(),
    }


def sender_payload(identity: Identity) -> dict[str, Any]:
    return {
        "id": str(identity.id),
        "name": identity.display_name,
        "avatar_url": identity.avatar_ref,
    }
