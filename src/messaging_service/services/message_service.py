from __future__ import annotations

import uuid
from datetime import datetime

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from messaging_service.application.policies.permissions import assert_participant
from messaging_service.application.uow import UnitOfWork
from messaging_service.domain.entities.message import Message


def normalize_text(text: str | None) -> str:
    """Trim message text, rejecting empty or whitespace-only input."""
    body = (text or "").strip()
    if not body:
        raise ValidationError("Message text cannot be empty")
    return body


async def create_message(
    conversation_id: uuid.UUID,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    text: str,
    now: datetime,
    uow: UnitOfWork,
) -> Message:
    """Persist an unread message from one participant to the other."""
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    if not conversation.has_participant(sender_id):
        raise AuthorizationError("Not a participant of this conversation")
    if receiver_id != conversation.other_participant(sender_id):
        raise ValidationError("Receiver must be the other participant")

    msg = await uow.messages_w.create(
        Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            text=normalize_text(text),
            is_read=False,
            read_at=None,
            created_at=now,
        )
    )
    await uow.conversations_w.touch_last_message_at(conversation_id, msg.created_at)
    await uow.commit()
    return msg


async def list_messages(
    conversation_id: uuid.UUID,
    identity: Identity,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_participant(identity, conversation)
    return await uow.messages.list_messages(
        conversation_id, cursor=cursor, limit=limit,
    )
