from __future__ import annotations

import uuid
from datetime import datetime

from messaging_service.application.dto.identity import Identity
from messaging_service.application.policies.permissions import assert_participant
from messaging_service.application.uow import UnitOfWork
from messaging_service.domain.entities.conversation import Conversation


async def mark_read(
    conversation_id: uuid.UUID,
    reader: Identity,
    now: datetime,
    uow: UnitOfWork,
) -> tuple[Conversation, int]:
    """Mark every unread message addressed to ``reader`` as read.

    Returns (conversation, read_count).
    """
    conversation = assert_participant(
        reader, await uow.conversations.get_by_id(conversation_id),
    )
    read_count = await uow.messages_w.mark_read(conversation_id, reader.id, now)
    await uow.commit()
    return conversation, read_count
