from __future__ import annotations

import uuid
from datetime import datetime, timezone

from messaging_service.application.dto.conversation import ConversationSummaryDTO
from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import NotFoundError, ValidationError
from messaging_service.application.policies.permissions import (
    assert_can_delete,
    assert_participant,
)
from messaging_service.application.uow import UnitOfWork
from messaging_service.domain.entities.conversation import Conversation
from messaging_service.domain.value_objects.enums import Role


async def get_or_create_conversation(
    identity: Identity,
    participant_id: uuid.UUID,
    uow: UnitOfWork,
) -> tuple[Conversation, bool]:
    """Return the conversation between the caller and ``participant_id``, creating it if needed.

    The caller and the participant must belong to the same tenant and hold
    complementary roles (one initiator, one counterpart).
    Returns (conversation, created).
    """
    if participant_id == identity.id:
        raise ValidationError("Cannot start a conversation with yourself")

    other = await uow.profiles.get_by_id(participant_id)
    if other is None:
        raise NotFoundError("Participant not found")
    if other.tenant_id != identity.tenant_id:
        raise ValidationError("Participant belongs to another tenant")

    if identity.role == Role.INITIATOR and other.role == Role.COUNTERPART:
        initiator_id, counterpart_id = identity.id, other.id
    elif identity.role == Role.COUNTERPART and other.role == Role.INITIATOR:
        initiator_id, counterpart_id = other.id, identity.id
    else:
        raise ValidationError("A conversation needs one initiator and one counterpart")

    existing = await uow.conversations.get_by_pair(initiator_id, counterpart_id)
    if existing is not None:
        return existing, False

    now = datetime.now(timezone.utc)
    conversation, created = await uow.conversations_w.get_or_create(
        Conversation(
            id=uuid.uuid4(),
            initiator_id=initiator_id,
            counterpart_id=counterpart_id,
            tenant_id=identity.tenant_id,
            last_message_at=now,
            created_at=now,
            updated_at=now,
        )
    )
    if created:
        await uow.commit()
    return conversation, created


async def list_conversations(
    identity: Identity,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> list[ConversationSummaryDTO]:
    conversations = await uow.conversations.list_for_identity(
        identity.id, cursor=cursor, limit=limit,
    )
    summaries: list[ConversationSummaryDTO] = []
    for conversation in conversations:
        last = await uow.messages.last_message(conversation.id)
        unread = await uow.messages.count_unread(
            identity.id, conversation_id=conversation.id,
        )
        summaries.append(
            ConversationSummaryDTO(
                conversation=conversation,
                peer_id=conversation.other_participant(identity.id),
                unread_count=unread,
                last_message=last.text if last else None,
                last_message_sender_id=last.sender_id if last else None,
                last_message_at=last.created_at if last else conversation.last_message_at,
            )
        )
    return summaries


async def get_conversation(
    conversation_id: uuid.UUID,
    identity: Identity,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    return assert_participant(identity, conversation)


async def delete_conversation(
    conversation_id: uuid.UUID,
    identity: Identity,
    uow: UnitOfWork,
) -> None:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_can_delete(identity, conversation)
    await uow.conversations_w.delete(conversation_id)
    await uow.commit()
