from __future__ import annotations

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import AuthorizationError, NotFoundError
from messaging_service.domain.entities.conversation import Conversation


def assert_participant(
    identity: Identity,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or identity is not one of its two parties."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    if not conversation.has_participant(identity.id):
        raise AuthorizationError("Not a participant of this conversation")

    return conversation


def assert_can_delete(
    identity: Identity,
    conversation: Conversation | None,
) -> Conversation:
    if conversation is None:
        raise NotFoundError("Conversation not found")

    # Tenant admins may remove any conversation in their own tenant
    if identity.is_tenant_admin and identity.tenant_id == conversation.tenant_id:
        return conversation

    return assert_participant(identity, conversation)
