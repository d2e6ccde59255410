from __future__ import annotations

from messaging_service.domain.entities.conversation import Conversation
from messaging_service.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        initiator_id=model.initiator_id,
        counterpart_id=model.counterpart_id,
        tenant_id=model.tenant_id,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        initiator_id=entity.initiator_id,
        counterpart_id=entity.counterpart_id,
        tenant_id=entity.tenant_id,
        last_message_at=entity.last_message_at,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
