from __future__ import annotations

from messaging_service.domain.entities.profile import Profile
from messaging_service.infrastructure.db.models.profile import ProfileModel


def model_to_entity(model: ProfileModel) -> Profile:
    return Profile(
        id=model.id,
        display_name=model.display_name,
        role=model.role,
        tenant_id=model.tenant_id,
        avatar_ref=model.avatar_ref,
    )


def entity_to_model(entity: Profile) -> ProfileModel:
    return ProfileModel(
        id=entity.id,
        display_name=entity.display_name,
        role=entity.role,
        tenant_id=entity.tenant_id,
        avatar_ref=entity.avatar_ref,
    )
