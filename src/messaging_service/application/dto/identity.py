from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from messaging_service.domain.entities.profile import Profile
from messaging_service.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """Subject extracted from a verified bearer token."""

    subject_id: UUID
    claims: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated participant, resolved once per connection."""

    id: UUID
    display_name: str
    role: Role
    tenant_id: UUID
    avatar_ref: str | None = None

    @property
    def is_tenant_admin(self) -> bool:
        return self.role == Role.TENANT_ADMIN

    @classmethod
    def from_profile(cls, profile: Profile) -> Identity:
        return cls(
            id=profile.id,
            display_name=profile.display_name,
            role=Role(profile.role),
            tenant_id=profile.tenant_id,
            avatar_ref=profile.avatar_ref,
        )
