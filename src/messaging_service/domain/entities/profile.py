from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Profile:
    id: UUID
    display_name: str
    role: str
    tenant_id: UUID
    avatar_ref: str | None
