from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    initiator_id: UUID
    counterpart_id: UUID
    tenant_id: UUID
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime

    def has_participant(self, identity_id: UUID) -> bool:
        return identity_id in (self.initiator_id, self.counterpart_id)

    def other_participant(self, identity_id: UUID) -> UUID:
        """Return the participant on the other side of ``identity_id``."""
        if identity_id == self.initiator_id:
            return self.counterpart_id
        if identity_id == self.counterpart_id:
            return self.initiator_id
        raise ValueError(f"{identity_id} is not a participant of {self.id}")
