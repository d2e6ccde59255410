from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from messaging_service.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class ConversationSummaryDTO:
    """A conversation as seen by one of its participants."""

    conversation: Conversation
    peer_id: UUID
    unread_count: int
    last_message: str | None = None
    last_message_sender_id: UUID | None = None
    last_message_at: datetime | None = None
