from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from messaging_service.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_by_pair(
        self, initiator_id: UUID, counterpart_id: UUID,
    ) -> Conversation | None: ...

    async def list_for_identity(
        self, identity_id: UUID, *, cursor: str | None = None, limit: int = 20
    ) -> list[Conversation]: ...

    async def list_peer_ids(self, identity_id: UUID) -> set[UUID]:
        """Ids of everyone sharing a conversation with ``identity_id``."""
        ...


class ConversationWriter(Protocol):
    async def get_or_create(
        self, conversation: Conversation
    ) -> tuple[Conversation, bool]:
        """Insert unless the (initiator, counterpart) pair exists. Return (conversation, created)."""
        ...

    async def touch_last_message_at(
        self, conversation_id: UUID, ts: datetime
    ) -> None: ...

    async def delete(self, conversation_id: UUID) -> None: ...
