from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from messaging_service.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]: ...

    async def count_unread(
        self, receiver_id: UUID, *, conversation_id: UUID | None = None
    ) -> int: ...

    async def last_message(self, conversation_id: UUID) -> Message | None: ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def mark_read(
        self, conversation_id: UUID, receiver_id: UUID, read_at: datetime
    ) -> int:
        """Flag every unread message addressed to ``receiver_id`` as read. Return the count updated."""
        ...
