from __future__ import annotations

import uuid

from messaging_service.application.uow import UnitOfWork


async def count_unread(identity_id: uuid.UUID, uow: UnitOfWork) -> int:
    """Unread total across all conversations, always read from the store."""
    return await uow.messages.count_unread(identity_id)
