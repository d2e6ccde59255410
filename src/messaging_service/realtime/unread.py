from __future__ import annotations

import logging
from uuid import UUID

from messaging_service.application.exceptions import StoreError
from messaging_service.application.uow import UoWFactory
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.services import unread_service

logger = logging.getLogger(__name__)


class UnreadCountOracle:
    """Per-identity unread totals, always recomputed from the store."""

    def __init__(self, uow_factory: UoWFactory, broadcaster: Broadcaster) -> None:
        self._uow_factory = uow_factory
        self._broadcaster = broadcaster

    async def count(self, identity_id: UUID) -> int:
        async with self._uow_factory() as uow:
            return await unread_service.count_unread(identity_id, uow)

    async def push(self, identity_id: UUID) -> int | None:
        """Recompute and send ``unread_count_updated`` to the identity's personal channel.

        A store failure here is logged and swallowed: the operation that
        triggered the push has already been committed.
        """
        try:
            count = await self.count(identity_id)
        except StoreError:
            logger.exception("Unread recompute failed for %s", identity_id)
            return None
        await self._broadcaster.to_identity(
            identity_id, "unread_count_updated", {"count": count},
        )
        return count
