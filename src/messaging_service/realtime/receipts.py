from __future__ import annotations

import logging
from uuid import UUID

from messaging_service.application.dto.identity import Identity
from messaging_service.application.ports.clock import Clock, SystemClock
from messaging_service.application.uow import UoWFactory
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.realtime.unread import UnreadCountOracle
from messaging_service.services import read_state_service

logger = logging.getLogger(__name__)


class ReadReceiptCoordinator:
    def __init__(
        self,
        uow_factory: UoWFactory,
        broadcaster: Broadcaster,
        unread: UnreadCountOracle,
        clock: Clock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._broadcaster = broadcaster
        self._unread = unread
        self._clock = clock or SystemClock()

    async def mark_read(self, conversation_id: UUID, reader: Identity) -> int:
        """Mark everything addressed to ``reader`` in the conversation as read.

        Notifies the other participant with ``messages_read`` and pushes the
        reader's recomputed unread total. Safe to repeat: a second call reports
        ``read_count=0``.
        """
        async with self._uow_factory() as uow:
            conversation, read_count = await read_state_service.mark_read(
                conversation_id, reader, self._clock.now(), uow,
            )
        logger.info(
            "%s read %d message(s) in %s", reader.id, read_count, conversation_id,
        )

        await self._broadcaster.to_identity(
            conversation.other_participant(reader.id),
            "messages_read",
            {
                "conversation_id": str(conversation_id),
                "reader_id": str(reader.id),
                "read_count": read_count,
            },
        )
        await self._unread.push(reader.id)
        return read_count
