from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from messaging_service.application.dto.identity import Identity
from messaging_service.application.ports.clock import Clock, SystemClock
from messaging_service.application.uow import UoWFactory
from messaging_service.domain.entities.message import Message
from messaging_service.infrastructure.ws.protocol import message_payload, sender_payload
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.realtime.typing_indicator import TypingIndicatorTracker
from messaging_service.realtime.unread import UnreadCountOracle
from messaging_service.services import message_service

logger = logging.getLogger(__name__)


class _KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[UUID, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def hold(self, key: UUID) -> AsyncIterator[None]:
        lock, users = self._locks.get(key) or (asyncio.Lock(), 0)
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)


class MessageDispatcher:
    """Persists new messages, then fans them out to the room and the receiver.

    Sends into the same conversation are serialized so that broadcast order
    always matches persistence order.
    """

    def __init__(
        self,
        uow_factory: UoWFactory,
        broadcaster: Broadcaster,
        typing: TypingIndicatorTracker,
        unread: UnreadCountOracle,
        clock: Clock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._broadcaster = broadcaster
        self._typing = typing
        self._unread = unread
        self._clock = clock or SystemClock()
        self._ordering = _KeyedLock()

    async def send(
        self,
        conversation_id: UUID,
        sender: Identity,
        receiver_id: UUID,
        text: str | None,
    ) -> Message:
        body = message_service.normalize_text(text)

        async with self._ordering.hold(conversation_id):
            async with self._uow_factory() as uow:
                msg = await message_service.create_message(
                    conversation_id, sender.id, receiver_id, body, self._clock.now(), uow,
                )
            logger.info("Message %s sent by %s in %s", msg.id, sender.id, conversation_id)

            await self._typing.stop_typing(conversation_id, sender.id)

            payload = message_payload(msg)
            await self._broadcaster.to_room(
                conversation_id,
                "new_message",
                {"conversation_id": str(conversation_id), "message": payload},
            )
            await self._broadcaster.to_identity(
                receiver_id,
                "new_message_notification",
                {
                    "conversation_id": str(conversation_id),
                    "message": payload,
                    "sender": sender_payload(sender),
                },
            )

        await self._unread.push(receiver_id)
        return msg
