"""Wires one RuntimeState and every realtime component around it."""
from __future__ import annotations

import logging
from typing import Literal
from uuid import UUID

from messaging_service.application.ports.auth import IdentityProvider
from messaging_service.application.ports.bus import EventPublisher
from messaging_service.application.ports.clock import Clock, SystemClock
from messaging_service.application.uow import UoWFactory
from messaging_service.realtime.dispatcher import MessageDispatcher
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.realtime.gateway import ConnectionGateway
from messaging_service.realtime.presence import PresenceRegistry
from messaging_service.realtime.receipts import ReadReceiptCoordinator
from messaging_service.realtime.rooms import RoomMembershipManager
from messaging_service.realtime.state import RuntimeState
from messaging_service.realtime.typing_indicator import (
    DEFAULT_TIMEOUT_SECONDS,
    TypingIndicatorTracker,
)
from messaging_service.realtime.unread import UnreadCountOracle
from messaging_service.realtime.wire import EventRouter

logger = logging.getLogger(__name__)


class ChatRuntime:
    """Realtime core of one server process.

    Independent instances share nothing, which keeps tests isolated. Several
    processes only see each other's fan-out through an attached backplane
    publisher; presence, rooms and typing stay process-local.
    """

    def __init__(
        self,
        uow_factory: UoWFactory,
        identity_provider: IdentityProvider,
        *,
        typing_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        presence_fanout: Literal["all", "peers"] = "all",
        clock: Clock | None = None,
        publisher: EventPublisher | None = None,
        fanout_channel: str = "",
        node_id: str | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.state = RuntimeState()
        clock = clock or SystemClock()

        self.broadcaster = Broadcaster(self.state, publisher, fanout_channel, node_id)
        self.presence = PresenceRegistry(
            self.state,
            self.broadcaster,
            peer_resolver=self._conversation_peers if presence_fanout == "peers" else None,
        )
        self.typing = TypingIndicatorTracker(self.state, self.broadcaster, typing_timeout)
        self.unread = UnreadCountOracle(uow_factory, self.broadcaster)
        self.receipts = ReadReceiptCoordinator(uow_factory, self.broadcaster, self.unread, clock)
        self.rooms = RoomMembershipManager(self.state, uow_factory, self.typing, self.receipts)
        self.dispatcher = MessageDispatcher(
            uow_factory, self.broadcaster, self.typing, self.unread, clock,
        )
        self.gateway = ConnectionGateway(identity_provider, self.presence, self.rooms)
        self.events = EventRouter(self)

    async def _conversation_peers(self, identity_id: UUID) -> set[UUID]:
        async with self.uow_factory() as uow:
            return await uow.conversations.list_peer_ids(identity_id)

    async def shutdown(self) -> None:
        self.typing.cancel_all()
        logger.info("Realtime runtime stopped")
