from __future__ import annotations

import logging
from typing import Awaitable, Callable
from uuid import UUID

from messaging_service.application.exceptions import StoreError
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.realtime.state import Connection, RuntimeState

logger = logging.getLogger(__name__)

PeerResolver = Callable[[UUID], Awaitable[set[UUID]]]


class PresenceRegistry:
    """Tracks which identities own at least one live connection.

    Online/offline transitions are announced to every connected identity, or
    only to conversation peers when a ``peer_resolver`` is supplied.
    """

    def __init__(
        self,
        state: RuntimeState,
        broadcaster: Broadcaster,
        peer_resolver: PeerResolver | None = None,
    ) -> None:
        self._state = state
        self._broadcaster = broadcaster
        self._peer_resolver = peer_resolver

    def is_online(self, identity_id: UUID) -> bool:
        return bool(self._state.connections.get(identity_id))

    def connections(self, identity_id: UUID) -> frozenset[Connection]:
        return frozenset(self._state.connections.get(identity_id, ()))

    async def add_connection(self, identity_id: UUID, conn: Connection) -> bool:
        """Register ``conn``. Returns True if this made the identity come online."""
        first = identity_id not in self._state.connections
        self._state.connections.setdefault(identity_id, set()).add(conn)
        self._check_entry(identity_id)
        logger.info(
            "Connection added for %s (devices=%d)",
            identity_id, len(self._state.connections[identity_id]),
        )
        if first:
            await self._announce(identity_id, online=True)
        return first

    async def remove_connection(self, identity_id: UUID, conn: Connection) -> bool:
        """Unregister ``conn``. Returns True if the identity went offline."""
        conns = self._state.connections.get(identity_id)
        if not conns or conn not in conns:
            return False
        conns.discard(conn)
        if not conns:
            del self._state.connections[identity_id]
        self._check_entry(identity_id)

        # Another device of the same identity may still be connected
        if self.is_online(identity_id):
            logger.info("Connection removed for %s (devices=%d)", identity_id, len(conns))
            return False
        logger.info("Identity %s went offline", identity_id)
        await self._announce(identity_id, online=False)
        return True

    def _check_entry(self, identity_id: UUID) -> None:
        conns = self._state.connections.get(identity_id)
        assert conns is None or len(conns) > 0, f"empty presence entry for {identity_id}"

    async def _announce(self, identity_id: UUID, *, online: bool) -> None:
        event = "user_online_status" if online else "user_offline"
        data = {"user_id": str(identity_id), "online": online}

        if self._peer_resolver is None:
            await self._broadcaster.to_everyone(event, data, exclude=identity_id)
            return

        try:
            peers = await self._peer_resolver(identity_id)
        except StoreError:
            logger.exception("Could not resolve peers of %s, skipping %s", identity_id, event)
            return
        for peer_id in peers:
            await self._broadcaster.to_identity(peer_id, event, data)
