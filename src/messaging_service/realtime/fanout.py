"""Delivery of server events to personal channels, rooms and everyone.

Local delivery walks the presence map in RuntimeState. When a publisher is
attached, every fan-out is also relayed over the backplane so other server
processes can deliver it to their own connections.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable
from uuid import UUID

from messaging_service.application.ports.bus import EventPublisher
from messaging_service.realtime.state import Connection, RuntimeState

logger = logging.getLogger(__name__)

TARGET_IDENTITY = "identity"
TARGET_ROOM = "room"
TARGET_EVERYONE = "everyone"


class Broadcaster:
    def __init__(
        self,
        state: RuntimeState,
        publisher: EventPublisher | None = None,
        channel: str = "",
        node_id: str | None = None,
    ) -> None:
        self._state = state
        self._publisher = publisher
        self._channel = channel
        self.node_id = node_id or uuid.uuid4().hex

    def attach_publisher(self, publisher: EventPublisher, channel: str) -> None:
        self._publisher = publisher
        self._channel = channel

    async def to_identity(
        self,
        identity_id: UUID,
        event: str,
        data: dict[str, Any],
        *,
        relay: bool = True,
    ) -> None:
        """Send to every connection of one identity (its personal channel)."""
        await self._deliver(self._state.connections.get(identity_id, ()), event, data)
        if relay:
            await self._relay(TARGET_IDENTITY, identity_id, None, event, data)

    async def to_room(
        self,
        conversation_id: UUID,
        event: str,
        data: dict[str, Any],
        *,
        exclude: UUID | None = None,
        relay: bool = True,
    ) -> None:
        """Send to all connections of the identities viewing a conversation."""
        conns: list[Connection] = []
        for identity_id in self._state.room_members(conversation_id):
            if identity_id != exclude:
                conns.extend(self._state.connections.get(identity_id, ()))
        await self._deliver(conns, event, data)
        if relay:
            await self._relay(TARGET_ROOM, conversation_id, exclude, event, data)

    async def to_everyone(
        self,
        event: str,
        data: dict[str, Any],
        *,
        exclude: UUID | None = None,
        relay: bool = True,
    ) -> None:
        conns: list[Connection] = []
        for identity_id, owned in self._state.connections.items():
            if identity_id != exclude:
                conns.extend(owned)
        await self._deliver(conns, event, data)
        if relay:
            await self._relay(TARGET_EVERYONE, None, exclude, event, data)

    async def relay_inbound(self, event_type: str, payload: dict[str, Any]) -> None:
        """Deliver a fan-out published by another node to local connections."""
        if payload.get("origin") == self.node_id:
            return
        target = payload.get("target")
        data = payload.get("data") or {}
        target_id = _as_uuid(payload.get("target_id"))
        exclude = _as_uuid(payload.get("exclude"))

        if target == TARGET_IDENTITY and target_id is not None:
            await self.to_identity(target_id, event_type, data, relay=False)
        elif target == TARGET_ROOM and target_id is not None:
            await self.to_room(target_id, event_type, data, exclude=exclude, relay=False)
        elif target == TARGET_EVERYONE:
            await self.to_everyone(event_type, data, exclude=exclude, relay=False)
        else:
            logger.warning("Dropping relayed event %s with target %r", event_type, target)

    async def _deliver(
        self,
        conns: Iterable[Connection],
        event: str,
        data: dict[str, Any],
    ) -> None:
        # Snapshot: a send may suspend while a disconnect mutates the set
        for conn in list(conns):
            try:
                await conn.send(event, data)
            except Exception:
                # The connection's own read loop notices the closure and unregisters it
                logger.debug("Dropping %s for dead connection %r", event, conn, exc_info=True)

    async def _relay(
        self,
        target: str,
        target_id: UUID | None,
        exclude: UUID | None,
        event: str,
        data: dict[str, Any],
    ) -> None:
        if self._publisher is None:
            return
        payload = {
            "event_type": event,
            "origin": self.node_id,
            "target": target,
            "target_id": str(target_id) if target_id else None,
            "exclude": str(exclude) if exclude else None,
            "data": data,
        }
        try:
            await self._publisher.publish(self._channel, payload)
        except Exception:
            logger.exception("Backplane publish failed for %s", event)


def _as_uuid(raw: Any) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None
