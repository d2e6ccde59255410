"""Process-local realtime state shared by the presence, room and typing components."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from messaging_service.application.dto.identity import Identity


class Connection(Protocol):
    """A transport channel owned by exactly one identity for its lifetime."""

    identity: Identity

    async def send(self, event: str, data: dict[str, Any]) -> None: ...


@dataclass
class RuntimeState:
    # identity id -> live connections; an entry exists iff its set is non-empty
    connections: dict[UUID, set[Connection]] = field(default_factory=dict)
    # conversation id -> identity ids currently viewing it
    rooms: dict[UUID, set[UUID]] = field(default_factory=dict)
    # conversation id -> identity id -> pending inactivity timer
    typing: dict[UUID, dict[UUID, asyncio.Task[None]]] = field(default_factory=dict)

    def room_members(self, conversation_id: UUID) -> set[UUID]:
        return set(self.rooms.get(conversation_id, ()))

    def rooms_of(self, identity_id: UUID) -> list[UUID]:
        return [cid for cid, members in self.rooms.items() if identity_id in members]
