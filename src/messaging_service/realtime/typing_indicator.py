from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import AuthorizationError
from messaging_service.realtime.fanout import Broadcaster
from messaging_service.realtime.state import RuntimeState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0


class TypingIndicatorTracker:
    """Ephemeral per-conversation typing state with self-expiring entries.

    Each (conversation, identity) entry owns one timer task. Restarting typing
    replaces the timer; any stop cancels it; expiry acts as an explicit stop.
    """

    def __init__(
        self,
        state: RuntimeState,
        broadcaster: Broadcaster,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._state = state
        self._broadcaster = broadcaster
        self._timeout = timeout

    def typing_in(self, conversation_id: UUID) -> set[UUID]:
        return set(self._state.typing.get(conversation_id, {}))

    def is_typing(self, conversation_id: UUID, identity_id: UUID) -> bool:
        return identity_id in self._state.typing.get(conversation_id, {})

    async def start_typing(self, conversation_id: UUID, identity: Identity) -> None:
        if identity.id not in self._state.rooms.get(conversation_id, ()):
            raise AuthorizationError("Join the conversation before typing")

        entries = self._state.typing.setdefault(conversation_id, {})
        previous = entries.get(identity.id)
        if previous is not None:
            previous.cancel()
        entries[identity.id] = asyncio.create_task(
            self._expire(conversation_id, identity.id),
            name=f"typing-expiry-{conversation_id}-{identity.id}",
        )
        if previous is not None:
            return

        logger.debug("%s is typing in %s", identity.id, conversation_id)
        await self._broadcaster.to_room(
            conversation_id,
            "user_typing",
            {
                "conversation_id": str(conversation_id),
                "user_id": str(identity.id),
                "user_name": identity.display_name,
            },
            exclude=identity.id,
        )

    async def stop_typing(self, conversation_id: UUID, identity_id: UUID) -> bool:
        """Clear the entry and notify the room. Returns False if it was not typing."""
        if not self._clear(conversation_id, identity_id):
            return False
        await self._notify_stopped(conversation_id, identity_id)
        return True

    def cancel_all(self) -> None:
        for entries in self._state.typing.values():
            for task in entries.values():
                task.cancel()
        self._state.typing.clear()

    def _clear(self, conversation_id: UUID, identity_id: UUID) -> bool:
        entries = self._state.typing.get(conversation_id)
        if not entries:
            return False
        task = entries.pop(identity_id, None)
        if not entries:
            del self._state.typing[conversation_id]
        if task is None:
            return False
        if task is not asyncio.current_task():
            task.cancel()
        return True

    async def _expire(self, conversation_id: UUID, identity_id: UUID) -> None:
        await asyncio.sleep(self._timeout)
        if self._clear(conversation_id, identity_id):
            logger.debug("Typing expired for %s in %s", identity_id, conversation_id)
            await self._notify_stopped(conversation_id, identity_id)

    async def _notify_stopped(self, conversation_id: UUID, identity_id: UUID) -> None:
        logger.debug("%s stopped typing in %s", identity_id, conversation_id)
        await self._broadcaster.to_room(
            conversation_id,
            "user_stopped_typing",
            {"conversation_id": str(conversation_id), "user_id": str(identity_id)},
            exclude=identity_id,
        )
