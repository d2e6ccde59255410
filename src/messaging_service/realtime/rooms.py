from __future__ import annotations

import logging
from uuid import UUID

from messaging_service.application.dto.identity import Identity
from messaging_service.application.uow import UoWFactory
from messaging_service.domain.entities.conversation import Conversation
from messaging_service.realtime.receipts import ReadReceiptCoordinator
from messaging_service.realtime.state import RuntimeState
from messaging_service.realtime.typing_indicator import TypingIndicatorTracker
from messaging_service.services import conversation_service

logger = logging.getLogger(__name__)


class RoomMembershipManager:
    """Gates and tracks which identities are viewing which conversation."""

    def __init__(
        self,
        state: RuntimeState,
        uow_factory: UoWFactory,
        typing: TypingIndicatorTracker,
        receipts: ReadReceiptCoordinator,
    ) -> None:
        self._state = state
        self._uow_factory = uow_factory
        self._typing = typing
        self._receipts = receipts

    def members(self, conversation_id: UUID) -> set[UUID]:
        return self._state.room_members(conversation_id)

    def is_member(self, conversation_id: UUID, identity_id: UUID) -> bool:
        return identity_id in self._state.rooms.get(conversation_id, ())

    async def join(self, conversation_id: UUID, identity: Identity) -> Conversation:
        """Enter the room of a conversation the identity takes part in.

        Joining counts as viewing, so unread messages are marked read before
        the membership is recorded. Re-joining is harmless.
        """
        async with self._uow_factory() as uow:
            conversation = await conversation_service.get_conversation(
                conversation_id, identity, uow,
            )

        await self._receipts.mark_read(conversation_id, identity)

        self._state.rooms.setdefault(conversation_id, set()).add(identity.id)
        logger.info("%s joined conversation %s", identity.id, conversation_id)
        return conversation

    async def leave(self, conversation_id: UUID, identity_id: UUID) -> bool:
        """Leave the room, clearing any typing indicator. Returns False if not a member."""
        members = self._state.rooms.get(conversation_id)
        if not members or identity_id not in members:
            return False
        members.discard(identity_id)
        if not members:
            del self._state.rooms[conversation_id]

        await self._typing.stop_typing(conversation_id, identity_id)
        logger.info("%s left conversation %s", identity_id, conversation_id)
        return True

    async def leave_all(self, identity_id: UUID) -> int:
        left = 0
        for conversation_id in self._state.rooms_of(identity_id):
            if await self.leave(conversation_id, identity_id):
                left += 1
        return left
