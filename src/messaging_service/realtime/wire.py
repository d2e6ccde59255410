"""Translates inbound envelope events into calls on the realtime components."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

import pydantic

from messaging_service.application.exceptions import AppError, StoreError, ValidationError
from messaging_service.infrastructure.ws.protocol import (
    ConversationRef,
    OnlineStatusQuery,
    SendMessageData,
    WsInbound,
)
from messaging_service.realtime.state import Connection

if TYPE_CHECKING:
    from messaging_service.realtime.runtime import ChatRuntime

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, dict[str, Any]], Awaitable[None]]
M = TypeVar("M", bound=pydantic.BaseModel)


def _parse(model: type[M], data: dict[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid payload") from exc


class EventRouter:
    def __init__(self, runtime: ChatRuntime) -> None:
        self._rt = runtime
        self._handlers: dict[str, Handler] = {
            "join_conversation": self._join,
            "leave_conversation": self._leave,
            "send_message": self._send_message,
            "mark_as_read": self._mark_as_read,
            "typing": self._typing,
            "stop_typing": self._stop_typing,
            "check_online_status": self._check_online_status,
            "get_unread_count": self._get_unread_count,
            "ping": self._ping,
        }

    @property
    def events(self) -> frozenset[str]:
        return frozenset(self._handlers)

    async def dispatch(self, conn: Connection, msg: WsInbound) -> None:
        """Run the handler for one inbound event; errors go to the caller only."""
        handler = self._handlers.get(msg.type)
        if handler is None:
            await conn.send("error", {"message": f"Unknown event: {msg.type}"})
            return
        try:
            await handler(conn, msg.data)
        except StoreError as exc:
            logger.exception("Store failure on %s for %s", msg.type, conn.identity.id)
            await conn.send("error", {"message": exc.detail})
        except AppError as exc:
            logger.info("%s refused for %s: %s", msg.type, conn.identity.id, exc.detail)
            await conn.send("error", {"message": exc.detail})

    async def _join(self, conn: Connection, data: dict[str, Any]) -> None:
        ref = _parse(ConversationRef, data)
        conversation = await self._rt.rooms.join(ref.conversation_id, conn.identity)
        await conn.send(
            "joined_conversation",
            {
                "conversation_id": str(ref.conversation_id),
                "message": "Successfully joined conversation",
            },
        )
        other_id = conversation.other_participant(conn.identity.id)
        await conn.send(
            "user_online_status",
            {
                "conversation_id": str(ref.conversation_id),
                "user_id": str(other_id),
                "online": self._rt.presence.is_online(other_id),
            },
        )

    async def _leave(self, conn: Connection, data: dict[str, Any]) -> None:
        ref = _parse(ConversationRef, data)
        await self._rt.rooms.leave(ref.conversation_id, conn.identity.id)
        await conn.send("left_conversation", {"conversation_id": str(ref.conversation_id)})

    async def _send_message(self, conn: Connection, data: dict[str, Any]) -> None:
        req = _parse(SendMessageData, data)
        await self._rt.dispatcher.send(
            req.conversation_id, conn.identity, req.receiver_id, req.message_text,
        )

    async def _mark_as_read(self, conn: Connection, data: dict[str, Any]) -> None:
        ref = _parse(ConversationRef, data)
        await self._rt.receipts.mark_read(ref.conversation_id, conn.identity)

    async def _typing(self, conn: Connection, data: dict[str, Any]) -> None:
        ref = _parse(ConversationRef, data)
        await self._rt.typing.start_typing(ref.conversation_id, conn.identity)

    async def _stop_typing(self, conn: Connection, data: dict[str, Any]) -> None:
        ref = _parse(ConversationRef, data)
        await self._rt.typing.stop_typing(ref.conversation_id, conn.identity.id)

    async def _check_online_status(self, conn: Connection, data: dict[str, Any]) -> None:
        query = _parse(OnlineStatusQuery, data)
        await conn.send(
            "user_online_status",
            {"user_id": str(query.user_id), "online": self._rt.presence.is_online(query.user_id)},
        )

    async def _get_unread_count(self, conn: Connection, data: dict[str, Any]) -> None:
        count = await self._rt.unread.count(conn.identity.id)
        await conn.send("unread_count_updated", {"count": count})

    async def _ping(self, conn: Connection, data: dict[str, Any]) -> None:
        await conn.send("pong", {})
