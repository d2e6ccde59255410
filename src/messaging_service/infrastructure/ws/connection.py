"""Binds one accepted WebSocket to the identity that owns it."""
from __future__ import annotations

from typing import Any

from fastapi import WebSocket

from messaging_service.application.dto.identity import Identity
from messaging_service.infrastructure.ws.protocol import WsOutbound


class WebSocketConnection:
    def __init__(self, websocket: WebSocket, identity: Identity) -> None:
        self.websocket = websocket
        self.identity = identity

    async def send(self, event: str, data: dict[str, Any]) -> None:
        payload = WsOutbound(type=event, data=data)
        await self.websocket.send_text(payload.model_dump_json())

    def __repr__(self) -> str:
        return f"WebSocketConnection(identity={self.identity.id})"
