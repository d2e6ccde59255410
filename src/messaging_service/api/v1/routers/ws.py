from __future__ import annotations

import asyncio
import logging

import pydantic
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from messaging_service.application.exceptions import AuthError
from messaging_service.config import settings
from messaging_service.infrastructure.ws.connection import WebSocketConnection
from messaging_service.infrastructure.ws.protocol import WsInbound
from messaging_service.realtime.runtime import ChatRuntime

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

AUTH_FAILED_CLOSE_CODE = 4001


def _bearer_token(websocket: WebSocket, token: str | None) -> str | None:
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
) -> None:
    runtime: ChatRuntime = websocket.app.state.runtime
    try:
        identity = await runtime.gateway.authenticate(_bearer_token(websocket, token))
    except AuthError as exc:
        logger.info("WS connection refused: %s", exc.detail)
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason=exc.detail)
        return

    await websocket.accept()
    conn = WebSocketConnection(websocket, identity)
    await runtime.gateway.open(conn)

    heartbeat_task = asyncio.create_task(
        _heartbeat(conn), name=f"ws-heartbeat-{identity.id}",
    )
    try:
        await _read_loop(runtime, conn)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", identity.id)
    finally:
        heartbeat_task.cancel()
        await runtime.gateway.close(conn)


async def _heartbeat(conn: WebSocketConnection) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await conn.send("pong", {})
    except asyncio.CancelledError:
        pass
    except Exception:
        # Closed socket; the read loop tears the connection down
        logger.debug("Heartbeat stopped for %r", conn, exc_info=True)


async def _read_loop(runtime: ChatRuntime, conn: WebSocketConnection) -> None:
    while True:
        raw = await conn.websocket.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except pydantic.ValidationError:
            await conn.send("error", {"message": "Invalid payload"})
            continue
        await runtime.events.dispatch(conn, msg)
