"""Redis Pub/Sub backplane: lets several server processes share fan-out."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from messaging_service.infrastructure.bus.serializer import decode_envelope, encode_envelope

logger = logging.getLogger(__name__)


class RedisFanoutPublisher:
    """Implements application.ports.bus.EventPublisher."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        raw = encode_envelope(payload.get("event_type", "unknown"), payload)
        await self._redis.publish(channel, raw)


OnRelayCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisFanoutSubscriber:
    """Listens on the backplane channel and hands every relayed event to a callback.

    The callback is expected to drop events published by its own process.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnRelayCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="fanout-backplane-subscriber")
        logger.info("Backplane subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Backplane subscriber stopped")

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event_type, payload = decode_envelope(message["data"])
                except ValueError:
                    logger.warning("Dropping malformed backplane message")
                    continue
                try:
                    await self._callback(event_type, payload)
                except Exception:
                    logger.exception("Error delivering relayed %s", event_type)
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
