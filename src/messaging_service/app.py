from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from messaging_service.api.deps import get_verifier
from messaging_service.api.middleware.correlation_id import CorrelationIdMiddleware
from messaging_service.api.middleware.timing import RequestTimingMiddleware
from messaging_service.api.v1.routers import conversations, health, messages, unread, ws
from messaging_service.application.exceptions import (
    AuthError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from messaging_service.config import settings
from messaging_service.infrastructure.auth.identity_provider import JwtIdentityProvider
from messaging_service.infrastructure.bus.redis_pubsub import (
    RedisFanoutPublisher,
    RedisFanoutSubscriber,
)
from messaging_service.infrastructure.db.session import dispose_engine
from messaging_service.infrastructure.db.uow import sqlalchemy_uow
from messaging_service.realtime.runtime import ChatRuntime

logger = logging.getLogger(__name__)


def build_runtime() -> ChatRuntime:
    return ChatRuntime(
        sqlalchemy_uow,
        JwtIdentityProvider(get_verifier(), sqlalchemy_uow),
        typing_timeout=settings.TYPING_TIMEOUT_SECONDS,
        presence_fanout=settings.PRESENCE_FANOUT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    runtime: ChatRuntime = app.state.runtime
    subscriber: RedisFanoutSubscriber | None = None

    if settings.FANOUT_BACKPLANE == "redis":
        app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Redis connection pool created")
        runtime.broadcaster.attach_publisher(
            RedisFanoutPublisher(app.state.redis), settings.REDIS_PUBSUB_CHANNEL,
        )
        subscriber = RedisFanoutSubscriber(
            app.state.redis,
            settings.REDIS_PUBSUB_CHANNEL,
            runtime.broadcaster.relay_inbound,
        )
        await subscriber.start()

    yield

    await runtime.shutdown()
    if subscriber is not None:
        await subscriber.stop()
        await app.state.redis.aclose()
        logger.info("Redis connection pool closed")
    await dispose_engine()


def create_app(runtime: ChatRuntime | None = None) -> FastAPI:
    app = FastAPI(
        title="Messaging Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime or build_runtime()
    app.state.redis = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(unread.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(AuthorizationError)
    async def _forbidden(_req: Request, exc: AuthorizationError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(AuthError)
    async def _unauthorized(_req: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(StoreError)
    async def _store(_req: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store failure: %s", exc.__cause__ or exc.detail)
        return JSONResponse(status_code=503, content={"detail": exc.detail})
