"""Entrypoint: python -m messaging_service"""
from __future__ import annotations

import logging

import uvicorn

from messaging_service.api.middleware.correlation_id import CorrelationIdFilter
from messaging_service.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "messaging_service.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
