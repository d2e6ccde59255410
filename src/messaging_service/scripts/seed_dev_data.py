"""Seed development data: two profiles, one conversation and a few messages.

Creates the tables if they do not exist yet and prints a token for each
profile so a client can connect straight away (HS256 mode only).
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from messaging_service.config import settings
from messaging_service.domain.entities.conversation import Conversation
from messaging_service.domain.entities.message import Message
from messaging_service.domain.value_objects.enums import Role
from messaging_service.infrastructure.db.base import Base
from messaging_service.infrastructure.db.models import ProfileModel
from messaging_service.infrastructure.db.session import (
    AsyncSessionLocal,
    dispose_engine,
    engine,
)
from messaging_service.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    tenant_id = uuid.uuid4()
    initiator_id = uuid.uuid4()
    counterpart_id = uuid.uuid4()

    async with AsyncSessionLocal() as session:
        session.add_all([
            ProfileModel(
                id=initiator_id, display_name="Alice", role=Role.INITIATOR.value,
                tenant_id=tenant_id, avatar_ref=None,
            ),
            ProfileModel(
                id=counterpart_id, display_name="Bob", role=Role.COUNTERPART.value,
                tenant_id=tenant_id, avatar_ref=None,
            ),
        ])
        await session.flush()

        uow = SqlAlchemyUoW(session)
        now = datetime.now(timezone.utc)
        conv, _created = await uow.conversations_w.get_or_create(
            Conversation(
                id=uuid.uuid4(),
                initiator_id=initiator_id,
                counterpart_id=counterpart_id,
                tenant_id=tenant_id,
                last_message_at=now,
                created_at=now,
                updated_at=now,
            )
        )

        messages_data = [
            (initiator_id, counterpart_id, "Hi! Is the apartment still available?"),
            (counterpart_id, initiator_id, "Yes, it is. When would you like to see it?"),
            (initiator_id, counterpart_id, "Tomorrow afternoon works for me."),
        ]
        for offset, (sender_id, receiver_id, text) in enumerate(messages_data):
            created_at = now + timedelta(seconds=offset)
            await uow.messages_w.create(
                Message(
                    id=uuid.uuid4(),
                    conversation_id=conv.id,
                    sender_id=sender_id,
                    receiver_id=receiver_id,
                    text=text,
                    is_read=False,
                    read_at=None,
                    created_at=created_at,
                )
            )
            await uow.conversations_w.touch_last_message_at(conv.id, created_at)

        await uow.commit()
        logger.info("Seeded conversation %s with %d messages", conv.id, len(messages_data))

    if settings.JWT_VERIFY_MODE == "hs256" and settings.JWT_SECRET:
        for name, subject in (("Alice", initiator_id), ("Bob", counterpart_id)):
            token = jwt.encode(
                {"sub": str(subject)}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM,
            )
            logger.info("Token for %s: %s", name, token)

    await dispose_engine()


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
