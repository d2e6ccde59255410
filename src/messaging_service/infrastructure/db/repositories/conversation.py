from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from messaging_service.domain.entities.conversation import Conversation
from messaging_service.infrastructure.db.mappers import conversation as mapper
from messaging_service.infrastructure.db.models.conversation import ConversationModel
from messaging_service.infrastructure.db.repositories._cursor import decode_cursor


def _involving(identity_id: UUID):
    return or_(
        ConversationModel.initiator_id == identity_id,
        ConversationModel.counterpart_id == identity_id,
    )


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def get_by_pair(
        self,
        initiator_id: UUID,
        counterpart_id: UUID,
    ) -> Conversation | None:
        stmt = select(ConversationModel).where(
            ConversationModel.initiator_id == initiator_id,
            ConversationModel.counterpart_id == counterpart_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_identity(
        self,
        identity_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(_involving(identity_id))
            .order_by(ConversationModel.last_message_at.desc().nullslast(), ConversationModel.id)
            .limit(limit)
        )
        if cursor:
            ts, cid = decode_cursor(cursor)
            stmt = stmt.where(
                (ConversationModel.last_message_at < ts)
                | (
                    (ConversationModel.last_message_at == ts)
                    & (ConversationModel.id > cid)
                )
            )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_peer_ids(self, identity_id: UUID) -> set[UUID]:
        stmt = select(
            ConversationModel.initiator_id,
            ConversationModel.counterpart_id,
        ).where(_involving(identity_id))
        result = await self._session.execute(stmt)
        peers: set[UUID] = set()
        for initiator_id, counterpart_id in result.all():
            peers.add(counterpart_id if initiator_id == identity_id else initiator_id)
        return peers


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_or_create(self, conversation: Conversation) -> tuple[Conversation, bool]:
        """Insert conversation unless the participant pair exists. Returns (conversation, created_flag)."""
        stmt = (
            pg_insert(ConversationModel)
            .values(
                id=conversation.id,
                initiator_id=conversation.initiator_id,
                counterpart_id=conversation.counterpart_id,
                tenant_id=conversation.tenant_id,
                last_message_at=conversation.last_message_at,
                created_at=conversation.created_at,
                updated_at=conversation.updated_at,
            )
            .on_conflict_do_nothing(constraint="uq_conversation_pair")
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Lost the race against a concurrent insert of the same pair
        stmt_existing = select(ConversationModel).where(
            ConversationModel.initiator_id == conversation.initiator_id,
            ConversationModel.counterpart_id == conversation.counterpart_id,
        )
        existing = (await self._session.execute(stmt_existing)).scalar_one()
        return mapper.model_to_entity(existing), False

    async def touch_last_message_at(
        self,
        conversation_id: UUID,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_at=ts, updated_at=ts)
        )
        await self._session.execute(stmt)

    async def delete(self, conversation_id: UUID) -> None:
        await self._session.execute(
            delete(ConversationModel).where(ConversationModel.id == conversation_id)
        )
