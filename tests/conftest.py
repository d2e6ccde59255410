"""Shared test fixtures."""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Iterator
from uuid import UUID

import jwt
import pytest

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import StoreError
from messaging_service.config import settings
from messaging_service.domain.entities.conversation import Conversation
from messaging_service.domain.entities.message import Message
from messaging_service.domain.entities.profile import Profile
from messaging_service.domain.value_objects.enums import Role
from messaging_service.infrastructure.auth.hs256_verifier import HS256Verifier
from messaging_service.infrastructure.auth.identity_provider import JwtIdentityProvider
from messaging_service.infrastructure.db.repositories._cursor import decode_cursor
from messaging_service.realtime.runtime import ChatRuntime

TEST_TYPING_TIMEOUT = 0.05
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def make_token(subject: UUID | str) -> str:
    return jwt.encode(
        {"sub": str(subject)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def make_conversation(
    initiator_id: UUID,
    counterpart_id: UUID,
    *,
    tenant_id: UUID | None = None,
    conversation_id: UUID | None = None,
    last_message_at: datetime | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        initiator_id=initiator_id,
        counterpart_id=counterpart_id,
        tenant_id=tenant_id or uuid.uuid4(),
        last_message_at=last_message_at or now,
        created_at=now,
        updated_at=now,
    )


def make_message(
    conversation: Conversation,
    sender_id: UUID,
    *,
    text: str = "hello",
    is_read: bool = False,
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation.id,
        sender_id=sender_id,
        receiver_id=conversation.other_participant(sender_id),
        text=text,
        is_read=is_read,
        read_at=None,
        created_at=created_at or datetime.now(timezone.utc),
    )


@dataclass
class FakeStore:
    """In-memory stand-in for the database, shared by every FakeUoW it opens."""

    profiles: dict[UUID, Profile] = field(default_factory=dict)
    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    commits: int = 0
    # Toggle to make every repository call raise StoreError
    unavailable: bool = False
    # Toggle to make only writes raise StoreError
    read_only: bool = False

    def check(self, write: bool = False) -> None:
        if self.unavailable or (write and self.read_only):
            raise StoreError("Persistent store unavailable")

    def add_profile(
        self,
        *,
        role: Role,
        tenant_id: UUID,
        name: str = "someone",
        avatar_ref: str | None = None,
    ) -> Identity:
        profile = Profile(
            id=uuid.uuid4(),
            display_name=name,
            role=role.value,
            tenant_id=tenant_id,
            avatar_ref=avatar_ref,
        )
        self.profiles[profile.id] = profile
        return Identity.from_profile(profile)

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations[conversation.id] = conversation
        return conversation

    def add_message(self, message: Message) -> Message:
        self.messages.append(message)
        return message

    def unread_for(self, receiver_id: UUID) -> list[Message]:
        return [m for m in self.messages if m.receiver_id == receiver_id and not m.is_read]

    @asynccontextmanager
    async def uow(self) -> AsyncIterator[FakeUoW]:
        yield FakeUoW(self)


@dataclass
class FakeProfileReader:
    _store: FakeStore

    async def get_by_id(self, profile_id: UUID) -> Profile | None:
        self._store.check()
        return self._store.profiles.get(profile_id)


@dataclass
class FakeConversationReader:
    _store: FakeStore

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        self._store.check()
        return self._store.conversations.get(conversation_id)

    async def get_by_pair(self, initiator_id: UUID, counterpart_id: UUID) -> Conversation | None:
        self._store.check()
        for c in self._store.conversations.values():
            if c.initiator_id == initiator_id and c.counterpart_id == counterpart_id:
                return c
        return None

    async def list_for_identity(
        self,
        identity_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        self._store.check()
        convs = [c for c in self._store.conversations.values() if c.has_participant(identity_id)]
        convs.sort(key=lambda c: c.last_message_at or _EPOCH, reverse=True)
        return convs[:limit]

    async def list_peer_ids(self, identity_id: UUID) -> set[UUID]:
        self._store.check()
        return {
            c.other_participant(identity_id)
            for c in self._store.conversations.values()
            if c.has_participant(identity_id)
        }


@dataclass
class FakeConversationWriter:
    _store: FakeStore

    async def get_or_create(self, conversation: Conversation) -> tuple[Conversation, bool]:
        self._store.check(write=True)
        for c in self._store.conversations.values():
            if (c.initiator_id, c.counterpart_id) == (conversation.initiator_id, conversation.counterpart_id):
                return c, False
        self._store.conversations[conversation.id] = conversation
        return conversation, True

    async def touch_last_message_at(self, conversation_id: UUID, ts: datetime) -> None:
        self._store.check(write=True)
        conv = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = replace(conv, last_message_at=ts, updated_at=ts)

    async def delete(self, conversation_id: UUID) -> None:
        self._store.check(write=True)
        self._store.conversations.pop(conversation_id, None)
        self._store.messages = [
            m for m in self._store.messages if m.conversation_id != conversation_id
        ]


@dataclass
class FakeMessageReader:
    _store: FakeStore

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        self._store.check()
        msgs = sorted(
            (m for m in self._store.messages if m.conversation_id == conversation_id),
            key=lambda m: (m.created_at, m.id),
        )
        if cursor:
            ts, mid = decode_cursor(cursor)
            msgs = [m for m in msgs if (m.created_at, m.id) > (ts, mid)]
        return msgs[:limit]

    async def count_unread(
        self,
        receiver_id: UUID,
        *,
        conversation_id: UUID | None = None,
    ) -> int:
        self._store.check()
        return sum(
            1
            for m in self._store.unread_for(receiver_id)
            if conversation_id is None or m.conversation_id == conversation_id
        )

    async def last_message(self, conversation_id: UUID) -> Message | None:
        self._store.check()
        msgs = [m for m in self._store.messages if m.conversation_id == conversation_id]
        return max(msgs, key=lambda m: (m.created_at, m.id)) if msgs else None


@dataclass
class FakeMessageWriter:
    _store: FakeStore

    async def create(self, message: Message) -> Message:
        self._store.check(write=True)
        self._store.messages.append(message)
        return message

    async def mark_read(self, conversation_id: UUID, receiver_id: UUID, read_at: datetime) -> int:
        self._store.check(write=True)
        count = 0
        for i, m in enumerate(self._store.messages):
            if m.conversation_id == conversation_id and m.receiver_id == receiver_id and not m.is_read:
                self._store.messages[i] = replace(m, is_read=True, read_at=read_at)
                count += 1
        return count


class FakeUoW:
    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self.profiles = FakeProfileReader(self.store)
        self._committed = False

    async def commit(self) -> None:
        self._committed = True
        self.store.commits += 1

    async def rollback(self) -> None:
        pass

    async def flush(self) -> None:
        pass


class FakeConnection:
    """Records every event sent to it."""

    def __init__(self, identity: Identity) -> None:
        self.identity = identity
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.broken = False

    async def send(self, event: str, data: dict[str, Any]) -> None:
        if self.broken:
            raise ConnectionError("socket closed")
        self.sent.append((event, data))

    def events(self) -> list[str]:
        return [event for event, _ in self.sent]

    def of(self, event: str) -> list[dict[str, Any]]:
        return [data for name, data in self.sent if name == event]

    def clear(self) -> None:
        self.sent.clear()


class RecordingPublisher:
    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        self.published.append((channel, payload))


class FixedClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        self.current += timedelta(milliseconds=1)
        return self.current


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def tenant_id() -> UUID:
    return uuid.uuid4()


@pytest.fixture
def alice(store: FakeStore, tenant_id: UUID) -> Identity:
    return store.add_profile(role=Role.INITIATOR, tenant_id=tenant_id, name="Alice")


@pytest.fixture
def bob(store: FakeStore, tenant_id: UUID) -> Identity:
    return store.add_profile(role=Role.COUNTERPART, tenant_id=tenant_id, name="Bob")


@pytest.fixture
def carol(store: FakeStore, tenant_id: UUID) -> Identity:
    """A third identity who takes no part in the alice/bob conversation."""
    return store.add_profile(role=Role.COUNTERPART, tenant_id=tenant_id, name="Carol")


@pytest.fixture
def conversation(store: FakeStore, alice: Identity, bob: Identity, tenant_id: UUID) -> Conversation:
    return store.add_conversation(make_conversation(alice.id, bob.id, tenant_id=tenant_id))


def build_runtime(store: FakeStore, **kwargs: Any) -> ChatRuntime:
    kwargs.setdefault("typing_timeout", TEST_TYPING_TIMEOUT)
    kwargs.setdefault("clock", FixedClock())
    return ChatRuntime(
        store.uow,
        JwtIdentityProvider(HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM), store.uow),
        **kwargs,
    )


@pytest.fixture
def runtime(store: FakeStore) -> Iterator[ChatRuntime]:
    rt = build_runtime(store)
    yield rt
    rt.typing.cancel_all()
