from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from messaging_service.application.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from messaging_service.infrastructure.db.repositories._cursor import encode_cursor
from messaging_service.services import message_service
from tests.conftest import FakeUoW, make_message

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_normalize_text_strips():
    assert message_service.normalize_text("  hi there \n") == "hi there"


@pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
def test_normalize_text_rejects_empty(text):
    with pytest.raises(ValidationError):
        message_service.normalize_text(text)


@pytest.mark.asyncio
async def test_create_message_persists_unread(store, alice, bob, conversation):
    uow = FakeUoW(store)

    msg = await message_service.create_message(
        conversation.id, alice.id, bob.id, " hello ", NOW, uow,
    )

    assert msg.text == "hello"
    assert msg.is_read is False
    assert msg.read_at is None
    assert msg.receiver_id == bob.id
    assert uow._committed is True
    assert store.messages == [msg]
    assert store.conversations[conversation.id].last_message_at == NOW


@pytest.mark.asyncio
async def test_create_message_unknown_conversation(store, alice, bob):
    with pytest.raises(NotFoundError):
        await message_service.create_message(
            uuid.uuid4(), alice.id, bob.id, "hello", NOW, FakeUoW(store),
        )


@pytest.mark.asyncio
async def test_create_message_outsider_refused(store, bob, carol, conversation):
    with pytest.raises(AuthorizationError):
        await message_service.create_message(
            conversation.id, carol.id, bob.id, "hello", NOW, FakeUoW(store),
        )
    assert store.messages == []


@pytest.mark.asyncio
async def test_create_message_receiver_must_be_other_participant(store, alice, carol, conversation):
    with pytest.raises(ValidationError):
        await message_service.create_message(
            conversation.id, alice.id, carol.id, "hello", NOW, FakeUoW(store),
        )
    with pytest.raises(ValidationError):
        await message_service.create_message(
            conversation.id, alice.id, alice.id, "hello", NOW, FakeUoW(store),
        )


@pytest.mark.asyncio
async def test_list_messages_paginates_oldest_first(store, alice, bob, conversation):
    msgs = [
        store.add_message(
            make_message(conversation, alice.id, text=str(i), created_at=NOW.replace(minute=i))
        )
        for i in range(5)
    ]

    page = await message_service.list_messages(conversation.id, bob, None, 2, FakeUoW(store))
    assert [m.text for m in page] == ["0", "1"]

    cursor = encode_cursor(page[-1].created_at, page[-1].id)
    page = await message_service.list_messages(conversation.id, bob, cursor, 10, FakeUoW(store))
    assert [m.id for m in page] == [m.id for m in msgs[2:]]


@pytest.mark.asyncio
async def test_list_messages_forbidden_for_outsider(store, carol, conversation):
    with pytest.raises(AuthorizationError):
        await message_service.list_messages(conversation.id, carol, None, 50, FakeUoW(store))


@pytest.mark.asyncio
async def test_list_messages_bad_cursor(store, alice, conversation):
    with pytest.raises(ValidationError):
        await message_service.list_messages(
            conversation.id, alice, "not-a-cursor!!", 50, FakeUoW(store),
        )
