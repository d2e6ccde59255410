from __future__ import annotations

import uuid

import pytest

from messaging_service.application.exceptions import (
    AuthorizationError,
    NotFoundError,
    StoreError,
)
from tests.conftest import FakeConnection, make_message


@pytest.mark.asyncio
async def test_join_marks_unread_as_read(runtime, store, alice, bob, conversation):
    store.add_message(make_message(conversation, alice.id))
    store.add_message(make_message(conversation, alice.id))
    alice_conn, bob_conn = FakeConnection(alice), FakeConnection(bob)
    await runtime.gateway.open(alice_conn)
    await runtime.gateway.open(bob_conn)
    alice_conn.clear()
    bob_conn.clear()

    joined = await runtime.rooms.join(conversation.id, bob)

    assert joined.id == conversation.id
    assert runtime.rooms.is_member(conversation.id, bob.id)
    assert store.unread_for(bob.id) == []
    assert alice_conn.of("messages_read") == [
        {"conversation_id": str(conversation.id), "reader_id": str(bob.id), "read_count": 2},
    ]
    assert bob_conn.of("unread_count_updated") == [{"count": 0}]


@pytest.mark.asyncio
async def test_rejoin_is_harmless(runtime, alice, conversation):
    await runtime.rooms.join(conversation.id, alice)
    await runtime.rooms.join(conversation.id, alice)

    assert runtime.rooms.members(conversation.id) == {alice.id}


@pytest.mark.asyncio
async def test_join_refused_for_outsider(runtime, carol, conversation):
    with pytest.raises(AuthorizationError):
        await runtime.rooms.join(conversation.id, carol)
    assert runtime.state.rooms == {}


@pytest.mark.asyncio
async def test_join_unknown_conversation(runtime, alice):
    with pytest.raises(NotFoundError):
        await runtime.rooms.join(uuid.uuid4(), alice)


@pytest.mark.asyncio
async def test_join_store_failure_leaves_no_membership(runtime, store, alice, bob, conversation):
    store.add_message(make_message(conversation, bob.id))
    store.read_only = True

    with pytest.raises(StoreError):
        await runtime.rooms.join(conversation.id, alice)

    assert not runtime.rooms.is_member(conversation.id, alice.id)
    assert len(store.unread_for(alice.id)) == 1


@pytest.mark.asyncio
async def test_leave_is_idempotent(runtime, alice, conversation):
    await runtime.rooms.join(conversation.id, alice)

    assert await runtime.rooms.leave(conversation.id, alice.id) is True
    assert await runtime.rooms.leave(conversation.id, alice.id) is False
    assert conversation.id not in runtime.state.rooms


@pytest.mark.asyncio
async def test_leave_clears_typing(runtime, alice, bob, conversation):
    bob_conn = FakeConnection(bob)
    await runtime.gateway.open(bob_conn)
    await runtime.rooms.join(conversation.id, alice)
    await runtime.rooms.join(conversation.id, bob)
    await runtime.typing.start_typing(conversation.id, alice)
    bob_conn.clear()

    await runtime.rooms.leave(conversation.id, alice.id)

    assert not runtime.typing.is_typing(conversation.id, alice.id)
    assert bob_conn.of("user_stopped_typing") == [
        {"conversation_id": str(conversation.id), "user_id": str(alice.id)},
    ]
