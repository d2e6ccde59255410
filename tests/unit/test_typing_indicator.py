from __future__ import annotations

import asyncio

import pytest

from messaging_service.application.exceptions import AuthorizationError
from tests.conftest import TEST_TYPING_TIMEOUT, FakeConnection


@pytest.fixture
def viewers(runtime, alice, bob, conversation):
    """Both participants connected; callers still need to join."""
    return FakeConnection(alice), FakeConnection(bob)


async def _join_both(runtime, alice, bob, conversation, viewers):
    alice_conn, bob_conn = viewers
    await runtime.gateway.open(alice_conn)
    await runtime.gateway.open(bob_conn)
    await runtime.rooms.join(conversation.id, alice)
    await runtime.rooms.join(conversation.id, bob)
    alice_conn.clear()
    bob_conn.clear()


@pytest.mark.asyncio
async def test_typing_notifies_others_once(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    alice_conn, bob_conn = viewers

    await runtime.typing.start_typing(conversation.id, alice)
    await runtime.typing.start_typing(conversation.id, alice)

    assert bob_conn.of("user_typing") == [
        {
            "conversation_id": str(conversation.id),
            "user_id": str(alice.id),
            "user_name": "Alice",
        },
    ]
    assert alice_conn.of("user_typing") == []
    assert runtime.typing.typing_in(conversation.id) == {alice.id}


@pytest.mark.asyncio
async def test_typing_expires(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    _, bob_conn = viewers

    await runtime.typing.start_typing(conversation.id, alice)
    await asyncio.sleep(TEST_TYPING_TIMEOUT * 4)

    assert not runtime.typing.is_typing(conversation.id, alice.id)
    assert bob_conn.events() == ["user_typing", "user_stopped_typing"]
    assert conversation.id not in runtime.state.typing


@pytest.mark.asyncio
async def test_repeated_typing_restarts_timer(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    _, bob_conn = viewers

    await runtime.typing.start_typing(conversation.id, alice)
    for _ in range(3):
        await asyncio.sleep(TEST_TYPING_TIMEOUT / 2)
        await runtime.typing.start_typing(conversation.id, alice)

    assert runtime.typing.is_typing(conversation.id, alice.id)
    assert bob_conn.of("user_stopped_typing") == []


@pytest.mark.asyncio
async def test_explicit_stop_cancels_timer(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    _, bob_conn = viewers

    await runtime.typing.start_typing(conversation.id, alice)
    assert await runtime.typing.stop_typing(conversation.id, alice.id) is True
    await asyncio.sleep(TEST_TYPING_TIMEOUT * 3)

    # Exactly one stop: the cancelled timer must not fire a second one
    assert bob_conn.events() == ["user_typing", "user_stopped_typing"]


@pytest.mark.asyncio
async def test_stop_without_typing_is_silent(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    _, bob_conn = viewers

    assert await runtime.typing.stop_typing(conversation.id, alice.id) is False
    assert bob_conn.sent == []


@pytest.mark.asyncio
async def test_typing_requires_membership(runtime, alice, conversation):
    with pytest.raises(AuthorizationError):
        await runtime.typing.start_typing(conversation.id, alice)
    assert runtime.state.typing == {}


@pytest.mark.asyncio
async def test_cancel_all_drops_every_timer(runtime, alice, bob, conversation, viewers):
    await _join_both(runtime, alice, bob, conversation, viewers)
    await runtime.typing.start_typing(conversation.id, alice)
    await runtime.typing.start_typing(conversation.id, bob)

    runtime.typing.cancel_all()

    assert runtime.state.typing == {}
