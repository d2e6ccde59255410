from __future__ import annotations

import uuid

import pytest

from messaging_service.application.exceptions import AuthError
from messaging_service.domain.value_objects.enums import Role
from tests.conftest import FakeConnection, make_token


@pytest.mark.asyncio
async def test_authenticate_resolves_profile(runtime, alice):
    identity = await runtime.gateway.authenticate(make_token(alice.id))

    assert identity == alice
    assert identity.role == Role.INITIATOR


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_authenticate_requires_token(runtime, token):
    with pytest.raises(AuthError, match="No token provided"):
        await runtime.gateway.authenticate(token)


@pytest.mark.asyncio
async def test_authenticate_rejects_garbage(runtime):
    with pytest.raises(AuthError, match="Invalid token"):
        await runtime.gateway.authenticate("not.a.jwt")


@pytest.mark.asyncio
async def test_authenticate_rejects_non_uuid_subject(runtime):
    with pytest.raises(AuthError):
        await runtime.gateway.authenticate(make_token("42"))


@pytest.mark.asyncio
async def test_authenticate_unknown_profile(runtime):
    with pytest.raises(AuthError, match="User profile not found"):
        await runtime.gateway.authenticate(make_token(uuid.uuid4()))


@pytest.mark.asyncio
async def test_authenticate_store_down(runtime, store, alice):
    store.unavailable = True

    with pytest.raises(AuthError):
        await runtime.gateway.authenticate(make_token(alice.id))


@pytest.mark.asyncio
async def test_authentication_failure_creates_no_state(runtime):
    with pytest.raises(AuthError):
        await runtime.gateway.authenticate("bad")
    assert runtime.state.connections == {}


@pytest.mark.asyncio
async def test_close_last_connection_leaves_rooms(runtime, alice, bob, conversation):
    alice_conn, bob_conn = FakeConnection(alice), FakeConnection(bob)
    await runtime.gateway.open(alice_conn)
    await runtime.gateway.open(bob_conn)
    await runtime.rooms.join(conversation.id, alice)
    await runtime.rooms.join(conversation.id, bob)
    await runtime.typing.start_typing(conversation.id, alice)
    bob_conn.clear()

    await runtime.gateway.close(alice_conn)

    assert not runtime.presence.is_online(alice.id)
    assert runtime.rooms.members(conversation.id) == {bob.id}
    assert not runtime.typing.is_typing(conversation.id, alice.id)
    assert bob_conn.events() == ["user_offline", "user_stopped_typing"]


@pytest.mark.asyncio
async def test_close_with_other_device_keeps_rooms(runtime, alice, conversation):
    phone, laptop = FakeConnection(alice), FakeConnection(alice)
    await runtime.gateway.open(phone)
    await runtime.gateway.open(laptop)
    await runtime.rooms.join(conversation.id, alice)

    await runtime.gateway.close(phone)

    assert runtime.presence.is_online(alice.id)
    assert runtime.rooms.is_member(conversation.id, alice.id)
