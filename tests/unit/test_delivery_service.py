from __future__ import annotations

import asyncio
import json

import pytest

from chat_relay.application.exceptions import (
    ConflictError,
    ForbiddenError,
    UnauthenticatedError,
    ValidationError,
)
from chat_relay.domain.value_objects.enums import DeliveryStatus, PushResult
from chat_relay.domain.value_objects.ids import conversation_id_for
from chat_relay.services.delivery_service import DeliveryDispatcher
from tests.conftest import RECIPIENT, SENDER, STRANGER


def _body(**fields) -> str:
    data = {"receiverId": RECIPIENT, "content": "hello"}
    data.update(fields)
    return json.dumps({k: v for k, v in data.items() if v is not None})


@pytest.fixture
def dispatcher(uow, push, clock) -> DeliveryDispatcher:
    return DeliveryDispatcher(uow, push, clock)


@pytest.mark.asyncio
async def test_live_recipient_gets_payload(dispatcher, uow, push):
    outcome = await dispatcher.dispatch("c1", _body(id="m-1"))

    assert outcome.status == DeliveryStatus.DELIVERED
    [row] = uow.messages_w.rows
    assert row.content == "hello"
    assert row.delivered is False and row.read is False
    assert row.recipient_id == RECIPIENT

    [(target, payload)] = push.sent
    assert target == "c2"
    assert list(payload) == ["id", "conversation_id", "from", "to", "type", "content", "timestamp"]
    assert payload == {
        "id": "m-1",
        "conversation_id": conversation_id_for(SENDER, RECIPIENT),
        "from": SENDER,
        "to": RECIPIENT,
        "type": "text",
        "content": "hello",
        "timestamp": "2024-05-01T12:30:00.123Z",
    }


@pytest.mark.asyncio
async def test_offline_recipient_is_stored_without_push(dispatcher, uow, push):
    uow.connections._connections = [c for c in uow.connections._connections if c.user_id != RECIPIENT]

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.OFFLINE
    assert len(uow.messages_w.rows) == 1
    assert uow.messages_w.rows[0].delivered is False
    assert push.sent == []


@pytest.mark.asyncio
async def test_not_friends_is_forbidden(uow, push, clock):
    uow.connections.add("c3", STRANGER)
    dispatcher = DeliveryDispatcher(uow, push, clock)

    with pytest.raises(ForbiddenError):
        await dispatcher.dispatch("c3", _body())

    assert uow.messages_w.attempts == 0
    assert push.sent == []


@pytest.mark.asyncio
async def test_pending_friendship_is_forbidden(uow, push, clock):
    uow.connections.add("c3", STRANGER)
    uow.friends.befriend(STRANGER, RECIPIENT, status="pending")
    dispatcher = DeliveryDispatcher(uow, push, clock)

    with pytest.raises(ForbiddenError):
        await dispatcher.dispatch("c3", _body())

    assert uow.messages_w.attempts == 0


@pytest.mark.asyncio
async def test_friendship_checked_in_either_direction(uow, push, clock):
    uow.friends._rows = [(RECIPIENT, SENDER, "accepted")]
    dispatcher = DeliveryDispatcher(uow, push, clock)

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.DELIVERED


@pytest.mark.asyncio
@pytest.mark.parametrize("connection_id", ["unknown", "", None])
async def test_unknown_sender_is_unauthenticated(dispatcher, uow, push, connection_id):
    with pytest.raises(UnauthenticatedError):
        await dispatcher.dispatch(connection_id, _body())

    assert uow.messages_w.attempts == 0
    assert push.sent == []


@pytest.mark.asyncio
async def test_missing_content_is_rejected_before_lookups(dispatcher, uow):
    with pytest.raises(ValidationError):
        await dispatcher.dispatch("c1", json.dumps({"receiverId": RECIPIENT}))

    assert uow.connections.calls == []
    assert uow.messages_w.attempts == 0


@pytest.mark.asyncio
async def test_legacy_to_alias_matches_receiver_id(uow, push, clock):
    first = await DeliveryDispatcher(uow, push, clock).dispatch(
        "c1", json.dumps({"to": RECIPIENT, "content": "hi", "id": "a"}),
    )
    second = await DeliveryDispatcher(uow, push, clock).dispatch(
        "c1", json.dumps({"receiverId": RECIPIENT, "content": "hi", "id": "b"}),
    )

    assert first.status == second.status == DeliveryStatus.DELIVERED
    assert first.message.conversation_id == second.message.conversation_id
    assert push.sent[0][1]["to"] == push.sent[1][1]["to"] == RECIPIENT


@pytest.mark.asyncio
async def test_content_is_trimmed_and_type_kept(dispatcher, uow):
    await dispatcher.dispatch("c1", _body(content="  hi there \n", type="image"))

    [row] = uow.messages_w.rows
    assert row.content == "hi there"
    assert row.type == "image"


@pytest.mark.asyncio
async def test_generated_id_when_client_omits_it(dispatcher, uow):
    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.message.id
    assert uow.messages_w.rows[0].id == outcome.message.id


@pytest.mark.asyncio
async def test_retry_with_same_id_keeps_one_row(dispatcher, uow, push):
    first = await dispatcher.dispatch("c1", _body(id="dup"))
    second = await dispatcher.dispatch("c1", _body(id="dup", content="changed"))

    assert first.status == second.status == DeliveryStatus.DELIVERED
    assert len(uow.messages_w.rows) == 1
    assert uow.messages_w.rows[0].content == "hello"
    assert push.sent[1][1]["content"] == "hello"


@pytest.mark.asyncio
async def test_reused_id_from_other_sender_conflicts(uow, push, clock):
    await DeliveryDispatcher(uow, push, clock).dispatch("c1", _body(id="taken"))
    uow.connections.add("c3", STRANGER)
    uow.friends.befriend(STRANGER, RECIPIENT)

    with pytest.raises(ConflictError):
        await DeliveryDispatcher(uow, push, clock).dispatch("c3", _body(id="taken"))

    assert len(push.sent) == 1


@pytest.mark.asyncio
async def test_gone_connection_is_reclaimed(dispatcher, uow, push):
    push.result = PushResult.GONE

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.DEFERRED
    assert uow.connections_w.removed == ["c2"]
    assert "c2" not in uow.connections.ids()
    assert await uow.connections.lookup_user_by_connection("c2") is None
    assert len(uow.messages_w.rows) == 1


@pytest.mark.asyncio
async def test_other_push_failure_keeps_connection(dispatcher, uow, push):
    push.result = PushResult.FAILED

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.DEFERRED
    assert uow.connections_w.removed == []
    assert len(uow.messages_w.rows) == 1


@pytest.mark.asyncio
async def test_push_exception_after_persistence_fails_open(dispatcher, uow, push):
    push.error = RuntimeError("socket closed")

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.DEFERRED
    assert len(uow.messages_w.rows) == 1
    assert uow.rollbacks == 1


@pytest.mark.asyncio
async def test_latest_recipient_connection_is_targeted(dispatcher, uow, push):
    uow.connections._connections = [c for c in uow.connections._connections if c.user_id != RECIPIENT]
    uow.connections.add("old", RECIPIENT, age_seconds=600)
    uow.connections.add("new", RECIPIENT, age_seconds=5)

    await dispatcher.dispatch("c1", _body())

    assert push.sent[0][0] == "new"


@pytest.mark.asyncio
async def test_persist_commits_before_push(uow, clock):
    order: list[str] = []

    class RecordingPush:
        async def post(self, connection_id, payload):
            order.append(f"push:{uow.commits}")
            return PushResult.DELIVERED

    await DeliveryDispatcher(uow, RecordingPush(), clock).dispatch("c1", _body())

    assert order == ["push:1"]


@pytest.mark.asyncio
async def test_deadline_exceeded_raises_timeout(uow, clock):
    class SlowFriends:
        async def are_friends(self, user_a, user_b):
            await asyncio.sleep(1)
            return True

    uow.friends = SlowFriends()
    dispatcher = DeliveryDispatcher(uow, push=None, clock=clock, timeout=0.01)

    with pytest.raises(TimeoutError):
        await dispatcher.dispatch("c1", _body())

    assert uow.messages_w.attempts == 0


@pytest.mark.asyncio
async def test_slow_push_past_deadline_is_deferred(uow, clock):
    class SlowPush:
        async def post(self, connection_id, payload):
            await asyncio.sleep(1)
            return PushResult.DELIVERED

    dispatcher = DeliveryDispatcher(uow, SlowPush(), clock, timeout=0.05)

    outcome = await dispatcher.dispatch("c1", _body())

    assert outcome.status == DeliveryStatus.DEFERRED
    assert len(uow.messages_w.rows) == 1
    assert uow.commits == 1
