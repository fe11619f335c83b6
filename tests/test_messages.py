from __future__ import annotations

import asyncio

from realtime.broadcaster import EventBroadcaster
from realtime.messages import (
    CallActionMessage,
    MessageRouter,
    RegisterMessage,
    UnknownMessage,
    parse_inbound_message,
)
from realtime.registry import ConnectionRegistry


def _router(*conns) -> MessageRouter:
    registry = ConnectionRegistry()
    for conn in conns:
        registry.add(conn)
    return MessageRouter(EventBroadcaster(registry), client_id_factory=lambda: "1700000000000")


def test_parse_classifies_known_and_unknown_types():
    assert isinstance(parse_inbound_message('{"type": "register"}'), RegisterMessage)

    action = parse_inbound_message('{"type": "call_action", "action": "hangup", "callId": "C1"}')
    assert isinstance(action, CallActionMessage)
    assert action.action == "hangup"
    assert action.call_id == "C1"

    assert isinstance(parse_inbound_message('{"type": "ping"}'), UnknownMessage)
    assert isinstance(parse_inbound_message('{"no_type": true}'), UnknownMessage)
    assert isinstance(parse_inbound_message("[1, 2, 3]"), UnknownMessage)


def test_parse_returns_none_for_malformed_json():
    assert parse_inbound_message("{not json") is None
    assert parse_inbound_message(b"\xff\xfe") is None


def test_parse_returns_none_when_decoder_limits_are_hit():
    assert parse_inbound_message('{"type": "register", "n": ' + "1" * 5000 + "}") is None
    assert parse_inbound_message("[" * 100_000) is None


def test_oversized_frame_is_dropped_and_connection_stays_usable(make_connection):
    sender = make_connection()
    router = _router(sender)

    async def scenario():
        await router.handle(sender, '{"type": "register", "n": ' + "1" * 5000 + "}")
        await router.handle(sender, '{"type": "register"}')

    asyncio.run(scenario())

    assert sender.kinds() == ["registered"]


def test_register_replies_only_to_sender(make_connection):
    sender, other = make_connection("sender"), make_connection("other")
    router = _router(sender, other)

    asyncio.run(router.handle(sender, '{"type": "register"}'))

    assert sender.sent == [
        {"event": "registered", "message": "Connected to CTI Server", "clientId": "1700000000000"}
    ]
    assert other.sent == []


def test_call_action_is_acknowledged_with_echo(make_connection):
    sender = make_connection()
    router = _router(sender)

    asyncio.run(router.handle(sender, '{"type": "call_action", "action": "transfer", "callId": 42}'))

    (ack,) = sender.sent
    assert ack["event"] == "action_acknowledged"
    assert ack["action"] == "transfer"
    assert ack["callId"] == 42
    assert ack["status"] == "processed"
    assert "timestamp" in ack


def test_malformed_and_unknown_messages_produce_no_reply(make_connection):
    sender = make_connection()
    router = _router(sender)

    async def scenario():
        await router.handle(sender, "definitely not json")
        await router.handle(sender, '{"type": "subscribe"}')
        # The connection is still usable afterwards.
        await router.handle(sender, '{"type": "register"}')

    asyncio.run(scenario())

    assert sender.kinds() == ["registered"]


def test_default_client_id_is_time_based(make_connection):
    sender = make_connection()
    registry = ConnectionRegistry()
    registry.add(sender)
    router = MessageRouter(EventBroadcaster(registry))

    asyncio.run(router.handle(sender, '{"type": "register"}'))

    client_id = sender.sent[0]["clientId"]
    assert client_id.isdigit()
    assert len(client_id) >= 13
