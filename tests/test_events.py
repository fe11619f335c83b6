from __future__ import annotations

import json

import pytest

from realtime.events import (
    Event,
    EventKind,
    call_ended_event,
    incoming_call_event,
    utc_timestamp,
)


def test_incoming_call_wire_shape():
    event = incoming_call_event(call_id="C1", number="123", email="a@b.com", source="simulation")
    payload = json.loads(event.to_json())

    assert payload["event"] == "incoming_call"
    assert payload["caller"]["callId"] == "C1"
    assert payload["caller"]["number"] == "123"
    assert payload["caller"]["email"] == "a@b.com"
    assert payload["caller"]["source"] == "simulation"
    assert payload["caller"]["timestamp"].endswith("Z")


def test_event_payload_cannot_be_mutated():
    event = call_ended_event("C1", 5)

    with pytest.raises(TypeError):
        event.payload["duration"] = 10  # type: ignore[index]
    with pytest.raises(AttributeError):
        event.kind = EventKind.CALL_ANSWERED  # type: ignore[misc]

    assert event.to_dict()["duration"] == 5


def test_to_dict_returns_independent_copy():
    event = Event(EventKind.TEST_MESSAGE, {"data": {"code": 200}, "tags": ["a"]})

    copy = event.to_dict()
    copy["data"]["code"] = 500

    assert event.to_dict() == {"event": "test_message", "data": {"code": 200}, "tags": ["a"]}


def test_utc_timestamp_has_millisecond_precision():
    stamp = utc_timestamp()
    assert len(stamp) == len("2026-01-01T00:00:00.000Z")
