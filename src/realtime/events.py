"""Events pushed to helpdesk clients over the WebSocket."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any


class EventKind(str, Enum):
    CONNECTED = "connected"
    REGISTERED = "registered"
    INCOMING_CALL = "incoming_call"
    CALL_ANSWERED = "call_answered"
    CALL_ENDED = "call_ended"
    ACTION_ACKNOWLEDGED = "action_acknowledged"
    TEST_MESSAGE = "test_message"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T10:00:00.000Z."""

    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable `{event: kind, ...payload}` record."""

    kind: EventKind
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _freeze(self.payload))

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.kind.value, **_thaw(self.payload)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), allow_nan=False)


def connected_event(server_name: str) -> Event:
    return Event(
        EventKind.CONNECTED,
        {
            "message": "Connected to CTI Server",
            "timestamp": utc_timestamp(),
            "server": server_name,
        },
    )


def registered_event(client_id: str) -> Event:
    return Event(
        EventKind.REGISTERED,
        {"message": "Connected to CTI Server", "clientId": client_id},
    )


def incoming_call_event(*, call_id: str, number: str, email: str, source: str) -> Event:
    return Event(
        EventKind.INCOMING_CALL,
        {
            "caller": {
                "callId": call_id,
                "number": number,
                "email": email,
                "source": source,
                "timestamp": utc_timestamp(),
            }
        },
    )


def call_answered_event(call_id: str) -> Event:
    return Event(EventKind.CALL_ANSWERED, {"callId": call_id, "timestamp": utc_timestamp()})


def call_ended_event(call_id: str, duration: int | float) -> Event:
    return Event(
        EventKind.CALL_ENDED,
        {"callId": call_id, "duration": duration, "timestamp": utc_timestamp()},
    )


def action_acknowledged_event(action: Any, call_id: Any) -> Event:
    return Event(
        EventKind.ACTION_ACKNOWLEDGED,
        {
            "action": action,
            "callId": call_id,
            "timestamp": utc_timestamp(),
            "status": "processed",
        },
    )


def ws_test_event() -> Event:
    return Event(
        EventKind.TEST_MESSAGE,
        {
            "message": "WebSocket test from server",
            "timestamp": utc_timestamp(),
            "data": {"test": "success", "code": 200},
        },
    )
