from __future__ import annotations

import asyncio
import json

import pytest

from realtime.broadcaster import EventBroadcaster
from realtime.errors import CallTimelineActiveError
from realtime.registry import ConnectionRegistry
from realtime.timeline import CallTimeline

ANSWER_DELAY = 0.05


def _timeline(*conns, answer_delay: float = ANSWER_DELAY) -> CallTimeline:
    registry = ConnectionRegistry()
    for conn in conns:
        registry.add(conn)
    return CallTimeline(EventBroadcaster(registry), answer_delay=answer_delay)


class TimedConnection:
    def __init__(self, name: str) -> None:
        self.remote_address = f"{name}:1"
        self.is_open = True
        self.received: list[tuple[float, dict]] = []

    async def send_text(self, text: str) -> None:
        self.received.append((asyncio.get_running_loop().time(), json.loads(text)))


def test_full_sequence_in_order_on_every_connection():
    first, second = TimedConnection("a"), TimedConnection("b")
    timeline = _timeline(first, second)

    async def scenario():
        started = asyncio.get_running_loop().time()
        summary = await timeline.start(
            "C1", caller_number="123", caller_email="a@b.com", duration=0.15
        )
        # start() returns right after incoming_call has gone out.
        assert [msg["event"] for _, msg in first.received] == ["incoming_call"]
        assert timeline.is_active("C1")
        await asyncio.sleep(0.3)
        return started, summary

    started, summary = asyncio.run(scenario())

    assert summary.call_id == "C1"
    assert summary.delivered == 2
    for conn in (first, second):
        kinds = [msg["event"] for _, msg in conn.received]
        assert kinds == ["incoming_call", "call_answered", "call_ended"]

        (t_incoming, incoming), (t_answered, answered), (t_ended, ended) = conn.received
        assert incoming["caller"]["callId"] == "C1"
        assert incoming["caller"]["source"] == "simulation"
        assert answered["callId"] == "C1"
        assert ended["callId"] == "C1"
        assert ended["duration"] == 0.15
        assert t_incoming - started < 0.05
        assert t_answered - started >= ANSWER_DELAY * 0.9
        assert t_ended - started >= 0.15 * 0.9

    assert timeline.active_count() == 0


def test_end_delay_is_measured_from_start_not_from_answer():
    conn = TimedConnection("a")
    timeline = _timeline(conn, answer_delay=0.1)

    async def scenario():
        await timeline.start("C2", caller_number="1", caller_email="x@y.z", duration=0.15)
        await asyncio.sleep(0.3)

    asyncio.run(scenario())

    times = {msg["event"]: t for t, msg in conn.received}
    # 0.15s after start, i.e. only ~0.05s after the answer, not 0.25s.
    assert times["call_ended"] - times["incoming_call"] < 0.24


def test_zero_duration_ends_before_answer():
    conn = TimedConnection("a")
    timeline = _timeline(conn)

    async def scenario():
        await timeline.start("C3", caller_number="1", caller_email="x@y.z", duration=0)
        await asyncio.sleep(ANSWER_DELAY * 3)

    asyncio.run(scenario())

    assert [msg["event"] for _, msg in conn.received] == [
        "incoming_call",
        "call_ended",
        "call_answered",
    ]


def test_duplicate_call_id_is_rejected_while_pending(make_connection):
    conn = make_connection()
    timeline = _timeline(conn)

    async def scenario():
        await timeline.start("C4", caller_number="1", caller_email="x@y.z", duration=0.1)
        with pytest.raises(CallTimelineActiveError):
            await timeline.start("C4", caller_number="1", caller_email="x@y.z", duration=0.1)
        await asyncio.sleep(0.2)
        # Finished timelines free the ID again.
        await timeline.start("C4", caller_number="1", caller_email="x@y.z", duration=0.01)
        await asyncio.sleep(ANSWER_DELAY * 2)

    asyncio.run(scenario())

    assert conn.kinds().count("incoming_call") == 2
    assert conn.kinds().count("call_ended") == 2


def test_cancel_stops_pending_steps(make_connection):
    conn = make_connection()
    timeline = _timeline(conn)

    async def scenario():
        await timeline.start("C5", caller_number="1", caller_email="x@y.z", duration=0.1)
        assert timeline.cancel("C5") is True
        assert timeline.cancel("C5") is False
        await asyncio.sleep(0.2)

    asyncio.run(scenario())

    assert conn.kinds() == ["incoming_call"]
    assert timeline.active_call_ids() == []


def test_shutdown_cancels_everything(make_connection):
    conn = make_connection()
    timeline = _timeline(conn)

    async def scenario():
        await timeline.start("C6", caller_number="1", caller_email="x@y.z", duration=5)
        await timeline.start("C7", caller_number="2", caller_email="x@y.z", duration=5)
        assert timeline.active_count() == 2
        await timeline.shutdown()

    asyncio.run(scenario())

    assert timeline.active_count() == 0
    assert conn.kinds() == ["incoming_call", "incoming_call"]


def test_summary_describes_the_timeline():
    timeline = _timeline(answer_delay=2.0)

    async def scenario():
        summary = await timeline.start("C8", caller_number="1", caller_email="x@y.z", duration=30)
        await timeline.shutdown()
        return summary

    summary = asyncio.run(scenario())

    assert summary.delivered == 0
    assert summary.steps() == [
        {"action": "incoming_call", "after": "0s"},
        {"action": "call_answered", "after": "2s"},
        {"action": "call_ended", "after": "30s"},
    ]
