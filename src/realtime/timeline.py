"""Simulated call lifecycle: incoming_call -> call_answered -> call_ended.

The first event is broadcast inline; the other two are armed as asyncio tasks
measured from the same t=0, so the caller gets control back as soon as the
incoming call has gone out. Task handles are kept per call ID, which is what
makes `cancel()` and a clean `shutdown()` possible.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from realtime.broadcaster import EventBroadcaster
from realtime.errors import CallTimelineActiveError
from realtime.events import Event, call_answered_event, call_ended_event, incoming_call_event

LOGGER = logging.getLogger(__name__)

DEFAULT_ANSWER_DELAY_SECONDS = 2.0


def _format_offset(seconds: int | float) -> str:
    return f"{seconds:g}s"


@dataclass(slots=True)
class CallSession:
    call_id: str
    duration: int | float
    tasks: list[asyncio.Task] = field(default_factory=list)

    @property
    def pending(self) -> bool:
        return any(not task.done() for task in self.tasks)


@dataclass(frozen=True, slots=True)
class TimelineSummary:
    call_id: str
    duration: int | float
    answer_delay: float
    delivered: int

    def steps(self) -> list[dict[str, str]]:
        return [
            {"action": "incoming_call", "after": "0s"},
            {"action": "call_answered", "after": _format_offset(self.answer_delay)},
            {"action": "call_ended", "after": _format_offset(self.duration)},
        ]


class CallTimeline:
    """Schedules the three-step event sequence for simulated calls.

    Only one timeline per call ID may be pending at a time; a second `start`
    for the same ID raises `CallTimelineActiveError` until the first has
    finished or been cancelled.
    """

    def __init__(
        self,
        broadcaster: EventBroadcaster,
        *,
        answer_delay: float = DEFAULT_ANSWER_DELAY_SECONDS,
    ) -> None:
        self._broadcaster = broadcaster
        self._answer_delay = answer_delay
        self._sessions: dict[str, CallSession] = {}

    @property
    def answer_delay(self) -> float:
        return self._answer_delay

    async def start(
        self,
        call_id: str,
        *,
        caller_number: str,
        caller_email: str,
        duration: int | float,
        source: str = "simulation",
    ) -> TimelineSummary:
        if call_id in self._sessions:
            raise CallTimelineActiveError(f"Call {call_id} is already being simulated.")

        # Reserve the ID before the first await so a concurrent start conflicts.
        session = CallSession(call_id=call_id, duration=duration)
        self._sessions[call_id] = session

        try:
            delivered = await self._broadcaster.broadcast(
                incoming_call_event(
                    call_id=call_id,
                    number=caller_number,
                    email=caller_email,
                    source=source,
                )
            )
        except BaseException:
            self._sessions.pop(call_id, None)
            raise

        self._arm(session, "call_answered", self._answer_delay, partial(call_answered_event, call_id))
        self._arm(session, "call_ended", duration, partial(call_ended_event, call_id, duration))

        LOGGER.info(
            "Simulating call %s from %s for %ss (answer after %ss)",
            call_id,
            caller_number,
            duration,
            self._answer_delay,
        )
        return TimelineSummary(
            call_id=call_id,
            duration=duration,
            answer_delay=self._answer_delay,
            delivered=delivered,
        )

    def cancel(self, call_id: str) -> bool:
        """Cancel the pending steps of a call's timeline. Returns False if none is active."""

        session = self._sessions.pop(call_id, None)
        if session is None:
            return False
        for task in session.tasks:
            task.cancel()
        LOGGER.info("Cancelled call simulation %s", call_id)
        return True

    def is_active(self, call_id: str) -> bool:
        return call_id in self._sessions

    def active_call_ids(self) -> list[str]:
        return list(self._sessions)

    def active_count(self) -> int:
        return len(self._sessions)

    async def shutdown(self) -> None:
        """Cancel every pending step and wait for the tasks to unwind."""

        tasks = [task for session in self._sessions.values() for task in session.tasks]
        self._sessions.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _arm(
        self,
        session: CallSession,
        step: str,
        delay: int | float,
        build_event: Callable[[], Event],
    ) -> None:
        task = asyncio.create_task(
            self._fire_after(delay, build_event),
            name=f"call-timeline:{session.call_id}:{step}",
        )
        task.add_done_callback(partial(self._on_step_done, session))
        session.tasks.append(task)

    async def _fire_after(self, delay: int | float, build_event: Callable[[], Event]) -> None:
        await asyncio.sleep(delay)
        # Timestamp is taken when the step fires, not when it was armed.
        await self._broadcaster.broadcast(build_event())

    def _on_step_done(self, session: CallSession, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            LOGGER.error(
                "Timeline step %s failed",
                task.get_name(),
                exc_info=task.exception(),
            )
        if session.pending:
            return
        # Only drop the entry if it still belongs to this session.
        if self._sessions.get(session.call_id) is session:
            del self._sessions[session.call_id]
            LOGGER.debug("Call simulation %s finished", session.call_id)
