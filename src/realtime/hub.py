"""Owner of the registry, broadcaster, timeline and router for one app instance."""

from __future__ import annotations

import logging
import time

from config.settings import Settings
from realtime.broadcaster import EventBroadcaster
from realtime.messages import MessageRouter
from realtime.registry import ConnectionRegistry
from realtime.timeline import DEFAULT_ANSWER_DELAY_SECONDS, CallTimeline

LOGGER = logging.getLogger(__name__)


class CTIHub:
    """Created at startup, stored on `app.state`, shut down with the app."""

    def __init__(
        self,
        *,
        server_name: str = "CTI Server",
        answer_delay: float = DEFAULT_ANSWER_DELAY_SECONDS,
        send_timeout: float = 5.0,
    ) -> None:
        self.server_name = server_name
        self.registry = ConnectionRegistry()
        self.broadcaster = EventBroadcaster(self.registry, send_timeout=send_timeout)
        self.timeline = CallTimeline(self.broadcaster, answer_delay=answer_delay)
        self.router = MessageRouter(self.broadcaster)
        self._started_at = time.monotonic()

    @classmethod
    def from_settings(cls, settings: Settings) -> CTIHub:
        return cls(
            server_name=settings.server_name,
            answer_delay=settings.answer_delay_seconds,
            send_timeout=settings.send_timeout_seconds,
        )

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    async def shutdown(self) -> None:
        pending = self.timeline.active_count()
        await self.timeline.shutdown()
        self.registry.clear()
        LOGGER.info("CTI hub stopped (%d pending simulation(s) cancelled)", pending)
