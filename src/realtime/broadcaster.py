"""Best-effort fan-out of events to every open connection."""

from __future__ import annotations

import asyncio
import logging

from realtime.connection import Connection
from realtime.events import Event
from realtime.registry import ConnectionRegistry

LOGGER = logging.getLogger(__name__)


class EventBroadcaster:
    """Serialize an event once and push it to every open connection.

    A failed send is logged and skipped; it never aborts the batch and never
    removes the connection from the registry (closure is detected by the
    connection's own receive loop). Broadcasts are serialized through a lock so
    clients see events in the order they were dispatched.
    """

    def __init__(self, registry: ConnectionRegistry, *, send_timeout: float = 5.0) -> None:
        self._registry = registry
        self._send_timeout = send_timeout
        self._lock = asyncio.Lock()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def broadcast(self, event: Event) -> int:
        """Send `event` to all open connections and return the number of successful sends.

        The count is advisory; it is not a delivery guarantee.
        """

        text = event.to_json()
        async with self._lock:
            targets = [conn for conn in self._registry.snapshot() if conn.is_open]
            # Concurrent sends; one stalled client costs at most one send timeout.
            results = await asyncio.gather(*(self._send(conn, text) for conn in targets))
        delivered = sum(results)

        LOGGER.info("Sent %s to %d client(s)", event.kind.value, delivered)
        return delivered

    async def send_to(self, connection: Connection, event: Event) -> bool:
        """Send `event` to a single connection, with the same failure tolerance."""

        if not connection.is_open:
            return False
        return await self._send(connection, event.to_json())

    async def _send(self, connection: Connection, text: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(text), timeout=self._send_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning("Timed out sending to client %s", connection.remote_address)
            return False
        except Exception as exc:
            LOGGER.error("Error sending to client %s: %s", connection.remote_address, exc)
            return False
        return True
