"""Bookkeeping for live helpdesk connections."""

from __future__ import annotations

import logging
from collections.abc import Callable

from realtime.connection import Connection

LOGGER = logging.getLogger(__name__)


class ConnectionRegistry:
    """Set of connections eligible to receive broadcasts.

    Only mutated from the event loop thread, so no locking. Iteration always
    walks a snapshot: a connection added or removed while a broadcast is
    suspended on a send does not disturb that broadcast.
    """

    def __init__(self) -> None:
        self._connections: set[Connection] = set()

    def add(self, connection: Connection) -> None:
        self._connections.add(connection)
        LOGGER.info(
            "Client connected from %s (active connections: %d)",
            connection.remote_address,
            len(self._connections),
        )

    def remove(self, connection: Connection) -> None:
        if connection not in self._connections:
            return
        self._connections.discard(connection)
        LOGGER.info("Client disconnected (active connections: %d)", len(self._connections))

    def for_each(self, visit: Callable[[Connection], None]) -> None:
        for connection in self.snapshot():
            visit(connection)

    def snapshot(self) -> list[Connection]:
        return list(self._connections)

    def count(self) -> int:
        return len(self._connections)

    def clear(self) -> None:
        self._connections.clear()

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    def __len__(self) -> int:
        return len(self._connections)
