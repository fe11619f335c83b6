"""Duplex connection handles tracked by the registry."""

from __future__ import annotations

from typing import Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class Connection(Protocol):
    """Anything the broadcaster can push text frames to."""

    @property
    def is_open(self) -> bool:  # pragma: no cover - protocol stub
        ...

    @property
    def remote_address(self) -> str:  # pragma: no cover - protocol stub
        ...

    async def send_text(self, text: str) -> None:  # pragma: no cover - protocol stub
        ...


class WebSocketConnection:
    """Adapter exposing a Starlette WebSocket as a Connection.

    Identity is the wrapper itself, so the registry never aliases two
    wrappers of the same socket as long as one wrapper is created per accept.
    """

    __slots__ = ("_websocket",)

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    @property
    def remote_address(self) -> str:
        client = self._websocket.client
        if client is None:
            return "unknown"
        return f"{client.host}:{client.port}"

    async def send_text(self, text: str) -> None:
        await self._websocket.send_text(text)

    def __repr__(self) -> str:
        return f"WebSocketConnection({self.remote_address})"
