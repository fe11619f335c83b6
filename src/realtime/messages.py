"""Inbound client messages and their per-connection dispatch."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from realtime.broadcaster import EventBroadcaster
from realtime.connection import Connection
from realtime.events import action_acknowledged_event, registered_event

LOGGER = logging.getLogger(__name__)


class RegisterMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["register"]


class CallActionMessage(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Literal["call_action"]
    # Echoed back untouched, whatever JSON type the client used.
    action: Any = None
    call_id: Any = Field(default=None, alias="callId")


class UnknownMessage(BaseModel):
    """Any message whose `type` is missing or not one we handle."""

    model_config = ConfigDict(extra="allow")

    type: Any = None


InboundMessage = RegisterMessage | CallActionMessage | UnknownMessage

_MESSAGE_TYPES: dict[str, type[BaseModel]] = {
    "register": RegisterMessage,
    "call_action": CallActionMessage,
}


def parse_inbound_message(raw: str | bytes) -> InboundMessage | None:
    """Parse one client frame. Returns None when it cannot be decoded as JSON."""

    # ValueError also covers over-long integer literals; RecursionError covers deep nesting.
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        LOGGER.error("Error processing message: %s", exc)
        return None

    if not isinstance(data, dict):
        return UnknownMessage()

    tag = data.get("type")
    model = _MESSAGE_TYPES.get(tag, UnknownMessage) if isinstance(tag, str) else UnknownMessage
    return model.model_validate(data)


def time_based_client_id() -> str:
    """Milliseconds since the epoch; unique only to timestamp resolution."""

    return str(time.time_ns() // 1_000_000)


class MessageRouter:
    """Handles messages arriving from one client; replies go only to that client."""

    def __init__(
        self,
        broadcaster: EventBroadcaster,
        *,
        client_id_factory: Callable[[], str] = time_based_client_id,
    ) -> None:
        self._broadcaster = broadcaster
        self._client_id_factory = client_id_factory

    async def handle(self, connection: Connection, raw: str | bytes) -> None:
        message = parse_inbound_message(raw)
        if message is None:
            return

        LOGGER.debug("Received from %s: %s", connection.remote_address, message)

        if isinstance(message, RegisterMessage):
            await self._on_register(connection)
        elif isinstance(message, CallActionMessage):
            await self._on_call_action(connection, message)
        else:
            LOGGER.debug("Ignoring message with type %r", message.type)

    async def _on_register(self, connection: Connection) -> None:
        client_id = self._client_id_factory()
        await self._broadcaster.send_to(connection, registered_event(client_id))
        LOGGER.info("Registered client %s as %s", connection.remote_address, client_id)

    async def _on_call_action(self, connection: Connection, message: CallActionMessage) -> None:
        # Acknowledgment only; nothing is forwarded to the PBX.
        await self._broadcaster.send_to(
            connection,
            action_acknowledged_event(message.action, message.call_id),
        )
        LOGGER.info("Action: %s for call %s", message.action, message.call_id)
