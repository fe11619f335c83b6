"""WebSocket endpoint for helpdesk front-ends.

Each client gets a `connected` welcome on accept, is registered for
broadcasts, and has its own inbound messages routed until it disconnects.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.dependencies import get_hub
from realtime.connection import WebSocketConnection
from realtime.events import connected_event
from realtime.hub import CTIHub

LOGGER = logging.getLogger(__name__)

router = APIRouter()


async def helpdesk_socket(websocket: WebSocket, hub: CTIHub = Depends(get_hub)) -> None:
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    hub.registry.add(connection)

    try:
        await hub.broadcaster.send_to(connection, connected_event(hub.server_name))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await hub.router.handle(connection, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        LOGGER.exception("WebSocket error for client %s", connection.remote_address)
    finally:
        hub.registry.remove(connection)


# Freshdesk apps connect to the bare host; /ws is kept for proxies that need a path.
router.add_api_websocket_route("/", helpdesk_socket)
router.add_api_websocket_route("/ws", helpdesk_socket)
