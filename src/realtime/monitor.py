"""Command-line listener that logs every event the CTI server pushes.

Handy for checking a deployment without a helpdesk front-end:

    python -m realtime.monitor ws://localhost:8080/ws --register
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

import websockets

from config.settings import get_settings

LOGGER = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 2


class EventMonitor:
    def __init__(self, url: str, *, register: bool = False) -> None:
        self._url = url
        self._register = register

    async def run_forever(self) -> None:
        LOGGER.info("Connecting to CTI server: %s", self._url)
        async for ws in self._ws_connect_loop(self._url):
            try:
                await self._handle_events(ws)
            except websockets.ConnectionClosed:
                LOGGER.warning("Connection closed; reconnecting")

    async def _handle_events(self, ws) -> None:
        if self._register:
            await ws.send(json.dumps({"type": "register"}))

        async for message in ws:
            try:
                event = json.loads(message)
            except json.JSONDecodeError:
                LOGGER.warning("Non-JSON frame: %r", message)
                continue
            LOGGER.info("%s %s", event.get("event", "?"), json.dumps(event, sort_keys=True))

    @staticmethod
    async def _ws_connect_loop(ws_url: str):
        while True:
            try:
                async with websockets.connect(ws_url, ping_interval=20, ping_timeout=20) as ws:
                    yield ws
            except (OSError, websockets.WebSocketException):
                LOGGER.exception("Failed to connect to CTI websocket; retrying")
            await asyncio.sleep(RECONNECT_DELAY_SECONDS)


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Log events pushed by the CTI server.")
    parser.add_argument("url", nargs="?", default=f"ws://localhost:{settings.port}/ws")
    parser.add_argument("--register", action="store_true", help="Send a register message on connect.")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(EventMonitor(args.url, register=args.register).run_forever())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
