"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from starlette.requests import HTTPConnection

from config.settings import get_settings
from db.repository import CallRepository
from integrations.freshdesk import FreshdeskTicketClient
from realtime.hub import CTIHub


def get_hub(connection: HTTPConnection) -> CTIHub:
    """The hub created in the application lifespan (works for HTTP and WebSocket)."""

    return connection.app.state.hub


def get_call_repository() -> CallRepository:
    return CallRepository()


def get_ticket_client() -> FreshdeskTicketClient | None:
    settings = get_settings()
    if not settings.freshdesk_enabled:
        return None
    return FreshdeskTicketClient(settings)
