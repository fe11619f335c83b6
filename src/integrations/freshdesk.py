"""Ticket creation against the Freshdesk REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from config.settings import Settings, get_settings
from realtime.errors import TicketCreationError

LOGGER = logging.getLogger(__name__)

# Freshdesk ticket source code for "Phone".
SOURCE_PHONE = 3


def _base_url(domain: str) -> str:
    domain = domain.strip().rstrip("/")
    if domain.startswith(("http://", "https://")):
        return domain
    if "." not in domain:
        domain = f"{domain}.freshdesk.com"
    return f"https://{domain}"


class FreshdeskTicketClient:
    """Creates a phone ticket for each popped-up call."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        if not settings.freshdesk_enabled:
            raise ValueError("Freshdesk domain/API key are not configured.")
        self._endpoint = f"{_base_url(settings.freshdesk_domain)}/api/v2/tickets"
        self._api_key = settings.freshdesk_api_key
        self._priority = settings.freshdesk_ticket_priority
        self._status = settings.freshdesk_ticket_status
        self._timeout = settings.freshdesk_timeout_seconds

    def build_payload(self, *, call_id: str, phone: str, email: str) -> dict[str, Any]:
        return {
            "subject": f"Incoming call from {phone}",
            "description": (
                f"Call reference: {call_id}<br>"
                f"Caller: {phone}<br>"
                f"Assigned agent: {email}"
            ),
            "email": email,
            "phone": phone,
            "priority": self._priority,
            "status": self._status,
            "source": SOURCE_PHONE,
            "tags": ["cti", f"call-{call_id}"],
        }

    async def create_ticket(self, *, call_id: str, phone: str, email: str) -> dict[str, Any]:
        payload = self.build_payload(call_id=call_id, phone=phone, email=email)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._endpoint,
                    json=payload,
                    auth=(self._api_key, "X"),
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TicketCreationError(f"Freshdesk ticket for call {call_id} failed: {exc}") from exc

        ticket = response.json()
        LOGGER.info("Created Freshdesk ticket %s for call %s", ticket.get("id"), call_id)
        return ticket


async def create_ticket_in_background(
    client: FreshdeskTicketClient | None,
    *,
    call_id: str,
    phone: str,
    email: str,
) -> None:
    """Fire-and-forget wrapper: failures are logged, never raised."""

    if client is None:
        LOGGER.debug("Freshdesk not configured; skipping ticket for call %s", call_id)
        return
    try:
        await client.create_ticket(call_id=call_id, phone=phone, email=email)
    except TicketCreationError as exc:
        LOGGER.error("Ticket creation failed: %s", exc.detail)
    except Exception:
        LOGGER.exception("Unexpected error creating ticket for call %s", call_id)
