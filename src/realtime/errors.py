"""Domain-specific exceptions for CTI operations.

These exceptions are safe to import from API layers; each carries the HTTP
status it maps to.
"""

from __future__ import annotations


class CTIError(Exception):
    status_code: int = 500
    default_detail: str = "CTI server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class CallTimelineActiveError(CTIError):
    status_code = 409
    default_detail = "A call simulation with this call ID is already running."


class CallTimelineNotFoundError(CTIError):
    status_code = 404
    default_detail = "No running call simulation with this call ID."


class DatabaseOperationError(CTIError):
    status_code = 500
    default_detail = "Database operation failed."


class TicketCreationError(CTIError):
    status_code = 502
    default_detail = "Ticket creation failed."
