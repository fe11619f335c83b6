"""API-facing Pydantic models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_CALL_FIELDS = ("requester_phone", "responder_email", "call_reference_id")


class CallRequest(BaseModel):
    """Fields shared by the popup and simulation endpoints.

    All fields are optional at the schema level so that a missing field is
    reported as a 400 with a usage example instead of a generic 422.
    Durations must be finite.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore", allow_inf_nan=False)

    requester_phone: str | None = None
    responder_email: str | None = None
    call_reference_id: str | None = None

    def missing_fields(self) -> list[str]:
        missing = []
        for name in REQUIRED_CALL_FIELDS:
            value = getattr(self, name)
            if value is None or not value.strip():
                missing.append(name)
        return missing


class TriggerPopupRequest(CallRequest):
    call_duration: int | float | None = None


class SimulateCallRequest(CallRequest):
    duration: int | float | None = None


class ValidationErrorResponse(BaseModel):
    error: str = "All fields are required"
    missing: list[str]
    example: dict[str, Any]
    invalid: list[str] = Field(default_factory=list)


class TriggerPopupResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    clients: int = Field(description="Connections the incoming_call event was delivered to.")
    record_id: int = Field(description="Primary key of the persisted call record.")
    data: dict[str, Any]


class TimelineStep(BaseModel):
    action: str
    after: str


class SimulateCallResponse(BaseModel):
    success: bool = True
    message: str
    call_id: str = Field(serialization_alias="callId")
    duration: int | float
    clients: int
    timeline: list[TimelineStep]


class CancelSimulationResponse(BaseModel):
    success: bool = True
    call_id: str = Field(serialization_alias="callId")
    status: str = "cancelled"


class EndpointInfo(BaseModel):
    method: str
    path: str
    desc: str


class StatusResponse(BaseModel):
    status: str = "running"
    timestamp: str
    clients: int
    active_calls: int = Field(serialization_alias="activeCalls")
    uptime: float
    endpoints: list[EndpointInfo]


class WsTestResponse(BaseModel):
    success: bool = True
    message: str = "Test message sent to all WebSocket clients"
    data: dict[str, Any]
    clients: int


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str
    uptime: float
    connections: int
    memory: dict[str, int]
