"""FastAPI routes for triggering and simulating helpdesk call popups."""

from __future__ import annotations

import logging
import resource
import sys
from typing import Any, TypeVar

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.dependencies import get_call_repository, get_hub, get_ticket_client
from api.schemas import (
    CallRequest,
    CancelSimulationResponse,
    EndpointInfo,
    HealthResponse,
    SimulateCallRequest,
    SimulateCallResponse,
    StatusResponse,
    TimelineStep,
    TriggerPopupRequest,
    TriggerPopupResponse,
    ValidationErrorResponse,
    WsTestResponse,
)
from config.settings import get_settings
from db.repository import CallRepository
from integrations.freshdesk import FreshdeskTicketClient, create_ticket_in_background
from realtime.errors import CallTimelineNotFoundError
from realtime.events import incoming_call_event, utc_timestamp, ws_test_event
from realtime.hub import CTIHub

LOGGER = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()

TRIGGER_POPUP_EXAMPLE: dict[str, Any] = {
    "requester_phone": "16138888888",
    "responder_email": "agent@example.com",
    "call_reference_id": "777777777",
}
SIMULATE_CALL_EXAMPLE: dict[str, Any] = {**TRIGGER_POPUP_EXAMPLE, "duration": 45}

ENDPOINTS = [
    EndpointInfo(method="POST", path="/api/trigger-popup", desc="Trigger popup"),
    EndpointInfo(method="POST", path="/api/simulate-call", desc="Simulate full call"),
    EndpointInfo(method="DELETE", path="/api/simulate-call/{call_id}", desc="Cancel a simulation"),
    EndpointInfo(method="GET", path="/api/status", desc="Server status"),
    EndpointInfo(method="GET", path="/api/test", desc="Test endpoint"),
    EndpointInfo(method="GET", path="/api/ws-test", desc="Broadcast a test event"),
    EndpointInfo(method="GET", path="/health", desc="Health check"),
]


CallRequestT = TypeVar("CallRequestT", bound=CallRequest)


def _missing_fields_response(missing: list[str], example: dict[str, Any]) -> JSONResponse:
    body = ValidationErrorResponse(missing=missing, example=example)
    return JSONResponse(status_code=400, content=body.model_dump())


def _invalid_fields_response(invalid: list[str], example: dict[str, Any]) -> JSONResponse:
    body = ValidationErrorResponse(error="Invalid field values", missing=[], invalid=invalid, example=example)
    return JSONResponse(status_code=400, content=body.model_dump())


def _request_body(model: type[CallRequest]) -> dict[str, Any]:
    return {"requestBody": {"content": {"application/json": {"schema": model.model_json_schema()}}}}


async def _read_call_request(
    request: Request,
    model: type[CallRequestT],
    example: dict[str, Any],
) -> CallRequestT | JSONResponse:
    """Validate the JSON body, or build the 400 that tells the caller what to send.

    A missing, undecodable or non-object body is treated as an empty object.
    """

    try:
        data = await request.json()
    except (ValueError, RecursionError):
        data = {}
    if not isinstance(data, dict):
        data = {}

    try:
        payload = model.model_validate(data)
    except ValidationError as exc:
        invalid = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        return _invalid_fields_response(invalid, example)

    missing = payload.missing_fields()
    if missing:
        return _missing_fields_response(missing, example)
    return payload


@router.post(
    "/trigger-popup",
    response_model=TriggerPopupResponse,
    responses={400: {"model": ValidationErrorResponse}},
    openapi_extra=_request_body(TriggerPopupRequest),
)
async def trigger_popup(
    request: Request,
    background_tasks: BackgroundTasks,
    hub: CTIHub = Depends(get_hub),
    repo: CallRepository = Depends(get_call_repository),
    ticket_client: FreshdeskTicketClient | None = Depends(get_ticket_client),
):
    payload = await _read_call_request(request, TriggerPopupRequest, TRIGGER_POPUP_EXAMPLE)
    if isinstance(payload, JSONResponse):
        return payload

    LOGGER.info("Triggering popup for %s (%s)", payload.requester_phone, payload.responder_email)

    record = await repo.create_call(
        call_id=payload.call_reference_id,
        caller_phone=payload.requester_phone,
        responder_email=payload.responder_email,
        call_duration=max(0, int(payload.call_duration or 0)),
        source="postman",
    )

    event = incoming_call_event(
        call_id=payload.call_reference_id,
        number=payload.requester_phone,
        email=payload.responder_email,
        source="postman",
    )
    clients = await hub.broadcaster.broadcast(event)

    background_tasks.add_task(
        create_ticket_in_background,
        ticket_client,
        call_id=payload.call_reference_id,
        phone=payload.requester_phone,
        email=payload.responder_email,
    )

    return TriggerPopupResponse(
        message=f"Popup triggered for {payload.requester_phone}",
        timestamp=utc_timestamp(),
        clients=clients,
        record_id=record.id,
        data=event.to_dict(),
    )


@router.post(
    "/simulate-call",
    response_model=SimulateCallResponse,
    responses={400: {"model": ValidationErrorResponse}, 409: {"description": "Simulation already running"}},
    openapi_extra=_request_body(SimulateCallRequest),
)
async def simulate_call(
    request: Request,
    hub: CTIHub = Depends(get_hub),
):
    payload = await _read_call_request(request, SimulateCallRequest, SIMULATE_CALL_EXAMPLE)
    if isinstance(payload, JSONResponse):
        return payload

    duration = payload.duration
    if duration is None:
        duration = get_settings().default_call_duration_seconds

    LOGGER.info("Simulating call: %s for %ss", payload.requester_phone, duration)

    summary = await hub.timeline.start(
        payload.call_reference_id,
        caller_number=payload.requester_phone,
        caller_email=payload.responder_email,
        duration=duration,
        source="simulation",
    )

    return SimulateCallResponse(
        message=f"Call simulation started for {payload.requester_phone}",
        call_id=summary.call_id,
        duration=summary.duration,
        clients=summary.delivered,
        timeline=[TimelineStep(**step) for step in summary.steps()],
    )


@router.delete("/simulate-call/{call_id}", response_model=CancelSimulationResponse)
async def cancel_simulation(call_id: str, hub: CTIHub = Depends(get_hub)) -> CancelSimulationResponse:
    if not hub.timeline.cancel(call_id):
        raise CallTimelineNotFoundError(f"No running simulation for call {call_id}.")
    return CancelSimulationResponse(call_id=call_id)


@router.get("/status", response_model=StatusResponse)
async def status(hub: CTIHub = Depends(get_hub)) -> StatusResponse:
    return StatusResponse(
        timestamp=utc_timestamp(),
        clients=hub.registry.count(),
        active_calls=hub.timeline.active_count(),
        uptime=hub.uptime,
        endpoints=ENDPOINTS,
    )


@router.get("/test")
async def server_info() -> dict[str, Any]:
    settings = get_settings()
    return {
        "message": "CTI Server is running!",
        "timestamp": utc_timestamp(),
        "server": settings.server_name,
        "version": settings.app_version,
        "endpoints": {
            "triggerPopup": {
                "method": "POST",
                "url": "/api/trigger-popup",
                "body": TRIGGER_POPUP_EXAMPLE,
            },
            "simulateCall": {
                "method": "POST",
                "url": "/api/simulate-call",
                "body": {**TRIGGER_POPUP_EXAMPLE, "duration": settings.default_call_duration_seconds},
            },
            "status": {"method": "GET", "url": "/api/status"},
        },
    }


@router.get("/ws-test", response_model=WsTestResponse)
async def ws_test(hub: CTIHub = Depends(get_hub)) -> WsTestResponse:
    event = ws_test_event()
    await hub.broadcaster.broadcast(event)
    return WsTestResponse(data=event.to_dict(), clients=hub.registry.count())


def _memory_usage() -> dict[str, int]:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is in kilobytes on Linux and in bytes on macOS.
    scale = 1 if sys.platform == "darwin" else 1024
    return {"maxRss": usage.ru_maxrss * scale}


@health_router.get("/health", response_model=HealthResponse)
async def health(hub: CTIHub = Depends(get_hub)) -> HealthResponse:
    return HealthResponse(
        timestamp=utc_timestamp(),
        uptime=hub.uptime,
        connections=hub.registry.count(),
        memory=_memory_usage(),
    )
