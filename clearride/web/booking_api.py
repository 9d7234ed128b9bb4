from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from clearride.core.models import Coordinates
from clearride.core.validation import FieldPath
from clearride.web.dependencies import AppServices, get_services, require_session
from clearride.web.sessions import BookingSession

router = APIRouter(prefix="/api/booking", tags=["booking"])


class FieldUpdate(BaseModel):
    value: Any = None


class CoordinatesIn(BaseModel):
    lat: float
    lon: float


class LocationUpdate(BaseModel):
    address: str = ""
    coordinates: Optional[CoordinatesIn] = None


def _session_payload(session: BookingSession, **extra: Any) -> dict[str, Any]:
    controller = session.controller
    payload: dict[str, Any] = {
        "sessionId": session.session_id,
        "state": controller.snapshot(),
        "notifications": [item.to_dict() for item in controller.drain_notifications()],
    }
    payload.update(extra)
    return payload


@router.post("/sessions", status_code=201)
async def create_session(services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = await services.sessions.create()
    return _session_payload(session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = require_session(services, session_id)
    return _session_payload(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, services: AppServices = Depends(get_services)) -> None:
    if services.sessions.discard(session_id) is None:
        raise HTTPException(status_code=404, detail="Booking session not found or expired")


@router.put("/sessions/{session_id}/fields/{field}")
async def set_field(
    session_id: str,
    field: str,
    body: FieldUpdate,
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    path = FieldPath.parse(field)
    if path is None:
        raise HTTPException(status_code=422, detail=f"Unknown field: {field}")
    session = require_session(services, session_id)
    async with session.lock:
        await session.controller.set_field(path, body.value)
    return _session_payload(session)


@router.put("/sessions/{session_id}/locations/{kind}")
async def set_location(
    session_id: str,
    kind: str,
    body: LocationUpdate,
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    if kind not in {"pickup", "dropoff"}:
        raise HTTPException(status_code=422, detail=f"Unknown location: {kind}")
    session = require_session(services, session_id)
    coordinates = None
    if body.coordinates is not None:
        coordinates = Coordinates(lat=body.coordinates.lat, lon=body.coordinates.lon)
    async with session.lock:
        await session.controller.set_location(kind, body.address, coordinates)
    return _session_payload(session)


@router.post("/sessions/{session_id}/next")
async def go_next(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = require_session(services, session_id)
    async with session.lock:
        moved = session.controller.go_next()
    return _session_payload(session, accepted=moved)


@router.post("/sessions/{session_id}/previous")
async def go_previous(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = require_session(services, session_id)
    async with session.lock:
        moved = session.controller.go_previous()
    return _session_payload(session, accepted=moved)


@router.post("/sessions/{session_id}/submit")
async def submit(session_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    session = require_session(services, session_id)
    controller = session.controller
    if controller.is_submitting:
        # Answered by the controller's busy guard without waiting on the lock.
        outcome = await controller.submit()
    else:
        async with session.lock:
            outcome = await controller.submit()
    payload = _session_payload(session, outcome=outcome.to_public_dict())
    if outcome.confirmed:
        services.sessions.discard(session_id)
    return payload
