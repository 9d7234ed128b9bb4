from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request

from clearride.core.admin import AdminService
from clearride.web.sessions import BookingSession, SessionRegistry


@dataclass
class AppServices:
    sessions: SessionRegistry
    admin: AdminService
    version: str = "unknown"


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return services


def require_session(services: AppServices, session_id: str) -> BookingSession:
    session = services.sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Booking session not found or expired")
    return session
