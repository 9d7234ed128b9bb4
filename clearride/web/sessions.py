from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from clearride.core.wizard import WizardController
from clearride.infra.request_context import log_event

LOGGER = logging.getLogger(__name__)

ControllerFactory = Callable[[], Awaitable[WizardController]]


@dataclass
class BookingSession:
    session_id: str
    controller: WizardController
    started_at: datetime
    last_activity_at: datetime
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def touch(self, now: Optional[datetime] = None) -> None:
        self.last_activity_at = now or datetime.now(timezone.utc)


class SessionRegistry:
    """In-memory booking sessions keyed by an opaque id, expired after inactivity."""

    def __init__(self, factory: ControllerFactory, *, timeout_seconds: int = 900) -> None:
        self._factory = factory
        self._timeout_seconds = timeout_seconds
        self._active: dict[str, BookingSession] = {}

    def __len__(self) -> int:
        return len(self._active)

    async def create(self, now: Optional[datetime] = None) -> BookingSession:
        self.purge_expired(now)
        controller = await self._factory()
        now = now or datetime.now(timezone.utc)
        session = BookingSession(
            session_id=uuid.uuid4().hex,
            controller=controller,
            started_at=now,
            last_activity_at=now,
        )
        self._active[session.session_id] = session
        log_event(LOGGER, component="sessions", event="session.start", session_id=session.session_id)
        return session

    def get(self, session_id: str, now: Optional[datetime] = None) -> Optional[BookingSession]:
        session = self._active.get(session_id)
        if session is None:
            return None
        if self.is_timed_out(session, now):
            self._active.pop(session_id, None)
            log_event(LOGGER, component="sessions", event="session.expired", session_id=session_id)
            return None
        session.touch(now)
        return session

    def discard(self, session_id: str) -> Optional[BookingSession]:
        return self._active.pop(session_id, None)

    def is_timed_out(self, session: BookingSession, now: Optional[datetime] = None) -> bool:
        if now is None:
            now = datetime.now(timezone.utc)
        return now - session.last_activity_at > timedelta(seconds=self._timeout_seconds)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        expired = [key for key, session in self._active.items() if self.is_timed_out(session, now)]
        for key in expired:
            self._active.pop(key, None)
        return len(expired)
