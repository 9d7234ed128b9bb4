"""Notifications and submit outcome returned from the wizard to its caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

NotificationVariant = Literal["default", "destructive"]
SubmitStatus = Literal["done", "partial", "failed", "invalid", "busy"]


@dataclass(frozen=True)
class Notification:
    """Transient, dismissible message for the user (a toast)."""

    title: str
    description: str
    variant: NotificationVariant = "default"

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "description": self.description, "variant": self.variant}


def info(title: str, description: str) -> Notification:
    return Notification(title=title, description=description, variant="default")


def failure(title: str, description: str) -> Notification:
    return Notification(title=title, description=description, variant="destructive")


@dataclass(frozen=True)
class SubmitOutcome:
    """Result of WizardController.submit().

    ``done`` means the booking, the contact and the handoff all went through
    (possibly across several attempts); ``partial`` means at least one of them
    did and the rest failed and were reported; ``failed`` means none did.
    """

    status: SubmitStatus
    booking_id: str | None = None
    contact_id: str | None = None
    handoff_url: str | None = None
    record: dict[str, Any] | None = None
    failures: list[str] = field(default_factory=list)

    @property
    def confirmed(self) -> bool:
        return self.status == "done"

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "bookingId": self.booking_id,
            "contactId": self.contact_id,
            "handoffUrl": self.handoff_url,
            "failures": list(self.failures),
        }
