"""WhatsApp handoff: booking summary text and the deep link that carries it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

from clearride.core.errors import HandoffError
from clearride.core.models import BookingDraft, Coordinates, Location

LOGGER = logging.getLogger(__name__)

DEFAULT_MESSAGING_HOST = "wa.me"
DEFAULT_DESTINATION = "201100434503"
DEFAULT_MAX_URL_LENGTH = 8000
SEPARATOR = "-----------------------------"

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class HandoffTarget:
    host: str = DEFAULT_MESSAGING_HOST
    destination: str = DEFAULT_DESTINATION


def coordinates_map_link(coordinates: Coordinates | None) -> str | None:
    if coordinates is None:
        return None
    return f"https://www.google.com/maps?q={coordinates.lat},{coordinates.lon}"


def address_map_link(address: str | None) -> str | None:
    if not address or not address.strip():
        return None
    return f"https://www.google.com/maps/search/?api=1&query={quote(address.strip(), safe=_URI_COMPONENT_SAFE)}"


def location_map_link(location: Location) -> str | None:
    """Prefer a pin from coordinates; fall back to an address search."""
    if not location.address.strip():
        return None
    return coordinates_map_link(location.coordinates) or address_map_link(location.address)


def _location_lines(title: str, location: Location) -> list[str]:
    lines = [f"📍 {title}: {location.address.strip()}"]
    link = location_map_link(location)
    if link:
        lines.append(f"🗺️ الخريطة: {link}")
    return lines


def build_summary(draft: BookingDraft, *, car_type_label: str, car_model_label: str) -> str:
    lines = [
        "*طلب حجز جديد*",
        SEPARATOR,
        f"🚗 نوع الرحلة: {car_type_label}",
        f"🚘 الموديل: {car_model_label}",
        f"👥 عدد الركاب: {draft.passengers}",
        f"🧳 عدد الحقائب: {draft.bags}",
        SEPARATOR,
    ]
    lines.extend(_location_lines("الانطلاق", draft.pickup_location))
    lines.append("")
    lines.extend(_location_lines("الوصول", draft.dropoff_location))
    lines.extend(
        [
            SEPARATOR,
            f"👤 الاسم: {draft.first_name.strip()}",
            f"📞 الهاتف: {draft.phone_number.strip()}",
            SEPARATOR,
            "يرجى تأكيد هذه التفاصيل.",
        ]
    )
    return "\n".join(lines)


def build_handoff_url(summary: str, target: HandoffTarget) -> str:
    encoded = quote(summary, safe=_URI_COMPONENT_SAFE)
    return f"https://{target.host}/{target.destination}?text={encoded}"


class RedirectOpener:
    """Accepts a handoff link for the browser to open in a new context.

    The server cannot open a browsing context itself; the accepted URL is handed
    back to the client. Links the client environment would reject are refused here.
    """

    def __init__(self, *, max_url_length: int = DEFAULT_MAX_URL_LENGTH) -> None:
        self._max_url_length = max(1, int(max_url_length))

    async def open(self, url: str) -> None:
        if not url.startswith("https://"):
            raise HandoffError("handoff link must use https")
        if len(url) > self._max_url_length:
            LOGGER.warning("Handoff link rejected: length=%s limit=%s", len(url), self._max_url_length)
            raise HandoffError("handoff link is too long to open")
