from __future__ import annotations

import asyncio

import pytest

from clearride.core.errors import HandoffError
from clearride.core.handoff import (
    HandoffTarget,
    RedirectOpener,
    address_map_link,
    build_handoff_url,
    build_summary,
    location_map_link,
)
from clearride.core.models import BookingDraft, Coordinates, Location


def _draft(**overrides) -> BookingDraft:
    values = dict(
        car_type="sedan",
        car_model="camry",
        passengers=2,
        bags=1,
        pickup_location=Location(address="Cairo"),
        dropoff_location=Location(address="Alexandria"),
        first_name="Ahmed",
        phone_number="+201234567890",
    )
    values.update(overrides)
    return BookingDraft(**values)


def test_summary_lists_sections_in_order() -> None:
    summary = build_summary(_draft(), car_type_label="سيدان", car_model_label="Camry")
    markers = ["نوع الرحلة: سيدان", "الموديل: Camry", "عدد الركاب: 2", "عدد الحقائب: 1", "Cairo", "Alexandria", "Ahmed", "+201234567890"]

    positions = [summary.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_summary_includes_map_lines_only_for_filled_addresses() -> None:
    draft = _draft(pickup_location=Location(address="Cairo", coordinates=Coordinates(lat=30.0, lon=31.2)))

    summary = build_summary(draft, car_type_label="سيدان", car_model_label="Camry")

    assert "https://www.google.com/maps?q=30.0,31.2" in summary
    assert "https://www.google.com/maps/search/?api=1&query=Alexandria" in summary
    assert summary.count("الخريطة") == 2


def test_map_link_prefers_coordinates() -> None:
    pinned = Location(address="Downtown", coordinates=Coordinates(lat=1.5, lon=2.5))

    assert location_map_link(pinned) == "https://www.google.com/maps?q=1.5,2.5"
    assert location_map_link(Location(address="  ")) is None
    assert address_map_link("Nasr City") == "https://www.google.com/maps/search/?api=1&query=Nasr%20City"


def test_handoff_url_encodes_like_uri_component() -> None:
    url = build_handoff_url("Hi (test) & more\nline", HandoffTarget())

    assert url == "https://wa.me/201100434503?text=Hi%20(test)%20%26%20more%0Aline"


def test_handoff_url_uses_configured_destination() -> None:
    url = build_handoff_url("x", HandoffTarget(host="api.whatsapp.com", destination="2010"))

    assert url == "https://api.whatsapp.com/2010?text=x"


def test_redirect_opener_rejects_long_or_insecure_links() -> None:
    opener = RedirectOpener(max_url_length=40)

    asyncio.run(opener.open("https://wa.me/1?text=ok"))
    with pytest.raises(HandoffError):
        asyncio.run(opener.open("http://wa.me/1?text=ok"))
    with pytest.raises(HandoffError):
        asyncio.run(opener.open("https://wa.me/1?text=" + "a" * 40))
