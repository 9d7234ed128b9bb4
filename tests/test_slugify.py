from __future__ import annotations

from clearride.core.slugify import slugify


def test_slugify_latin_label() -> None:
    assert slugify("  Family Van ") == "family-van"


def test_slugify_keeps_arabic_letters() -> None:
    assert slugify("سيارة عائلية") == "سيارة-عائلية"


def test_slugify_drops_punctuation_and_collapses_dashes() -> None:
    assert slugify("VIP -- Sedan!!") == "vip-sedan"
    assert slugify("--Luxury--") == "luxury"


def test_slugify_empty_inputs() -> None:
    assert slugify("") == ""
    assert slugify(None) == ""
    assert slugify("!!!") == ""
