from __future__ import annotations

import pytest

from clearride.core.models import CatalogEntry
from clearride.core.steps import STEP_FIRST_NAME, STEP_LOCATION, build_steps, earliest_step_for, step_index
from clearride.core.validation import FieldPath


def _steps():
    return build_steps([CatalogEntry(id="sedan", label="سيدان", image_url="https://i.ibb.co/s.png")])


def test_step_sequence_and_auto_advance_flags() -> None:
    steps = _steps()

    assert [step.id for step in steps] == [
        "carType",
        "carModel",
        "passengers",
        "bags",
        "location",
        "firstName",
        "phoneNumber",
        "summary",
    ]
    assert [step.auto_advance for step in steps] == [True, True, True, True, False, False, False, False]


def test_each_field_owned_by_exactly_one_step() -> None:
    steps = _steps()
    for path in FieldPath:
        owners = [step.id for step in steps if step.owns(path)]
        assert len(owners) == 1, path
    assert steps[-1].validation_fields == ()


def test_location_step_validates_both_addresses_in_order() -> None:
    steps = _steps()
    location = steps[step_index(steps, STEP_LOCATION)]

    assert location.validation_fields == (FieldPath.PICKUP_ADDRESS, FieldPath.DROPOFF_ADDRESS)


def test_car_type_step_carries_catalog_options() -> None:
    payload = _steps()[0].to_dict()

    assert payload["props"]["options"] == [
        {"id": "sedan", "label": "سيدان", "imageUrl": "https://i.ibb.co/s.png"}
    ]
    assert payload["validationFields"] == ["carType"]


def test_passenger_and_bag_steps_share_component() -> None:
    steps = _steps()
    passengers, bags = steps[2], steps[3]

    assert passengers.component == bags.component == "passenger_selection"
    assert passengers.props["selectionType"] == "passengers"
    assert list(passengers.props["choices"]) == [1, 2, 3, 4]
    assert bags.props["selectionType"] == "bags"
    assert list(bags.props["choices"]) == [0, 1, 2, 3]


def test_step_props_are_read_only() -> None:
    with pytest.raises(TypeError):
        _steps()[2].props["selectionType"] = "bags"


def test_earliest_step_for_picks_lowest_index() -> None:
    steps = _steps()

    assert earliest_step_for(steps, [FieldPath.PHONE_NUMBER, FieldPath.FIRST_NAME]) == step_index(
        steps, STEP_FIRST_NAME
    )
    assert earliest_step_for(steps, []) is None


def test_step_index_unknown_id() -> None:
    with pytest.raises(ValueError):
        step_index(_steps(), "payment")
