from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from clearride.core.models import CatalogEntry
from clearride.core.validation import BAGS_RANGE, PASSENGERS_RANGE, FieldPath

STEP_CAR_TYPE = "carType"
STEP_CAR_MODEL = "carModel"
STEP_PASSENGERS = "passengers"
STEP_BAGS = "bags"
STEP_LOCATION = "location"
STEP_FIRST_NAME = "firstName"
STEP_PHONE_NUMBER = "phoneNumber"
STEP_SUMMARY = "summary"


@dataclass(frozen=True)
class StepDefinition:
    id: str
    component: str
    validation_fields: tuple[FieldPath, ...]
    auto_advance: bool = False
    props: Mapping[str, Any] = field(default_factory=dict)

    def owns(self, path: FieldPath) -> bool:
        return path in self.validation_fields

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "component": self.component,
            "validationFields": [path.value for path in self.validation_fields],
            "autoAdvance": self.auto_advance,
            "props": dict(self.props),
        }


def _frozen(props: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(props)


def build_steps(car_types: Sequence[CatalogEntry]) -> tuple[StepDefinition, ...]:
    """Build the fixed wizard sequence once the car-type catalog is known."""
    return (
        StepDefinition(
            id=STEP_CAR_TYPE,
            component="car_type_selection",
            validation_fields=(FieldPath.CAR_TYPE,),
            auto_advance=True,
            props=_frozen({"options": [entry.to_dict() for entry in car_types]}),
        ),
        StepDefinition(
            id=STEP_CAR_MODEL,
            component="car_model_selection",
            validation_fields=(FieldPath.CAR_MODEL,),
            auto_advance=True,
        ),
        StepDefinition(
            id=STEP_PASSENGERS,
            component="passenger_selection",
            validation_fields=(FieldPath.PASSENGERS,),
            auto_advance=True,
            props=_frozen(
                {
                    "selectionType": "passengers",
                    "choices": list(range(PASSENGERS_RANGE[0], PASSENGERS_RANGE[1] + 1)),
                }
            ),
        ),
        StepDefinition(
            id=STEP_BAGS,
            component="passenger_selection",
            validation_fields=(FieldPath.BAGS,),
            auto_advance=True,
            props=_frozen(
                {
                    "selectionType": "bags",
                    "choices": list(range(BAGS_RANGE[0], BAGS_RANGE[1] + 1)),
                }
            ),
        ),
        StepDefinition(
            id=STEP_LOCATION,
            component="location_selection",
            validation_fields=(FieldPath.PICKUP_ADDRESS, FieldPath.DROPOFF_ADDRESS),
        ),
        StepDefinition(
            id=STEP_FIRST_NAME,
            component="first_name_input",
            validation_fields=(FieldPath.FIRST_NAME,),
        ),
        StepDefinition(
            id=STEP_PHONE_NUMBER,
            component="phone_number_input",
            validation_fields=(FieldPath.PHONE_NUMBER,),
        ),
        StepDefinition(
            id=STEP_SUMMARY,
            component="order_summary",
            validation_fields=(),
        ),
    )


def step_index(steps: Sequence[StepDefinition], step_id: str) -> int:
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    raise ValueError(f"Unknown step_id: {step_id}")


def earliest_step_for(steps: Sequence[StepDefinition], paths: Sequence[FieldPath]) -> int | None:
    """Index of the first step owning any of the given fields."""
    wanted = set(paths)
    for index, step in enumerate(steps):
        if wanted.intersection(step.validation_fields):
            return index
    return None
