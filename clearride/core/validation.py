"""Field rules for the booking draft.

Each rule inspects one field of a BookingDraft and returns either None (valid)
or a user-facing message. Results are keyed by FieldPath so callers never walk
dotted strings into nested error objects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from clearride.core.models import BookingDraft

PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]+$")
PHONE_MIN_LENGTH = 10
FIRST_NAME_MIN_LENGTH = 2
PASSENGERS_RANGE = (1, 4)
BAGS_RANGE = (0, 3)

GENERIC_ERROR_TEXT = "يرجى ملء جميع الحقول المطلوبة بشكل صحيح."


class FieldPath(str, Enum):
    CAR_TYPE = "carType"
    CAR_MODEL = "carModel"
    PASSENGERS = "passengers"
    BAGS = "bags"
    PICKUP_ADDRESS = "pickupLocation.address"
    DROPOFF_ADDRESS = "dropoffLocation.address"
    FIRST_NAME = "firstName"
    PHONE_NUMBER = "phoneNumber"

    @classmethod
    def parse(cls, raw: str) -> FieldPath | None:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class FieldError:
    field: FieldPath
    message: str


RuleCheck = Callable[[Any], Optional[str]]


def _required(message: str) -> RuleCheck:
    def check(value: Any) -> str | None:
        if not isinstance(value, str) or not value.strip():
            return message
        return None

    return check


def _int_range(low: int, high: int, *, invalid: str, too_low: str, too_high: str) -> RuleCheck:
    def check(value: Any) -> str | None:
        if isinstance(value, bool) or not isinstance(value, int):
            return invalid
        if value < low:
            return too_low
        if value > high:
            return too_high
        return None

    return check


def _min_length(length: int, message: str) -> RuleCheck:
    def check(value: Any) -> str | None:
        if not isinstance(value, str) or len(value.strip()) < length:
            return message
        return None

    return check


def _phone(message: str) -> RuleCheck:
    def check(value: Any) -> str | None:
        if not isinstance(value, str):
            return message
        candidate = value.strip()
        if len(candidate) < PHONE_MIN_LENGTH:
            return message
        if not PHONE_PATTERN.match(candidate):
            return message
        return None

    return check


_ACCESSORS: dict[FieldPath, Callable[[BookingDraft], Any]] = {
    FieldPath.CAR_TYPE: lambda draft: draft.car_type,
    FieldPath.CAR_MODEL: lambda draft: draft.car_model,
    FieldPath.PASSENGERS: lambda draft: draft.passengers,
    FieldPath.BAGS: lambda draft: draft.bags,
    FieldPath.PICKUP_ADDRESS: lambda draft: draft.pickup_location.address,
    FieldPath.DROPOFF_ADDRESS: lambda draft: draft.dropoff_location.address,
    FieldPath.FIRST_NAME: lambda draft: draft.first_name,
    FieldPath.PHONE_NUMBER: lambda draft: draft.phone_number,
}

RULES: dict[FieldPath, RuleCheck] = {
    FieldPath.CAR_TYPE: _required("الرجاء اختيار نوع السيارة"),
    FieldPath.CAR_MODEL: _required("الرجاء اختيار موديل السيارة"),
    FieldPath.PASSENGERS: _int_range(
        *PASSENGERS_RANGE,
        invalid="عدد الركاب غير صالح",
        too_low="راكب واحد على الأقل",
        too_high="الحد الأقصى 4 ركاب",
    ),
    FieldPath.BAGS: _int_range(
        *BAGS_RANGE,
        invalid="عدد الحقائب غير صالح",
        too_low="لا يمكن أن يكون عدد الحقائب سالبًا",
        too_high="الحد الأقصى 3 حقائب",
    ),
    FieldPath.PICKUP_ADDRESS: _required("عنوان الانطلاق مطلوب"),
    FieldPath.DROPOFF_ADDRESS: _required("عنوان الوصول مطلوب"),
    FieldPath.FIRST_NAME: _min_length(FIRST_NAME_MIN_LENGTH, "الرجاء إدخال اسمك الأول (حرفان على الأقل)"),
    FieldPath.PHONE_NUMBER: _phone("الرجاء إدخال رقم هاتف صالح"),
}


def field_value(draft: BookingDraft, path: FieldPath) -> Any:
    return _ACCESSORS[path](draft)


def check_value(path: FieldPath, value: Any) -> str | None:
    """Validate a candidate value for one field; returns the failure message or None."""
    message = RULES[path](value)
    if message is None:
        return None
    return message or GENERIC_ERROR_TEXT


def validate_field(draft: BookingDraft, path: FieldPath) -> FieldError | None:
    message = check_value(path, field_value(draft, path))
    if message is None:
        return None
    return FieldError(field=path, message=message)


def validate_fields(draft: BookingDraft, paths: Iterable[FieldPath]) -> dict[FieldPath, str]:
    """Validate the given fields in order; the result keeps that order."""
    errors: dict[FieldPath, str] = {}
    for path in paths:
        error = validate_field(draft, path)
        if error is not None:
            errors[path] = error.message
    return errors


def validate_draft(draft: BookingDraft) -> dict[FieldPath, str]:
    return validate_fields(draft, list(FieldPath))


def first_error(errors: dict[FieldPath, str]) -> FieldError | None:
    for path, message in errors.items():
        return FieldError(field=path, message=message or GENERIC_ERROR_TEXT)
    return None
