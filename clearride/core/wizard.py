from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from clearride.core.errors import FetchError, HandoffError, PersistenceError
from clearride.core.handoff import HandoffTarget, build_handoff_url, build_summary, location_map_link
from clearride.core.models import (
    BookingDraft,
    BookingRecord,
    CatalogEntry,
    ContactRecord,
    Coordinates,
    Location,
    default_model_id,
    is_default_model_id,
)
from clearride.core.ports import CatalogReader, HandoffOpener, PersistenceWriter
from clearride.core.result import Notification, SubmitOutcome, failure, info
from clearride.core.steps import STEP_CAR_MODEL, StepDefinition, build_steps, earliest_step_for
from clearride.core.validation import (
    GENERIC_ERROR_TEXT,
    FieldError,
    FieldPath,
    first_error,
    validate_draft,
    validate_field,
    validate_fields,
)
from clearride.infra.request_context import log_event

LOGGER = logging.getLogger(__name__)

PATH_BOOKING = "booking"
PATH_CONTACT = "contact"
PATH_HANDOFF = "handoff"

_INTEGER_FIELDS = {FieldPath.PASSENGERS, FieldPath.BAGS}
_LOCATION_KINDS = {"pickup", "dropoff"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_int(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed.lstrip("-").isdigit():
            return int(trimmed)
    return value


def _label_for(entries: Sequence[CatalogEntry], entry_id: str) -> str | None:
    for entry in entries:
        if entry.id == entry_id and entry.label.strip():
            return entry.label
    return None


def standard_model_label(car_type_label: str) -> str:
    return f"الموديل القياسي لـ {car_type_label}"


class WizardController:
    """Drives one booking session: step index, draft, catalog options, submission.

    One controller per session; it is discarded once the booking is done.
    """

    def __init__(
        self,
        *,
        catalog: CatalogReader,
        writer: PersistenceWriter,
        opener: HandoffOpener,
        handoff_target: HandoffTarget | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._catalog = catalog
        self._writer = writer
        self._opener = opener
        self._handoff_target = handoff_target or HandoffTarget()
        self._clock = clock or _utcnow
        self.draft = BookingDraft()
        self.current_step_index = 0
        self.is_submitting = False
        self.car_types: list[CatalogEntry] = []
        self.available_models: list[CatalogEntry] = []
        self.steps: tuple[StepDefinition, ...] = build_steps([])
        self.errors: dict[FieldPath, str] = {}
        self._notifications: list[Notification] = []
        self._models_generation = 0
        self._models_loaded_for: str | None = None
        self._completed: dict[str, str] = {}

    @property
    def current_step(self) -> StepDefinition:
        return self.steps[self.current_step_index]

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1

    async def start(self) -> None:
        try:
            car_types = await self._catalog.list_car_types()
        except FetchError as exc:
            LOGGER.warning("Car types fetch failed: %s", exc)
            self._notify(failure("خطأ في التحميل", "تعذر تحميل أنواع السيارات. يرجى المحاولة لاحقًا."))
            car_types = []
        self.car_types = list(car_types)
        self.steps = build_steps(self.car_types)
        log_event(LOGGER, component="wizard", event="wizard.start", car_types=len(self.car_types))

    def go_next(self) -> bool:
        step = self.current_step
        errors = validate_fields(self.draft, step.validation_fields)
        for path in step.validation_fields:
            self.errors.pop(path, None)
        if errors:
            self.errors.update(errors)
            error = first_error(errors)
            message = error.message if error else GENERIC_ERROR_TEXT
            self._notify(failure("خطأ في التحقق", message))
            log_event(
                LOGGER,
                component="wizard",
                event="wizard.next",
                status="refused",
                step=step.id,
                field=error.field.value if error else None,
            )
            return False
        if self.current_step_index < self.last_index:
            self.current_step_index += 1
        return True

    def go_previous(self) -> bool:
        if self.current_step_index <= 0:
            return False
        self.current_step_index -= 1
        return True

    async def set_field(self, path: FieldPath, value: Any) -> FieldError | None:
        self._completed.clear()
        if path is FieldPath.CAR_TYPE:
            return await self._select_car_type(value)
        if path in _INTEGER_FIELDS:
            value = _coerce_int(value)
        elif isinstance(value, str):
            value = value.strip()
        if path is FieldPath.CAR_MODEL:
            self.draft.car_model = value
        elif path is FieldPath.PASSENGERS:
            self.draft.passengers = value
        elif path is FieldPath.BAGS:
            self.draft.bags = value
        elif path is FieldPath.PICKUP_ADDRESS:
            self.draft.pickup_location = Location(address=value if isinstance(value, str) else "")
        elif path is FieldPath.DROPOFF_ADDRESS:
            self.draft.dropoff_location = Location(address=value if isinstance(value, str) else "")
        elif path is FieldPath.FIRST_NAME:
            self.draft.first_name = value
        elif path is FieldPath.PHONE_NUMBER:
            self.draft.phone_number = value
        error = self._revalidate(path)
        if error is None:
            self._auto_advance(path)
        return error

    async def set_location(
        self,
        kind: str,
        address: str,
        coordinates: Coordinates | None = None,
    ) -> FieldError | None:
        if kind not in _LOCATION_KINDS:
            raise ValueError(f"Unknown location kind: {kind}")
        self._completed.clear()
        location = Location(address=(address or "").strip(), coordinates=coordinates)
        if kind == "pickup":
            self.draft.pickup_location = location
            return self._revalidate(FieldPath.PICKUP_ADDRESS)
        self.draft.dropoff_location = location
        return self._revalidate(FieldPath.DROPOFF_ADDRESS)

    async def _select_car_type(self, value: Any) -> FieldError | None:
        car_type = value.strip() if isinstance(value, str) else ""
        changed = car_type != self.draft.car_type
        self.draft.car_type = car_type
        if changed:
            self.draft.car_model = ""
            self.available_models = []
            self._models_loaded_for = None
            self.errors.pop(FieldPath.CAR_MODEL, None)
        error = self._revalidate(FieldPath.CAR_TYPE)
        if error is not None:
            return error
        self._auto_advance(FieldPath.CAR_TYPE)
        if changed or self._models_loaded_for != car_type:
            await self._load_models(car_type)
        elif not self.available_models:
            self._apply_default_model(car_type)
        return None

    async def _load_models(self, car_type: str) -> None:
        self._models_generation += 1
        generation = self._models_generation
        self.available_models = []
        self._models_loaded_for = None
        try:
            models = await self._catalog.list_car_models(car_type)
        except FetchError as exc:
            if generation == self._models_generation:
                LOGGER.warning("Car models fetch failed: type=%s error=%s", car_type, exc)
                self._notify(failure("خطأ في التحميل", "تعذر تحميل موديلات السيارات. يرجى المحاولة مرة أخرى."))
            return
        if generation != self._models_generation or car_type != self.draft.car_type:
            log_event(
                LOGGER,
                component="wizard",
                event="wizard.models_discarded",
                status="refused",
                car_type=car_type,
                current=self.draft.car_type,
            )
            return
        self.available_models = list(models)
        self._models_loaded_for = car_type
        if not self.available_models:
            self._apply_default_model(car_type)

    def _apply_default_model(self, car_type: str) -> None:
        self.draft.car_model = default_model_id(car_type)
        self.errors.pop(FieldPath.CAR_MODEL, None)
        if self.current_step.id == STEP_CAR_MODEL:
            self.go_next()

    def _revalidate(self, path: FieldPath) -> FieldError | None:
        error = validate_field(self.draft, path)
        if error is None:
            self.errors.pop(path, None)
        else:
            self.errors[path] = error.message
        return error

    def _auto_advance(self, path: FieldPath) -> None:
        step = self.current_step
        if not step.auto_advance or not step.owns(path):
            return
        if self.current_step_index >= self.last_index:
            return
        if validate_fields(self.draft, step.validation_fields):
            return
        self.go_next()

    def resolve_labels(self) -> tuple[str, str]:
        car_type = self.draft.car_type
        car_model = self.draft.car_model
        type_label = _label_for(self.car_types, car_type) or car_type
        if is_default_model_id(car_model, car_type):
            return type_label, standard_model_label(type_label)
        model_label = _label_for(self.available_models, car_model) or car_model
        return type_label, model_label

    async def submit(self) -> SubmitOutcome:
        if self.is_submitting:
            self._notify(info("يرجى الانتظار", "جاري معالجة طلبك بالفعل."))
            return SubmitOutcome(status="busy")
        errors = validate_draft(self.draft)
        if errors:
            self.errors = dict(errors)
            target = earliest_step_for(self.steps, list(errors))
            if target is not None:
                self.current_step_index = target
            self._notify(failure("نموذج غير مكتمل", "يرجى مراجعة النموذج وتصحيح الأخطاء قبل الإرسال."))
            log_event(
                LOGGER,
                component="wizard",
                event="wizard.submit",
                status="refused",
                fields=[path.value for path in errors],
            )
            return SubmitOutcome(status="invalid")
        self.is_submitting = True
        try:
            return await self._submit_valid()
        finally:
            self.is_submitting = False

    async def _submit_valid(self) -> SubmitOutcome:
        car_type_label, car_model_label = self.resolve_labels()
        now = self._clock()
        record = BookingRecord(
            draft=copy.deepcopy(self.draft),
            car_type_label=car_type_label,
            car_model_label=car_model_label,
            created_at=now,
        )
        failures: list[str] = []

        if PATH_BOOKING not in self._completed:
            try:
                self._completed[PATH_BOOKING] = await self._writer.save_booking(record)
            except PersistenceError as exc:
                failures.append(PATH_BOOKING)
                LOGGER.error("Booking save failed: %s", exc)
                self._notify(failure("خطأ في الحفظ", "لم نتمكن من حفظ طلب الحجز. يمكنك إعادة المحاولة."))

        if PATH_CONTACT not in self._completed:
            phone_number = self.draft.phone_number.strip()
            try:
                if await self._writer.contact_exists(phone_number):
                    self._completed[PATH_CONTACT] = ""
                else:
                    contact = ContactRecord(
                        first_name=self.draft.first_name.strip(),
                        phone_number=phone_number,
                        created_at=now,
                    )
                    self._completed[PATH_CONTACT] = await self._writer.save_contact(contact)
            except PersistenceError as exc:
                failures.append(PATH_CONTACT)
                LOGGER.error("Contact save failed: %s", exc)
                self._notify(failure("خطأ في الحفظ", "لم نتمكن من حفظ بيانات التواصل."))

        if PATH_HANDOFF not in self._completed:
            summary = build_summary(
                self.draft,
                car_type_label=car_type_label,
                car_model_label=car_model_label,
            )
            url = build_handoff_url(summary, self._handoff_target)
            try:
                await self._opener.open(url)
                self._completed[PATH_HANDOFF] = url
                self._notify(info("الحجز جاهز!", "جاري تحويلك إلى واتساب لإرسال طلبك..."))
            except HandoffError as exc:
                failures.append(PATH_HANDOFF)
                LOGGER.error("Handoff failed: %s", exc)
                self._notify(failure("خطأ في الإرسال", "تعذر فتح واتساب لإرسال طلبك. يرجى المحاولة مرة أخرى."))

        if not failures:
            status = "done"
        elif self._completed:
            status = "partial"
        else:
            status = "failed"
        log_event(
            LOGGER,
            component="wizard",
            event="wizard.submit",
            status="ok" if status == "done" else "error",
            outcome=status,
            failures=failures,
            phone_number=self.draft.phone_number,
        )
        return SubmitOutcome(
            status=status,
            booking_id=self._completed.get(PATH_BOOKING),
            contact_id=self._completed.get(PATH_CONTACT) or None,
            handoff_url=self._completed.get(PATH_HANDOFF),
            record=record.to_dict(),
            failures=failures,
        )

    def drain_notifications(self) -> list[Notification]:
        pending = self._notifications
        self._notifications = []
        return pending

    def _notify(self, notification: Notification) -> None:
        self._notifications.append(notification)

    def snapshot(self) -> dict[str, Any]:
        step = self.current_step
        index = self.current_step_index
        car_type_label, car_model_label = self.resolve_labels()
        return {
            "currentStepIndex": index,
            "stepCount": len(self.steps),
            "progress": round((index + 1) / len(self.steps) * 100),
            "step": step.to_dict(),
            "draft": self.draft.to_dict(),
            "availableModels": [entry.to_dict() for entry in self.available_models],
            "usesDefaultModel": is_default_model_id(self.draft.car_model, self.draft.car_type),
            "errors": {path.value: message for path, message in self.errors.items()},
            "isSubmitting": self.is_submitting,
            "canGoBack": index > 0,
            "showNext": not step.auto_advance and index < self.last_index,
            "showSubmit": index == self.last_index,
            "summary": {
                "carTypeLabel": car_type_label,
                "carModelLabel": car_model_label,
                "pickupMapLink": location_map_link(self.draft.pickup_location),
                "dropoffMapLink": location_map_link(self.draft.dropoff_location),
            },
        }
