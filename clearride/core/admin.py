"""Admin panel operations: branding, car catalog, customer contacts."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from clearride.core.errors import NotFoundError, ValidationError
from clearride.core.models import (
    AppConfig,
    CarModelAdmin,
    CarTypeAdmin,
    ClearImage,
    ContactRecord,
    ImageChange,
    KeepImage,
    ReplaceImage,
)
from clearride.core.ports import AdminRepository, ImageStore
from clearride.core.slugify import slugify
from clearride.infra.request_context import log_event

LOGGER = logging.getLogger(__name__)

APP_NAME_MAX_LENGTH = 50
LABEL_MAX_LENGTH = 100
CAR_TYPES_FOLDER = "car-types"
CAR_MODELS_FOLDER = "car-models"


def _validate_app_config(app_name: str, logo_url: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not app_name:
        errors["appName"] = "اسم التطبيق مطلوب"
    elif len(app_name) > APP_NAME_MAX_LENGTH:
        errors["appName"] = "اسم التطبيق طويل جداً"
    if logo_url:
        parsed = urlparse(logo_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            errors["logoUrl"] = "الرجاء إدخال رابط URL صالح للصورة"
    return errors


def _validate_label(label: str, errors: dict[str, str], *, required_text: str) -> None:
    if not label:
        errors["label"] = required_text
    elif len(label) > LABEL_MAX_LENGTH:
        errors["label"] = "الاسم طويل جداً"
    elif not slugify(label):
        errors["label"] = "لا يمكن إنشاء معرف من هذا الاسم"


def _validate_order(order: Any, errors: dict[str, str]) -> None:
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        errors["order"] = "الترتيب يجب أن يكون 0 أو أكبر"


class AdminService:
    def __init__(self, repository: AdminRepository, images: ImageStore) -> None:
        self._repository = repository
        self._images = images

    async def get_app_config(self) -> AppConfig:
        config = await self._repository.get_app_config()
        return config or AppConfig()

    async def update_app_config(self, *, app_name: str, logo_url: str = "") -> AppConfig:
        app_name = (app_name or "").strip()
        logo_url = (logo_url or "").strip()
        errors = _validate_app_config(app_name, logo_url)
        if errors:
            raise ValidationError(errors)
        config = AppConfig(app_name=app_name, logo_url=logo_url)
        await self._repository.update_app_config(config)
        log_event(LOGGER, component="admin", event="admin.app_config.update")
        return config

    # --- car types ---

    async def list_car_types(self) -> list[CarTypeAdmin]:
        return await self._repository.list_car_types_admin()

    async def add_car_type(self, *, label: str, order: int, image: ImageChange) -> CarTypeAdmin:
        label = (label or "").strip()
        errors: dict[str, str] = {}
        _validate_label(label, errors, required_text="اسم النوع (بالعربية) مطلوب")
        _validate_order(order, errors)
        if not isinstance(image, ReplaceImage):
            errors["image"] = "الرجاء اختيار ملف صورة لإضافته."
        if not errors:
            await self._ensure_unique_type_value(slugify(label), exclude_id=None, errors=errors)
        if errors:
            raise ValidationError(errors)
        image_url = await self._upload(image, CAR_TYPES_FOLDER)
        value = slugify(label)
        car_type_id = await self._repository.insert_car_type(
            {"value": value, "label": label, "imageUrl": image_url, "order": order}
        )
        log_event(LOGGER, component="admin", event="admin.car_type.add", value=value)
        return CarTypeAdmin(id=car_type_id, value=value, label=label, image_url=image_url, order=order)

    async def update_car_type(
        self,
        car_type_id: str,
        *,
        label: str | None = None,
        order: int | None = None,
        image: ImageChange | None = None,
    ) -> CarTypeAdmin:
        current = await self._repository.get_car_type(car_type_id)
        if current is None:
            raise NotFoundError(f"car type {car_type_id} not found")
        errors: dict[str, str] = {}
        fields: dict[str, Any] = {}
        if label is not None:
            label = label.strip()
            _validate_label(label, errors, required_text="اسم النوع (بالعربية) مطلوب")
            if not errors and label != current.label:
                value = slugify(label)
                if value != current.value:
                    await self._ensure_unique_type_value(value, exclude_id=car_type_id, errors=errors)
                fields["label"] = label
                fields["value"] = value
        if order is not None:
            _validate_order(order, errors)
            fields["order"] = order
        if errors:
            raise ValidationError(errors)
        image_url = await self._apply_image_change(current.image_url, image or KeepImage(), CAR_TYPES_FOLDER)
        if image_url != current.image_url:
            fields["imageUrl"] = image_url
        if fields:
            await self._repository.update_car_type(car_type_id, fields)
        new_value = fields.get("value", current.value)
        if new_value != current.value:
            moved = await self._repository.retype_car_models(current.value, new_value)
            LOGGER.info("Re-pointed %s car models from %s to %s", moved, current.value, new_value)
        log_event(LOGGER, component="admin", event="admin.car_type.update", value=new_value)
        return CarTypeAdmin(
            id=car_type_id,
            value=new_value,
            label=fields.get("label", current.label),
            image_url=image_url,
            order=fields.get("order", current.order),
        )

    async def delete_car_type(self, car_type_id: str) -> int:
        """Delete a car type and every model that belongs to it; returns the model count."""
        current = await self._repository.get_car_type(car_type_id)
        if current is None:
            raise NotFoundError(f"car type {car_type_id} not found")
        removed = await self._repository.delete_car_models_of_type(current.value)
        await self._repository.delete_car_type(car_type_id)
        for url in [current.image_url, *(model.image_url for model in removed)]:
            if url:
                await self._images.delete(url)
        log_event(
            LOGGER,
            component="admin",
            event="admin.car_type.delete",
            value=current.value,
            models_removed=len(removed),
        )
        return len(removed)

    async def _ensure_unique_type_value(self, value: str, *, exclude_id: str | None, errors: dict[str, str]) -> None:
        for existing in await self._repository.list_car_types_admin():
            if existing.value == value and existing.id != exclude_id:
                errors["label"] = "يوجد نوع سيارة بنفس الاسم"
                return

    # --- car models ---

    async def list_car_models(self) -> list[CarModelAdmin]:
        return await self._repository.list_car_models_admin()

    async def add_car_model(self, *, label: str, car_type: str, order: int, image: ImageChange) -> CarModelAdmin:
        label = (label or "").strip()
        car_type = (car_type or "").strip()
        errors: dict[str, str] = {}
        _validate_label(label, errors, required_text="اسم الموديل (بالعربية) مطلوب")
        _validate_order(order, errors)
        await self._validate_car_type_ref(car_type, errors)
        if not isinstance(image, ReplaceImage):
            errors["image"] = "الرجاء اختيار ملف صورة لإضافته."
        if "label" not in errors and "type" not in errors:
            await self._ensure_unique_model_value(slugify(label), car_type, exclude_id=None, errors=errors)
        if errors:
            raise ValidationError(errors)
        image_url = await self._upload(image, f"{CAR_MODELS_FOLDER}/{car_type}")
        value = slugify(label)
        car_model_id = await self._repository.insert_car_model(
            {"value": value, "label": label, "imageUrl": image_url, "type": car_type, "order": order}
        )
        log_event(LOGGER, component="admin", event="admin.car_model.add", value=value, type=car_type)
        return CarModelAdmin(
            id=car_model_id,
            value=value,
            label=label,
            image_url=image_url,
            type=car_type,
            order=order,
        )

    async def update_car_model(
        self,
        car_model_id: str,
        *,
        label: str | None = None,
        car_type: str | None = None,
        order: int | None = None,
        image: ImageChange | None = None,
    ) -> CarModelAdmin:
        current = await self._repository.get_car_model(car_model_id)
        if current is None:
            raise NotFoundError(f"car model {car_model_id} not found")
        errors: dict[str, str] = {}
        fields: dict[str, Any] = {}
        if car_type is not None:
            car_type = car_type.strip()
            if car_type != current.type:
                await self._validate_car_type_ref(car_type, errors)
                fields["type"] = car_type
        if label is not None:
            label = label.strip()
            _validate_label(label, errors, required_text="اسم الموديل (بالعربية) مطلوب")
            if "label" not in errors and label != current.label:
                fields["label"] = label
                fields["value"] = slugify(label)
        if order is not None:
            _validate_order(order, errors)
            fields["order"] = order
        target_value = fields.get("value", current.value)
        target_type = fields.get("type", current.type)
        if not errors and (target_value, target_type) != (current.value, current.type):
            await self._ensure_unique_model_value(target_value, target_type, exclude_id=car_model_id, errors=errors)
        if errors:
            raise ValidationError(errors)
        image_url = await self._apply_image_change(
            current.image_url,
            image or KeepImage(),
            f"{CAR_MODELS_FOLDER}/{target_type or 'general'}",
        )
        if image_url != current.image_url:
            fields["imageUrl"] = image_url
        if fields:
            await self._repository.update_car_model(car_model_id, fields)
        log_event(LOGGER, component="admin", event="admin.car_model.update", value=target_value)
        return CarModelAdmin(
            id=car_model_id,
            value=target_value,
            label=fields.get("label", current.label),
            image_url=image_url,
            type=target_type,
            order=fields.get("order", current.order),
        )

    async def delete_car_model(self, car_model_id: str) -> None:
        current = await self._repository.get_car_model(car_model_id)
        if current is None:
            raise NotFoundError(f"car model {car_model_id} not found")
        await self._repository.delete_car_model(car_model_id)
        if current.image_url:
            await self._images.delete(current.image_url)
        log_event(LOGGER, component="admin", event="admin.car_model.delete", value=current.value)

    async def _validate_car_type_ref(self, car_type: str, errors: dict[str, str]) -> None:
        if not car_type:
            errors["type"] = "يجب اختيار نوع السيارة"
            return
        values = {entry.value for entry in await self._repository.list_car_types_admin()}
        if car_type not in values:
            errors["type"] = "نوع السيارة غير موجود"

    async def _ensure_unique_model_value(
        self,
        value: str,
        car_type: str,
        *,
        exclude_id: str | None,
        errors: dict[str, str],
    ) -> None:
        for existing in await self._repository.list_car_models_admin():
            if existing.type == car_type and existing.value == value and existing.id != exclude_id:
                errors["label"] = "يوجد موديل بنفس الاسم لهذا النوع"
                return

    # --- contacts ---

    async def list_contacts(self) -> list[ContactRecord]:
        contacts = await self._repository.list_contacts()
        return sorted(contacts, key=lambda contact: contact.created_at, reverse=True)

    async def delete_contact(self, contact_id: str) -> None:
        if not await self._repository.delete_contact(contact_id):
            raise NotFoundError(f"contact {contact_id} not found")
        log_event(LOGGER, component="admin", event="admin.contact.delete", contact_id=contact_id)

    # --- images ---

    async def _upload(self, image: ReplaceImage, folder: str) -> str:
        return await self._images.upload(
            filename=image.filename,
            content=image.content,
            content_type=image.content_type,
            folder=folder,
        )

    async def _apply_image_change(self, current_url: str, change: ImageChange, folder: str) -> str:
        if isinstance(change, ReplaceImage):
            new_url = await self._upload(change, folder)
            if current_url:
                await self._images.delete(current_url)
            return new_url
        if isinstance(change, ClearImage):
            if current_url:
                await self._images.delete(current_url)
            return ""
        return current_url
