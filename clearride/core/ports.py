from __future__ import annotations

from typing import Any, Protocol

from clearride.core.models import (
    AppConfig,
    BookingRecord,
    CarModelAdmin,
    CarTypeAdmin,
    CatalogEntry,
    ContactRecord,
)


class CatalogReader(Protocol):
    async def list_car_types(self) -> list[CatalogEntry]:
        ...

    async def list_car_models(self, car_type: str) -> list[CatalogEntry]:
        ...


class PersistenceWriter(Protocol):
    async def save_booking(self, record: BookingRecord) -> str:
        ...

    async def contact_exists(self, phone_number: str) -> bool:
        ...

    async def save_contact(self, contact: ContactRecord) -> str:
        ...


class HandoffOpener(Protocol):
    async def open(self, url: str) -> None:
        ...


class ImageStore(Protocol):
    async def upload(self, *, filename: str, content: bytes, content_type: str, folder: str) -> str:
        ...

    async def delete(self, url: str) -> None:
        ...


class AdminRepository(Protocol):
    async def get_app_config(self) -> AppConfig | None:
        ...

    async def update_app_config(self, config: AppConfig) -> None:
        ...

    async def list_car_types_admin(self) -> list[CarTypeAdmin]:
        ...

    async def get_car_type(self, car_type_id: str) -> CarTypeAdmin | None:
        ...

    async def insert_car_type(self, fields: dict[str, Any]) -> str:
        ...

    async def update_car_type(self, car_type_id: str, fields: dict[str, Any]) -> bool:
        ...

    async def delete_car_type(self, car_type_id: str) -> bool:
        ...

    async def list_car_models_admin(self) -> list[CarModelAdmin]:
        ...

    async def get_car_model(self, car_model_id: str) -> CarModelAdmin | None:
        ...

    async def insert_car_model(self, fields: dict[str, Any]) -> str:
        ...

    async def update_car_model(self, car_model_id: str, fields: dict[str, Any]) -> bool:
        ...

    async def delete_car_model(self, car_model_id: str) -> bool:
        ...

    async def delete_car_models_of_type(self, car_type_value: str) -> list[CarModelAdmin]:
        ...

    async def retype_car_models(self, old_value: str, new_value: str) -> int:
        ...

    async def list_contacts(self) -> list[ContactRecord]:
        ...

    async def delete_contact(self, contact_id: str) -> bool:
        ...
