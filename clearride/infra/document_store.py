"""MongoDB-backed catalog, booking and admin storage.

The database handle is created by the composition root and passed in; this
module never opens a client of its own.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from clearride.core.errors import FetchError, PersistenceError
from clearride.core.models import (
    AppConfig,
    BookingRecord,
    CarModelAdmin,
    CarTypeAdmin,
    CatalogEntry,
    ContactRecord,
    DEFAULT_APP_NAME,
)

if TYPE_CHECKING:
    from pymongo.asynchronous.database import AsyncDatabase

LOGGER = logging.getLogger(__name__)

CAR_TYPES_COLLECTION = "car_types"
CAR_MODELS_COLLECTION = "car_models"
APP_CONFIG_COLLECTION = "app_config"
APP_CONFIG_DOC_ID = "main"
BOOKINGS_COLLECTION = "bookings"
CONTACTS_COLLECTION = "customer_contacts"


def _object_id(raw: str) -> ObjectId | None:
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        return None


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return default


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return datetime.fromtimestamp(0, tz=timezone.utc)
    else:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _car_type_from_doc(doc: dict[str, Any]) -> CarTypeAdmin:
    doc_id = str(doc.get("_id"))
    return CarTypeAdmin(
        id=doc_id,
        value=str(doc.get("value") or doc_id),
        label=str(doc.get("label") or ""),
        image_url=str(doc.get("imageUrl") or ""),
        order=_as_int(doc.get("order")),
    )


def _car_model_from_doc(doc: dict[str, Any]) -> CarModelAdmin:
    doc_id = str(doc.get("_id"))
    return CarModelAdmin(
        id=doc_id,
        value=str(doc.get("value") or doc_id),
        label=str(doc.get("label") or ""),
        image_url=str(doc.get("imageUrl") or ""),
        type=str(doc.get("type") or ""),
        order=_as_int(doc.get("order")),
    )


def _contact_from_doc(doc: dict[str, Any]) -> ContactRecord:
    return ContactRecord(
        id=str(doc.get("_id")),
        first_name=str(doc.get("firstName") or ""),
        phone_number=str(doc.get("phoneNumber") or ""),
        created_at=_parse_datetime(doc.get("createdAt")),
    )


class MongoDocumentStore:
    """Implements CatalogReader, PersistenceWriter and AdminRepository."""

    def __init__(self, database: AsyncDatabase) -> None:
        self._db = database

    async def ensure_indexes(self) -> None:
        try:
            await self._db[CAR_TYPES_COLLECTION].create_index([("order", ASCENDING)])
            await self._db[CAR_MODELS_COLLECTION].create_index([("type", ASCENDING), ("order", ASCENDING)])
            await self._db[CONTACTS_COLLECTION].create_index([("phoneNumber", ASCENDING)], unique=True)
        except PyMongoError as exc:
            LOGGER.warning("Index creation failed: %s", exc)

    # --- catalog reader ---

    async def list_car_types(self) -> list[CatalogEntry]:
        try:
            docs = await self._db[CAR_TYPES_COLLECTION].find({}).sort("order", ASCENDING).to_list()
        except PyMongoError as exc:
            raise FetchError(f"car types fetch failed: {exc}") from exc
        entries = []
        for doc in docs:
            car_type = _car_type_from_doc(doc)
            entries.append(CatalogEntry(id=car_type.value, label=car_type.label, image_url=car_type.image_url))
        return entries

    async def list_car_models(self, car_type: str) -> list[CatalogEntry]:
        if not car_type:
            return []
        try:
            docs = await (
                self._db[CAR_MODELS_COLLECTION].find({"type": car_type}).sort("order", ASCENDING).to_list()
            )
        except PyMongoError as exc:
            raise FetchError(f"car models fetch failed: {exc}") from exc
        entries = []
        for doc in docs:
            model = _car_model_from_doc(doc)
            entries.append(
                CatalogEntry(id=model.value, label=model.label, image_url=model.image_url, type=model.type)
            )
        return entries

    # --- persistence writer ---

    async def save_booking(self, record: BookingRecord) -> str:
        try:
            result = await self._db[BOOKINGS_COLLECTION].insert_one(record.to_dict())
        except PyMongoError as exc:
            raise PersistenceError(f"booking save failed: {exc}") from exc
        return str(result.inserted_id)

    async def contact_exists(self, phone_number: str) -> bool:
        try:
            doc = await self._db[CONTACTS_COLLECTION].find_one({"phoneNumber": phone_number}, {"_id": 1})
        except PyMongoError as exc:
            raise PersistenceError(f"contact lookup failed: {exc}") from exc
        return doc is not None

    async def save_contact(self, contact: ContactRecord) -> str:
        payload = contact.to_dict()
        payload.pop("id", None)
        collection = self._db[CONTACTS_COLLECTION]
        try:
            result = await collection.insert_one(payload)
        except DuplicateKeyError:
            # Another session stored the same phone number first.
            try:
                existing = await collection.find_one({"phoneNumber": contact.phone_number}, {"_id": 1})
            except PyMongoError as exc:
                raise PersistenceError(f"contact lookup failed: {exc}") from exc
            return str(existing["_id"]) if existing else ""
        except PyMongoError as exc:
            raise PersistenceError(f"contact save failed: {exc}") from exc
        return str(result.inserted_id)

    # --- app config ---

    async def get_app_config(self) -> AppConfig | None:
        try:
            doc = await self._db[APP_CONFIG_COLLECTION].find_one({"_id": APP_CONFIG_DOC_ID})
        except PyMongoError as exc:
            raise FetchError(f"app config fetch failed: {exc}") from exc
        if doc is None:
            return None
        return AppConfig(
            app_name=str(doc.get("appName") or DEFAULT_APP_NAME),
            logo_url=str(doc.get("logoUrl") or ""),
        )

    async def update_app_config(self, config: AppConfig) -> None:
        try:
            await self._db[APP_CONFIG_COLLECTION].update_one(
                {"_id": APP_CONFIG_DOC_ID},
                {"$set": config.to_dict()},
                upsert=True,
            )
        except PyMongoError as exc:
            raise PersistenceError(f"app config update failed: {exc}") from exc

    # --- car types (admin) ---

    async def list_car_types_admin(self) -> list[CarTypeAdmin]:
        try:
            docs = await self._db[CAR_TYPES_COLLECTION].find({}).sort("order", ASCENDING).to_list()
        except PyMongoError as exc:
            raise FetchError(f"car types fetch failed: {exc}") from exc
        return [_car_type_from_doc(doc) for doc in docs]

    async def get_car_type(self, car_type_id: str) -> CarTypeAdmin | None:
        doc = await self._find_by_id(CAR_TYPES_COLLECTION, car_type_id)
        return _car_type_from_doc(doc) if doc else None

    async def insert_car_type(self, fields: dict[str, Any]) -> str:
        return await self._insert(CAR_TYPES_COLLECTION, fields)

    async def update_car_type(self, car_type_id: str, fields: dict[str, Any]) -> bool:
        return await self._update(CAR_TYPES_COLLECTION, car_type_id, fields)

    async def delete_car_type(self, car_type_id: str) -> bool:
        return await self._delete(CAR_TYPES_COLLECTION, car_type_id)

    # --- car models (admin) ---

    async def list_car_models_admin(self) -> list[CarModelAdmin]:
        try:
            docs = await self._db[CAR_MODELS_COLLECTION].find({}).sort("order", ASCENDING).to_list()
        except PyMongoError as exc:
            raise FetchError(f"car models fetch failed: {exc}") from exc
        return [_car_model_from_doc(doc) for doc in docs]

    async def get_car_model(self, car_model_id: str) -> CarModelAdmin | None:
        doc = await self._find_by_id(CAR_MODELS_COLLECTION, car_model_id)
        return _car_model_from_doc(doc) if doc else None

    async def insert_car_model(self, fields: dict[str, Any]) -> str:
        return await self._insert(CAR_MODELS_COLLECTION, fields)

    async def update_car_model(self, car_model_id: str, fields: dict[str, Any]) -> bool:
        return await self._update(CAR_MODELS_COLLECTION, car_model_id, fields)

    async def delete_car_model(self, car_model_id: str) -> bool:
        return await self._delete(CAR_MODELS_COLLECTION, car_model_id)

    async def delete_car_models_of_type(self, car_type_value: str) -> list[CarModelAdmin]:
        collection = self._db[CAR_MODELS_COLLECTION]
        try:
            docs = await collection.find({"type": car_type_value}).to_list()
            await collection.delete_many({"type": car_type_value})
        except PyMongoError as exc:
            raise PersistenceError(f"car models delete failed: {exc}") from exc
        return [_car_model_from_doc(doc) for doc in docs]

    async def retype_car_models(self, old_value: str, new_value: str) -> int:
        try:
            result = await self._db[CAR_MODELS_COLLECTION].update_many(
                {"type": old_value},
                {"$set": {"type": new_value}},
            )
        except PyMongoError as exc:
            raise PersistenceError(f"car models update failed: {exc}") from exc
        return result.modified_count

    # --- contacts (admin) ---

    async def list_contacts(self) -> list[ContactRecord]:
        try:
            docs = await self._db[CONTACTS_COLLECTION].find({}).to_list()
        except PyMongoError as exc:
            raise FetchError(f"contacts fetch failed: {exc}") from exc
        return [_contact_from_doc(doc) for doc in docs]

    async def delete_contact(self, contact_id: str) -> bool:
        return await self._delete(CONTACTS_COLLECTION, contact_id)

    # --- helpers ---

    async def _find_by_id(self, collection: str, raw_id: str) -> dict[str, Any] | None:
        object_id = _object_id(raw_id)
        if object_id is None:
            return None
        try:
            return await self._db[collection].find_one({"_id": object_id})
        except PyMongoError as exc:
            raise FetchError(f"{collection} fetch failed: {exc}") from exc

    async def _insert(self, collection: str, fields: dict[str, Any]) -> str:
        try:
            result = await self._db[collection].insert_one(dict(fields))
        except PyMongoError as exc:
            raise PersistenceError(f"{collection} insert failed: {exc}") from exc
        return str(result.inserted_id)

    async def _update(self, collection: str, raw_id: str, fields: dict[str, Any]) -> bool:
        object_id = _object_id(raw_id)
        if object_id is None:
            return False
        try:
            result = await self._db[collection].update_one({"_id": object_id}, {"$set": dict(fields)})
        except PyMongoError as exc:
            raise PersistenceError(f"{collection} update failed: {exc}") from exc
        return result.matched_count > 0

    async def _delete(self, collection: str, raw_id: str) -> bool:
        object_id = _object_id(raw_id)
        if object_id is None:
            return False
        try:
            result = await self._db[collection].delete_one({"_id": object_id})
        except PyMongoError as exc:
            raise PersistenceError(f"{collection} delete failed: {exc}") from exc
        return result.deleted_count > 0
