import asyncio
import sys
from pathlib import Path

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clearride.core.errors import FetchError, HandoffError, ImageStorageError, PersistenceError  # noqa: E402
from clearride.core.models import CatalogEntry  # noqa: E402


class FakeCatalog:
    """Catalog reader backed by lists; a gate per car type can hold a models fetch open."""

    def __init__(self, car_types=None, models=None) -> None:
        self.car_types = list(car_types or [])
        self.models: dict[str, list[CatalogEntry]] = dict(models or {})
        self.gates: dict[str, asyncio.Event] = {}
        self.fail_types = False
        self.fail_models = False
        self.model_calls: list[str] = []

    async def list_car_types(self):
        if self.fail_types:
            raise FetchError("car types unavailable")
        return list(self.car_types)

    async def list_car_models(self, car_type: str):
        self.model_calls.append(car_type)
        gate = self.gates.get(car_type)
        if gate is not None:
            await gate.wait()
        if self.fail_models:
            raise FetchError("car models unavailable")
        return list(self.models.get(car_type, []))


class FakeWriter:
    def __init__(self) -> None:
        self.bookings = []
        self.contacts = []
        self.existing_phones: set[str] = set()
        self.fail_booking = False
        self.fail_contact = False

    async def save_booking(self, record) -> str:
        if self.fail_booking:
            raise PersistenceError("bookings unavailable")
        self.bookings.append(record)
        return f"booking-{len(self.bookings)}"

    async def contact_exists(self, phone_number: str) -> bool:
        if self.fail_contact:
            raise PersistenceError("contacts unavailable")
        return phone_number in self.existing_phones

    async def save_contact(self, contact) -> str:
        if self.fail_contact:
            raise PersistenceError("contacts unavailable")
        self.contacts.append(contact)
        self.existing_phones.add(contact.phone_number)
        return f"contact-{len(self.contacts)}"


class FakeOpener:
    def __init__(self) -> None:
        self.opened: list[str] = []
        self.fail = False

    async def open(self, url: str) -> None:
        if self.fail:
            raise HandoffError("popup blocked")
        self.opened.append(url)


class FakeImageStore:
    def __init__(self) -> None:
        self.uploads: list[dict] = []
        self.deleted: list[str] = []
        self.fail = False

    async def upload(self, *, filename: str, content: bytes, content_type: str, folder: str) -> str:
        if self.fail:
            raise ImageStorageError("image hosting down")
        self.uploads.append({"filename": filename, "folder": folder, "content_type": content_type})
        return f"https://i.ibb.co/{folder}/{filename}"

    async def delete(self, url: str) -> None:
        self.deleted.append(url)


def sample_car_types() -> list[CatalogEntry]:
    return [
        CatalogEntry(id="sedan", label="سيدان", image_url="https://i.ibb.co/sedan.png"),
        CatalogEntry(id="van", label="فان", image_url="https://i.ibb.co/van.png"),
    ]


def sample_models() -> dict[str, list[CatalogEntry]]:
    return {
        "sedan": [
            CatalogEntry(id="camry", label="Camry", image_url="https://i.ibb.co/camry.png", type="sedan"),
            CatalogEntry(id="elantra", label="Elantra", image_url="https://i.ibb.co/elantra.png", type="sedan"),
        ],
    }


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(sample_car_types(), sample_models())


@pytest.fixture
def writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def images() -> FakeImageStore:
    return FakeImageStore()


class _InsertResult:
    def __init__(self, inserted_id) -> None:
        self.inserted_id = inserted_id


class _UpdateResult:
    def __init__(self, matched_count: int, modified_count: int) -> None:
        self.matched_count = matched_count
        self.modified_count = modified_count


class _DeleteResult:
    def __init__(self, deleted_count: int) -> None:
        self.deleted_count = deleted_count


def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, collection: "FakeCollection", docs: list[dict]) -> None:
        self._collection = collection
        self._docs = docs

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs = sorted(self._docs, key=lambda doc: doc.get(key, 0), reverse=direction < 0)
        return self

    async def to_list(self, length=None) -> list[dict]:
        self._collection.check()
        docs = [dict(doc) for doc in self._docs]
        return docs if length is None else docs[:length]


class FakeCollection:
    """Enough of pymongo's AsyncCollection for equality filters and $set updates."""

    def __init__(self) -> None:
        self.docs: list[dict] = []
        self.unique_fields: set[str] = set()
        self.fail = False

    def check(self) -> None:
        if self.fail:
            raise PyMongoError("connection refused")

    def find(self, query=None, projection=None) -> FakeCursor:
        return FakeCursor(self, [doc for doc in self.docs if _matches(doc, query or {})])

    async def find_one(self, query=None, projection=None):
        self.check()
        for doc in self.docs:
            if _matches(doc, query or {}):
                return dict(doc)
        return None

    async def insert_one(self, document: dict) -> _InsertResult:
        self.check()
        doc = dict(document)
        doc.setdefault("_id", ObjectId())
        for field in self.unique_fields:
            if any(existing.get(field) == doc.get(field) for existing in self.docs):
                raise DuplicateKeyError(f"duplicate {field}")
        self.docs.append(doc)
        return _InsertResult(doc["_id"])

    async def update_one(self, query: dict, update: dict, upsert: bool = False) -> _UpdateResult:
        self.check()
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return _UpdateResult(1, 1)
        if upsert:
            doc = dict(query)
            doc.update(update.get("$set", {}))
            self.docs.append(doc)
        return _UpdateResult(0, 0)

    async def update_many(self, query: dict, update: dict) -> _UpdateResult:
        self.check()
        matched = [doc for doc in self.docs if _matches(doc, query)]
        for doc in matched:
            doc.update(update.get("$set", {}))
        return _UpdateResult(len(matched), len(matched))

    async def delete_one(self, query: dict) -> _DeleteResult:
        self.check()
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return _DeleteResult(1)
        return _DeleteResult(0)

    async def delete_many(self, query: dict) -> _DeleteResult:
        self.check()
        kept = [doc for doc in self.docs if not _matches(doc, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return _DeleteResult(deleted)

    async def create_index(self, keys, unique: bool = False) -> str:
        self.check()
        if unique:
            self.unique_fields.update(name for name, _direction in keys)
        return "_".join(name for name, _direction in keys)


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def mongo_db() -> FakeDatabase:
    return FakeDatabase()
