from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

DEFAULT_APP_NAME = "ClearRide"
DEFAULT_MODEL_SUFFIX = "-default"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(payload: object) -> Coordinates | None:
        if not isinstance(payload, dict):
            return None
        lat = payload.get("lat")
        lon = payload.get("lon")
        if isinstance(lat, bool) or isinstance(lon, bool):
            return None
        if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
            return None
        return Coordinates(lat=float(lat), lon=float(lon))


@dataclass
class Location:
    address: str = ""
    coordinates: Coordinates | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"address": self.address}
        if self.coordinates is not None:
            payload["coordinates"] = self.coordinates.to_dict()
        return payload


@dataclass
class BookingDraft:
    car_type: str = ""
    car_model: str = ""
    passengers: Any = 1
    bags: Any = 1
    pickup_location: Location = field(default_factory=Location)
    dropoff_location: Location = field(default_factory=Location)
    first_name: str = ""
    phone_number: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "carType": self.car_type,
            "carModel": self.car_model,
            "passengers": self.passengers,
            "bags": self.bags,
            "pickupLocation": self.pickup_location.to_dict(),
            "dropoffLocation": self.dropoff_location.to_dict(),
            "firstName": self.first_name,
            "phoneNumber": self.phone_number,
        }


def default_model_id(car_type: str) -> str:
    return f"{car_type}{DEFAULT_MODEL_SUFFIX}"


def is_default_model_id(car_model: str, car_type: str) -> bool:
    return bool(car_type) and car_model == default_model_id(car_type)


@dataclass(frozen=True)
class CatalogEntry:
    """Public catalog view of a car type or model; ``type`` is set for models only."""

    id: str
    label: str
    image_url: str
    type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "label": self.label, "imageUrl": self.image_url}
        if self.type is not None:
            payload["type"] = self.type
        return payload


@dataclass(frozen=True)
class BookingRecord:
    draft: BookingDraft
    car_type_label: str
    car_model_label: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        payload = self.draft.to_dict()
        payload["carTypeLabel"] = self.car_type_label
        payload["carModelLabel"] = self.car_model_label
        payload["createdAt"] = self.created_at.isoformat()
        return payload


@dataclass(frozen=True)
class ContactRecord:
    first_name: str
    phone_number: str
    created_at: datetime
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "firstName": self.first_name,
            "phoneNumber": self.phone_number,
            "createdAt": self.created_at.isoformat(),
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass(frozen=True)
class CarTypeAdmin:
    id: str
    value: str
    label: str
    image_url: str
    order: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value,
            "label": self.label,
            "imageUrl": self.image_url,
            "order": self.order,
        }


@dataclass(frozen=True)
class CarModelAdmin:
    id: str
    value: str
    label: str
    image_url: str
    type: str
    order: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value,
            "label": self.label,
            "imageUrl": self.image_url,
            "type": self.type,
            "order": self.order,
        }


@dataclass(frozen=True)
class AppConfig:
    app_name: str = DEFAULT_APP_NAME
    logo_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"appName": self.app_name, "logoUrl": self.logo_url}


@dataclass(frozen=True)
class KeepImage:
    pass


@dataclass(frozen=True)
class ReplaceImage:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ClearImage:
    pass


ImageChange = Union[KeepImage, ReplaceImage, ClearImage]
