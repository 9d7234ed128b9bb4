from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from clearride.core.errors import ValidationError
from clearride.core.models import ClearImage, ImageChange, KeepImage, ReplaceImage
from clearride.web.dependencies import AppServices, get_services

router = APIRouter(prefix="/api/admin", tags=["admin"])

IMAGE_ACTIONS = {"keep", "replace", "clear"}


class AppConfigIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_name: str = Field(default="", alias="appName")
    logo_url: str = Field(default="", alias="logoUrl")


async def _image_change(action: str, image: Optional[UploadFile]) -> ImageChange:
    action = (action or "keep").strip().lower()
    if action not in IMAGE_ACTIONS:
        raise ValidationError({"image": "إجراء الصورة غير معروف"})
    if action == "clear":
        return ClearImage()
    if image is None or not image.filename:
        if action == "replace":
            raise ValidationError({"image": "الرجاء اختيار ملف صورة لإضافته."})
        return KeepImage()
    content = await image.read()
    if not content:
        raise ValidationError({"image": "ملف الصورة فارغ"})
    return ReplaceImage(
        filename=image.filename,
        content=content,
        content_type=image.content_type or "application/octet-stream",
    )


# --- app config ---


@router.get("/config")
async def get_config(services: AppServices = Depends(get_services)) -> dict[str, Any]:
    config = await services.admin.get_app_config()
    return config.to_dict()


@router.put("/config")
async def update_config(body: AppConfigIn, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    config = await services.admin.update_app_config(app_name=body.app_name, logo_url=body.logo_url)
    return config.to_dict()


# --- car types ---


@router.get("/car-types")
async def list_car_types(services: AppServices = Depends(get_services)) -> list[dict[str, Any]]:
    return [item.to_dict() for item in await services.admin.list_car_types()]


@router.post("/car-types", status_code=201)
async def add_car_type(
    label: str = Form(""),
    order: int = Form(0),
    image: Optional[UploadFile] = File(None),
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    change = await _image_change("replace" if image is not None else "keep", image)
    car_type = await services.admin.add_car_type(label=label, order=order, image=change)
    return car_type.to_dict()


@router.put("/car-types/{car_type_id}")
async def update_car_type(
    car_type_id: str,
    label: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    image_action: str = Form("keep"),
    image: Optional[UploadFile] = File(None),
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    change = await _image_change(image_action, image)
    car_type = await services.admin.update_car_type(car_type_id, label=label, order=order, image=change)
    return car_type.to_dict()


@router.delete("/car-types/{car_type_id}")
async def delete_car_type(car_type_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    removed = await services.admin.delete_car_type(car_type_id)
    return {"deleted": car_type_id, "removedModels": removed}


# --- car models ---


@router.get("/car-models")
async def list_car_models(services: AppServices = Depends(get_services)) -> list[dict[str, Any]]:
    return [item.to_dict() for item in await services.admin.list_car_models()]


@router.post("/car-models", status_code=201)
async def add_car_model(
    label: str = Form(""),
    car_type: str = Form("", alias="type"),
    order: int = Form(0),
    image: Optional[UploadFile] = File(None),
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    change = await _image_change("replace" if image is not None else "keep", image)
    car_model = await services.admin.add_car_model(label=label, car_type=car_type, order=order, image=change)
    return car_model.to_dict()


@router.put("/car-models/{car_model_id}")
async def update_car_model(
    car_model_id: str,
    label: Optional[str] = Form(None),
    car_type: Optional[str] = Form(None, alias="type"),
    order: Optional[int] = Form(None),
    image_action: str = Form("keep"),
    image: Optional[UploadFile] = File(None),
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    change = await _image_change(image_action, image)
    car_model = await services.admin.update_car_model(
        car_model_id,
        label=label,
        car_type=car_type,
        order=order,
        image=change,
    )
    return car_model.to_dict()


@router.delete("/car-models/{car_model_id}")
async def delete_car_model(car_model_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    await services.admin.delete_car_model(car_model_id)
    return {"deleted": car_model_id}


# --- contacts ---


@router.get("/contacts")
async def list_contacts(services: AppServices = Depends(get_services)) -> list[dict[str, Any]]:
    return [item.to_dict() for item in await services.admin.list_contacts()]


@router.delete("/contacts/{contact_id}")
async def delete_contact(contact_id: str, services: AppServices = Depends(get_services)) -> dict[str, Any]:
    await services.admin.delete_contact(contact_id)
    return {"deleted": contact_id}
