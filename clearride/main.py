"""Composition root: wires settings, MongoDB, ImgBB and the HTTP app together."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import FastAPI
from pymongo import AsyncMongoClient

from clearride.core.admin import AdminService
from clearride.core.handoff import HandoffTarget, RedirectOpener
from clearride.core.wizard import WizardController
from clearride.infra.config import Settings, load_settings, validate_startup_env
from clearride.infra.document_store import MongoDocumentStore
from clearride.infra.image_store import ImgBBImageStore
from clearride.infra.logging_config import configure_logging
from clearride.infra.request_context import log_event
from clearride.infra.version import resolve_app_version
from clearride.web.app import create_app
from clearride.web.dependencies import AppServices
from clearride.web.sessions import SessionRegistry

LOGGER = logging.getLogger(__name__)


def build_services(settings: Settings, store: MongoDocumentStore, images: ImgBBImageStore) -> AppServices:
    target = HandoffTarget(host=settings.handoff_host, destination=settings.handoff_destination)
    opener = RedirectOpener(max_url_length=settings.handoff_max_url_length)

    async def new_controller() -> WizardController:
        controller = WizardController(catalog=store, writer=store, opener=opener, handoff_target=target)
        await controller.start()
        return controller

    return AppServices(
        sessions=SessionRegistry(new_controller, timeout_seconds=settings.session_timeout_seconds),
        admin=AdminService(store, images),
        version=resolve_app_version(),
    )


def create_application(settings: Settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        mongo_client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_uri)
        http_client = httpx.AsyncClient(timeout=30.0)
        store = MongoDocumentStore(mongo_client[settings.mongodb_db])
        await store.ensure_indexes()
        images = ImgBBImageStore(api_key=settings.imgbb_api_key, client=http_client)
        app.state.services = build_services(settings, store, images)
        log_event(
            LOGGER,
            component="startup",
            event="startup.check",
            python_version=sys.version.split()[0],
            app_version=app.state.services.version,
            database=settings.mongodb_db,
            images_enabled=images.enabled,
        )
        try:
            yield
        finally:
            await http_client.aclose()
            await mongo_client.close()
            LOGGER.info("Shutdown complete")

    return create_app(lifespan=lifespan)


def main() -> None:
    configure_logging()
    settings = load_settings()
    validate_startup_env(settings)
    app = create_application(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
