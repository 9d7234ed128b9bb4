from __future__ import annotations

import logging
import time
from typing import Any, AsyncContextManager, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clearride.core.errors import FetchError, NotFoundError, PersistenceError, ValidationError
from clearride.infra.request_context import clear_request_context, log_event, start_request
from clearride.web import admin_api, booking_api
from clearride.web.dependencies import AppServices, get_services

LOGGER = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

Lifespan = Callable[[FastAPI], AsyncContextManager[None]]


def create_app(services: Optional[AppServices] = None, *, lifespan: Optional[Lifespan] = None) -> FastAPI:
    """Build the HTTP app; ``services`` may instead be attached by ``lifespan``."""
    app = FastAPI(title="ClearRide", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        context = start_request(request.headers.get(REQUEST_ID_HEADER), path=request.url.path)
        started = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            log_event(
                LOGGER,
                component="http",
                event="trace.summary",
                status="error",
                method=request.method,
                path=request.url.path,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            clear_request_context()
            raise
        response.headers[REQUEST_ID_HEADER] = context.correlation_id
        log_event(
            LOGGER,
            component="http",
            event="trace.summary",
            status="error" if response.status_code >= 500 else "ok",
            method=request.method,
            path=request.url.path,
            http_status=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        clear_request_context()
        return response

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        LOGGER.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": "Storage is unavailable, please retry."})

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
        LOGGER.error("Fetch failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": "Storage is unavailable, please retry."})

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        services = getattr(request.app.state, "services", None)
        return {"status": "ok", "version": services.version if services else "unknown"}

    @app.get("/api/app-config")
    async def public_app_config(request: Request) -> dict[str, Any]:
        services = get_services(request)
        config = await services.admin.get_app_config()
        return config.to_dict()

    app.include_router(booking_api.router)
    app.include_router(admin_api.router)
    return app
