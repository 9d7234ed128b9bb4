from __future__ import annotations

import logging
from typing import Any

import httpx

from clearride.core.errors import ImageStorageError
from clearride.infra.request_context import log_event

LOGGER = logging.getLogger(__name__)

IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"


class ImgBBImageStore:
    """Uploads catalog images to ImgBB.

    ImgBB only hands out delete links at upload time and those are not kept,
    so ``delete`` records the orphaned URL and does nothing else.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        upload_url: str = IMGBB_UPLOAD_URL,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._upload_url = upload_url
        self._timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def upload(self, *, filename: str, content: bytes, content_type: str, folder: str) -> str:
        if not self._api_key:
            log_event(LOGGER, component="images", event="images.upload", status="error", reason="missing_api_key")
            raise ImageStorageError("ImgBB API key is not configured")
        files = {"image": (filename or "image", content, content_type)}
        try:
            if self._client is not None:
                response = await self._client.post(self._upload_url, params={"key": self._api_key}, files=files)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.post(self._upload_url, params={"key": self._api_key}, files=files)
        except httpx.HTTPError as exc:
            log_event(LOGGER, component="images", event="images.upload", status="error", reason="request_failed")
            raise ImageStorageError(f"ImgBB request failed: {exc}") from exc

        if response.status_code >= 400:
            log_event(
                LOGGER,
                component="images",
                event="images.upload",
                status="error",
                http_status=response.status_code,
                body=response.text,
            )
            raise ImageStorageError(f"ImgBB upload failed with status {response.status_code}")
        url = _extract_url(response)
        if url is None:
            log_event(LOGGER, component="images", event="images.upload", status="error", reason="unexpected_response")
            raise ImageStorageError("ImgBB upload returned an unexpected response")
        log_event(LOGGER, component="images", event="images.upload", folder=folder, url=url)
        return url

    async def delete(self, url: str) -> None:
        log_event(LOGGER, component="images", event="images.delete", status="skipped", url=url)


def _extract_url(response: httpx.Response) -> str | None:
    try:
        payload: Any = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict) or not payload.get("success", True):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    url = data.get("url")
    if not isinstance(url, str) or not url:
        return None
    return url
