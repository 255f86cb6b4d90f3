"""Async HTTP client for the media library API and the counting endpoint."""

import logging

import httpx

from folio.schemas.photo import PhotoListResponse, PhotoResponse
from folio.services.errors import (
    LibraryError,
    NotAuthenticated,
    NotFound,
    Outcome,
    StaleList,
    StorageFailure,
    UploadValidationError,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ERRORS_BY_STATUS: dict[int, type[LibraryError]] = {
    400: UploadValidationError,
    401: NotAuthenticated,
    404: NotFound,
    409: StaleList,
}


def _error_from_response(response: httpx.Response) -> LibraryError:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    error_cls = ERRORS_BY_STATUS.get(response.status_code, StorageFailure)
    return error_cls(detail if isinstance(detail, str) else None)


class LibraryClient:
    """Owner-scoped access to the media library over HTTP.

    Every call returns an ``Outcome``; transport failures become
    ``StorageFailure`` so callers only ever branch on the outcome.
    """

    def __init__(self, http: httpx.AsyncClient, token: str):
        self.http = http
        self.headers = {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response | LibraryError:
        try:
            response = await self.http.request(method, f"{API_PREFIX}{path}", headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return StorageFailure()
        if response.is_error:
            return _error_from_response(response)
        return response

    async def _photo_list(self, method: str, path: str, **kwargs) -> Outcome[list[PhotoResponse]]:
        response = await self._request(method, path, **kwargs)
        if isinstance(response, LibraryError):
            return Outcome.failure(response)
        return Outcome.success(PhotoListResponse.model_validate(response.json()).photos)

    async def list_photos(self) -> Outcome[list[PhotoResponse]]:
        return await self._photo_list("GET", "/photos")

    async def upload(self, filename: str, content_type: str, data: bytes) -> Outcome[PhotoResponse]:
        response = await self._request("POST", "/photos", files={"file": (filename, data, content_type)})
        if isinstance(response, LibraryError):
            return Outcome.failure(response)
        return Outcome.success(PhotoResponse.model_validate(response.json()))

    async def reorder(self, photo_ids: list[str]) -> Outcome[list[PhotoResponse]]:
        return await self._photo_list("PUT", "/photos/order", json={"photo_ids": photo_ids})

    async def set_visibility_batch(self, changes: dict[str, bool]) -> Outcome[list[PhotoResponse]]:
        body = {"changes": [{"id": pid, "is_visible": visible} for pid, visible in changes.items()]}
        return await self._photo_list("POST", "/photos/visibility", json=body)

    async def set_caption(self, photo_id: str, caption: str) -> Outcome[PhotoResponse]:
        response = await self._request("PATCH", f"/photos/{photo_id}", json={"caption": caption})
        if isinstance(response, LibraryError):
            return Outcome.failure(response)
        return Outcome.success(PhotoResponse.model_validate(response.json()))

    async def delete(self, photo_id: str) -> Outcome[list[PhotoResponse]]:
        response = await self._request("DELETE", f"/photos/{photo_id}")
        if isinstance(response, LibraryError):
            return Outcome.failure(response)
        return await self.list_photos()


class HttpEventSender:
    """Delivers one engagement event to the counting endpoint.

    Returns whether the server counted it; transport errors propagate to the
    caller, which decides how loudly to fail.
    """

    def __init__(self, http: httpx.AsyncClient, path: str = f"{API_PREFIX}/analytics/photo-event"):
        self.http = http
        self.path = path

    async def __call__(self, photo_id: str, event_type: str) -> bool:
        response = await self.http.post(self.path, json={"photoId": photo_id, "eventType": event_type})
        if response.is_error:
            logger.debug("Counting endpoint answered %d for %s/%s", response.status_code, photo_id, event_type)
            return False
        return response.json().get("tracked") is True
