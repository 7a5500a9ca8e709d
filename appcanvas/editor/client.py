"""
Async HTTP client for the builder API.

Wraps the apps, data and AI endpoints and turns HTTP failures into
``BuilderAPIError`` subclasses. AI calls are best effort: anything other than
an authentication failure degrades to an empty result.
"""
from typing import Any, Dict, List, Optional, Union

import httpx
from loguru import logger

from appcanvas.config import settings
from appcanvas.models.schemas import (
    AppCreate,
    AppDataRecord,
    AppRecord,
    AppTemplate,
    AppUpdate,
    Component,
    OptimizedLayout,
    RecordListResponse,
    WidgetSuggestion,
)


class BuilderAPIError(Exception):
    """Base error for failed builder API calls"""

    def __init__(self, message: str, status_code: Optional[int] = None, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error


class AuthenticationError(BuilderAPIError):
    """Missing, expired or rejected token (401)"""


class AccessDeniedError(BuilderAPIError):
    """Caller may not access the resource (403)"""


class NotFoundError(BuilderAPIError):
    """Resource does not exist or is not visible to the caller (404)"""


class VersionConflictError(BuilderAPIError):
    """App changed since it was loaded (409)"""


class NetworkError(BuilderAPIError):
    """Transport failure or timeout; no response was received"""


class MalformedDocumentError(BuilderAPIError):
    """Stored layout does not parse as a layout document"""


_STATUS_ERRORS = {
    401: AuthenticationError,
    403: AccessDeniedError,
    404: NotFoundError,
    409: VersionConflictError,
}


def _error_from_response(response: httpx.Response) -> BuilderAPIError:
    error_code = None
    message = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        detail = body.get("detail", body)
        if isinstance(detail, dict):
            error_code = detail.get("error")
            message = detail.get("message") or message
        elif isinstance(detail, str):
            message = detail

    error_class = _STATUS_ERRORS.get(response.status_code, BuilderAPIError)
    return error_class(message, status_code=response.status_code, error=error_code)


class BuilderClient:
    """
    Client for one API base URL and (optionally) one bearer token.

    Usage:
        async with BuilderClient("http://localhost:8000/api/v1", token) as client:
            app = await client.get_app(app_id)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or settings.llm_timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "BuilderClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, auth_required: bool) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        if auth_required:
            raise AuthenticationError("No authentication token", status_code=401)
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        auth_required: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        headers = self._headers(auth_required)
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e

        if response.is_error:
            raise _error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise BuilderAPIError(
                "Malformed response body", status_code=response.status_code
            ) from e

    # ------------------------------------------------------------------
    # Apps
    # ------------------------------------------------------------------

    async def list_apps(self) -> List[AppRecord]:
        body = await self._request("GET", "/apps")
        return [AppRecord.model_validate(app) for app in body.get("apps", [])]

    async def get_app(self, app_id: str) -> AppRecord:
        body = await self._request("GET", f"/apps/{app_id}")
        return AppRecord.model_validate(body["app"])

    async def create_app(self, app: Union[AppCreate, Dict[str, Any]]) -> AppRecord:
        payload = app.model_dump(by_alias=True, exclude_none=True, mode="json") if isinstance(app, AppCreate) else app
        body = await self._request("POST", "/apps", json=payload)
        return AppRecord.model_validate(body["app"])

    async def update_app(self, app_id: str, updates: Union[AppUpdate, Dict[str, Any]]) -> AppRecord:
        if isinstance(updates, AppUpdate):
            updates = updates.model_dump(by_alias=True, exclude_unset=True, mode="json")
        body = await self._request("PUT", f"/apps/{app_id}", json=updates)
        return AppRecord.model_validate(body["app"])

    async def delete_app(self, app_id: str) -> None:
        await self._request("DELETE", f"/apps/{app_id}")

    async def set_visibility(self, app_id: str, is_public: bool) -> AppRecord:
        body = await self._request("PATCH", f"/apps/{app_id}/visibility", json={"isPublic": is_public})
        return AppRecord.model_validate(body["app"])

    async def get_public_app(self, slug: str) -> AppRecord:
        body = await self._request("GET", f"/apps/{slug}/public", auth_required=False)
        return AppRecord.model_validate(body["app"])

    # ------------------------------------------------------------------
    # Data records
    # ------------------------------------------------------------------

    async def create_record(self, app_id: str, collection: str, data: Any) -> AppDataRecord:
        body = await self._request("POST", f"/data/{app_id}", json={"collection": collection, "data": data})
        return AppDataRecord.model_validate(body["data"])

    async def list_records(
        self,
        app_id: str,
        collection: Optional[str] = None,
        page: int = 1,
        limit: int = settings.data_page_size_default,
    ) -> RecordListResponse:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if collection:
            params["collection"] = collection
        body = await self._request("GET", f"/data/{app_id}", auth_required=False, params=params)
        return RecordListResponse.model_validate(body)

    async def update_record(self, app_id: str, record_id: str, data: Any) -> AppDataRecord:
        body = await self._request("PUT", f"/data/{app_id}/{record_id}", json={"data": data})
        return AppDataRecord.model_validate(body["data"])

    async def delete_record(self, app_id: str, record_id: str) -> None:
        await self._request("DELETE", f"/data/{app_id}/{record_id}")

    # ------------------------------------------------------------------
    # AI assistant
    # ------------------------------------------------------------------

    async def suggest_widgets(self, app_type: str, description: str = "") -> List[WidgetSuggestion]:
        try:
            body = await self._request(
                "POST", "/ai/suggest-widgets",
                json={"appType": app_type, "description": description},
            )
            return [WidgetSuggestion.model_validate(s) for s in body.get("suggestions", [])]
        except AuthenticationError:
            raise
        except (BuilderAPIError, ValueError) as e:
            logger.warning(f"Widget suggestions unavailable: {e}")
            return []

    async def generate_template(self, app_type: str, description: str = "") -> Optional[AppTemplate]:
        try:
            body = await self._request(
                "POST", "/ai/generate-template",
                json={"appType": app_type, "description": description},
            )
            template = body.get("template")
            return AppTemplate.model_validate(template) if template else None
        except AuthenticationError:
            raise
        except (BuilderAPIError, ValueError) as e:
            logger.warning(f"Template generation unavailable: {e}")
            return None

    async def optimize_layout(self, components: List[Component]) -> Optional[OptimizedLayout]:
        try:
            body = await self._request(
                "POST", "/ai/optimize-layout",
                json={"components": [c.to_wire() for c in components]},
            )
            return OptimizedLayout.model_validate(body.get("optimizedLayout") or {})
        except AuthenticationError:
            raise
        except (BuilderAPIError, ValueError) as e:
            logger.warning(f"Layout optimization unavailable: {e}")
            return None
