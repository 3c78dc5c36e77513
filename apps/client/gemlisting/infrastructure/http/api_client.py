import logging
from typing import Any, Callable, Dict, Optional

import httpx

from gemlisting import config
from gemlisting.interfaces.api.schemas import ApiEnvelope

logger = logging.getLogger(__name__)

NETWORK_ERROR = "NETWORK_ERROR"
SERVER_ERROR = "SERVER_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

NETWORK_ERROR_MESSAGE = "Network error occurred. Please check your connection."


class ApiClient:
    """Async client for the marketplace REST API.

    Every call resolves to a `{success, data, message, error}` dict: HTTP
    and transport failures are folded into that shape here so callers
    never see raw httpx exceptions.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or config.API_TIMEOUT,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        # Pre-signed URLs carry their own auth; never send the bearer token there.
        self.storage = httpx.AsyncClient(
            timeout=upload_timeout or config.UPLOAD_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()
        await self.storage.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            return self._handle_status_error(exc)
        except httpx.RequestError as exc:
            logger.error("API request %s %s failed: %s", method, path, exc)
            return {"success": False, "message": NETWORK_ERROR_MESSAGE, "error": NETWORK_ERROR}

        try:
            body = response.json()
        except ValueError:
            logger.error("API request %s %s returned non-JSON body", method, path)
            return {"success": False, "message": "Invalid JSON response", "error": UNKNOWN_ERROR}

        if isinstance(body, dict) and "success" in body:
            return body
        return {"success": True, "data": body}

    def _handle_status_error(self, exc: httpx.HTTPStatusError) -> Dict[str, Any]:
        status = exc.response.status_code
        if status == 401:
            logger.warning("API rejected credentials for %s", exc.request.url)
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "success" in body:
            return body
        body = body if isinstance(body, dict) else {}
        logger.error("API error %s for %s: %s", status, exc.request.url, body.get("message"))
        return {
            "success": False,
            "message": body.get("message") or f"Server error occurred (HTTP {status})",
            "error": body.get("error") or SERVER_ERROR,
        }

    async def request(self, method: str, path: str, **kwargs: Any) -> ApiEnvelope:
        return ApiEnvelope.model_validate(await self.request_json(method, path, **kwargs))

    async def get(self, path: str, **kwargs: Any) -> ApiEnvelope:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> ApiEnvelope:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> ApiEnvelope:
        return await self.request("PUT", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiEnvelope:
        return await self.request("DELETE", path, **kwargs)
