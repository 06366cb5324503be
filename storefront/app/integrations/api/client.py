# storefront/app/integrations/api/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.app.core.config import Settings
from storefront.app.core.errors import ApiError, SessionExpired, extract_error_message
from storefront.app.services.session_store import SessionStore

logger = logging.getLogger(__name__)

# Credential exchanges: a 401 here is a wrong password, not a dead session.
_LOGIN_MARKERS = ("/login", "/discord", "/google")


def make_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """The one AsyncClient an application instance shares across requests."""
    return httpx.AsyncClient(
        base_url=settings.api_root,
        timeout=settings.api_timeout_seconds,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        transport=transport,
    )


def _clean_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    out: Dict[str, Any] = {}
    for k, v in params.items():
        if v is None or v == "":
            continue
        out[k] = str(v).lower() if isinstance(v, bool) else v
    return out or None


class ApiClient:
    """
    Platform API access for one browser request.

    Attaches the session's bearer token, decodes JSON (non-JSON bodies come
    back as {"raw": text}), and turns every failure into ApiError.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Settings,
        session: Optional[SessionStore] = None,
    ) -> None:
        self.http = http
        self.settings = settings
        self.session = session

    # ---------- verbs ----------

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("POST", endpoint, json=json, params=params)

    async def put(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("PUT", endpoint, json=json)

    async def patch(self, endpoint: str, json: Any = None) -> Any:
        return await self.request("PATCH", endpoint, json=json)

    async def delete(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("DELETE", endpoint, params=params)

    # ---------- core ----------

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        token = self.session.token if self.session else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
            headers["x-emerite-token"] = token
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        method = method.upper()
        endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        attempts = self.settings.api_get_attempts if method == "GET" else 1

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
                stop=stop_after_attempt(attempts),
                reraise=True,
            ):
                with attempt:
                    response = await self.http.request(
                        method,
                        endpoint,
                        json=json,
                        params=_clean_params(params),
                        headers=self._headers(),
                    )
        except httpx.TransportError as e:
            logger.error("api %s %s: network error: %s", method, endpoint, e)
            raise ApiError(f"Server connection failed: {str(e) or type(e).__name__}") from e

        data = self._decode(response, endpoint)
        logger.info("api %s %s -> %s", method, endpoint, response.status_code)

        if response.is_success:
            return data

        message = extract_error_message(data, response.status_code)
        expired = response.status_code == 401 or "token expired" in message.lower()
        if expired and not any(m in endpoint for m in _LOGIN_MARKERS):
            logger.warning("api %s %s: session rejected (%s); clearing credential", method, endpoint, message)
            if self.session is not None:
                self.session.clear_auth()
            raise SessionExpired(
                "Session invalid or user deleted. Please log in again."
                if response.status_code == 401
                else "Session expired. Please log in again.",
                status_code=response.status_code,
                payload=data,
            )

        logger.warning("api %s %s: %s %s", method, endpoint, response.status_code, message)
        raise ApiError(message, status_code=response.status_code, payload=data)

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError as e:
                logger.error("api %s: unparsable JSON body (%s)", endpoint, e)
                raise ApiError(
                    "Invalid response format from server (expected JSON)",
                    status_code=response.status_code,
                ) from e
        logger.warning("api %s: non-JSON response (%s)", endpoint, content_type or "no content-type")
        return {"raw": response.text}
