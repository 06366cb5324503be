# storefront/app/core/container.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from storefront.app.core.config import Settings
from storefront.app.integrations.api.client import make_http_client
from storefront.app.services.storage import BrowserStorage, StorageBackend, make_backend

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """
    Root composition for one application instance.

    Holds the process-wide pieces (settings, the shared HTTP client, the
    storage backend). Per-browser stores are built from it per request.
    """

    settings: Settings
    backend: StorageBackend
    transport: Optional[httpx.AsyncBaseTransport] = None
    http: Optional[httpx.AsyncClient] = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        backend: Optional[StorageBackend] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "AppContainer":
        if backend is None:
            backend = make_backend(
                settings.storage_backend,
                storage_dir=settings.storage_dir,
                redis_url=settings.redis_url,
                ttl_seconds=settings.session_cookie_max_age,
            )
        logger.info("container: storage=%s api=%s", type(backend).__name__, settings.api_root)
        return cls(settings=settings, backend=backend, transport=transport)

    def http_client(self) -> httpx.AsyncClient:
        """The shared client; opened on first use when the lifespan has not run."""
        if self.http is None:
            self.http = make_http_client(self.settings, transport=self.transport)
        return self.http

    async def close(self) -> None:
        if self.http is not None:
            await self.http.aclose()
            self.http = None

    def storage(self, browser_id: str) -> BrowserStorage:
        return BrowserStorage(self.backend, browser_id)
