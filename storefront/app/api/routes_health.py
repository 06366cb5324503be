# storefront/app/api/routes_health.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.app.api.deps import get_api, get_container
from storefront.app.core.container import AppContainer
from storefront.app.core.errors import ApiError
from storefront.app.core.redis_conn import ping as redis_ping
from storefront.app.integrations.api.client import ApiClient

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(
    probe: bool = False,
    container: AppContainer = Depends(get_container),
    api: ApiClient = Depends(get_api),
):
    settings = container.settings
    # Default to "skip" so liveness checks never depend on the platform API;
    # ?probe=true also asks the upstream /health.
    upstream = "skip"
    if probe:
        try:
            await api.get("/health")
            upstream = "ok"
        except ApiError as e:
            upstream = "unreachable" if e.is_network_error else f"fail ({e.status_code})"

    storage = settings.storage_backend.lower()
    storage_ok = redis_ping(settings.redis_url) if storage == "redis" else True

    return {
        "service": settings.service_name,
        "version": settings.version,
        "env": {
            "environment": settings.environment,
            "api_root": settings.api_root,
            "storage_backend": storage,
        },
        "status": "ok" if storage_ok else "degraded",
        "probes": {
            "storage": "ok" if storage_ok else "fail",
            "upstream": upstream,
        },
    }
