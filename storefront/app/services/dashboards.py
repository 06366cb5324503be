# storefront/app/services/dashboards.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from storefront.app.core.errors import ApiError, SessionExpired
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import as_dict

logger = logging.getLogger(__name__)


async def fetch_many(api: ApiClient, endpoints: Dict[str, str]) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    GET several endpoints concurrently; each part fails on its own.

    Returns (data, errors) keyed like `endpoints`; a failed part has data None
    and its message in errors. A rejected session fails the whole page.
    """
    names = list(endpoints)
    results = await asyncio.gather(*(api.get(endpoints[n]) for n in names), return_exceptions=True)
    data: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for name, res in zip(names, results):
        if isinstance(res, SessionExpired):
            raise res
        if isinstance(res, ApiError):
            logger.info("dashboard: %s unavailable (%s)", name, res.message)
            data[name] = None
            errors[name] = res.message
        elif isinstance(res, BaseException):
            raise res
        else:
            data[name] = res
    return data, errors


async def server_time(api: ApiClient) -> str:
    """Platform clock, or ours when /time is unreachable."""
    try:
        doc = as_dict(await api.get("/time"))
    except ApiError as e:
        logger.info("dashboard: /time unavailable (%s); using local clock", e.message)
        doc = {}
    return doc.get("time") or doc.get("current_time") or doc.get("timestamp") or datetime.now(timezone.utc).isoformat()


async def health(api: ApiClient) -> Any:
    """/health, then /status; {"status": "unknown"} when neither answers."""
    for endpoint in ("/health", "/status"):
        try:
            return await api.get(endpoint)
        except ApiError as e:
            logger.info("dashboard: %s unavailable (%s)", endpoint, e.message)
    return {"status": "unknown"}
