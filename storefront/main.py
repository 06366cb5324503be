# storefront/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from storefront.app.core.config import Settings, get_settings
from storefront.app.core.container import AppContainer
from storefront.app.core.logging import setup_logging
from storefront.app.services.storage import StorageBackend, namespace_ok, new_namespace

from storefront.app.api.deps import GuardRedirect, render
from storefront.app.api.routes_admin import router as admin_router
from storefront.app.api.routes_auth import router as auth_router
from storefront.app.api.routes_cart import router as cart_router
from storefront.app.api.routes_checkout import router as checkout_router
from storefront.app.api.routes_client import router as client_router
from storefront.app.api.routes_dashboard import router as dashboard_router
from storefront.app.api.routes_health import router as health_router
from storefront.app.api.routes_market import router as market_router
from storefront.app.api.routes_reseller import router as reseller_router
from storefront.app.api.routes_store import router as store_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    backend: Optional[StorageBackend] = None,
) -> FastAPI:
    """
    Build the app. Tests pass an httpx transport (MockTransport) in place of
    the platform API and usually a MemoryStorageBackend.
    """
    settings = settings or get_settings()
    # Initialize logging early so all imports use correct handlers/levels
    setup_logging(settings.log_level, settings.log_format)

    container = AppContainer.build(settings, backend=backend, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container.http_client()
        logger.info("%s %s (%s) up; api=%s", settings.service_name, settings.version,
                    settings.environment, settings.api_root)
        try:
            yield
        finally:
            await container.close()

    app = FastAPI(
        title=settings.service_name,
        version=settings.version,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.container = container

    # --- Global JSON error handler: convert unexpected 500s to JSON so clients can parse ---
    @app.exception_handler(Exception)
    async def _unhandled_exc_to_json(request: Request, exc: Exception):
        logger.error("unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "detail": str(exc),
                "path": str(request.url),
                "method": request.method,
            },
        )

    @app.exception_handler(GuardRedirect)
    async def _guard_redirect(request: Request, exc: GuardRedirect):
        return RedirectResponse(exc.location, status_code=303)

    # --- Browser id: namespaces cart/session/region storage ---
    @app.middleware("http")
    async def _browser_id(request: Request, call_next):
        name = settings.session_cookie_name
        sid = request.cookies.get(name)
        fresh = not namespace_ok(sid)
        if fresh:
            sid = new_namespace()
        request.state.browser_id = sid
        response = await call_next(request)
        if fresh:
            response.set_cookie(
                name, sid,
                max_age=settings.session_cookie_max_age,
                httponly=True,
                samesite="lax",
                secure=settings.environment == "prod",
            )
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods or ["*"],
        allow_headers=settings.cors_allow_headers or ["*"],
    )

    # Routes
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(store_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(market_router)
    app.include_router(dashboard_router)
    app.include_router(admin_router)
    app.include_router(reseller_router)
    app.include_router(client_router)

    # Unmatched GETs render the not-found page; must stay last.
    @app.get("/{path:path}", include_in_schema=False)
    async def not_found(path: str):
        return render("not-found", status_code=404, path=f"/{path}")

    return app


app = create_app()
