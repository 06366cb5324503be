# storefront/app/api/deps.py
"""
Per-request dependencies.

FastAPI caches a dependency for the lifetime of one request, so every
store below shares the same BrowserStorage snapshot within that request.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from storefront.app.core.container import AppContainer
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.session import Session
from storefront.app.services.cart_store import CartStore
from storefront.app.services.checkout import CheckoutFlow
from storefront.app.services.guard import BY_PATH, evaluate
from storefront.app.services.market_store import MarketStore
from storefront.app.services.notices import Notifier
from storefront.app.services.session_store import SessionStore
from storefront.app.services.storage import BrowserStorage


class GuardRedirect(Exception):
    """Raised by a page guard; rendered as 303 See Other."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


# ---------- Composition ----------

def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_browser_id(request: Request) -> str:
    return request.state.browser_id


def get_storage(
    container: AppContainer = Depends(get_container),
    browser_id: str = Depends(get_browser_id),
) -> BrowserStorage:
    return container.storage(browser_id)


def get_session(storage: BrowserStorage = Depends(get_storage)) -> SessionStore:
    return SessionStore(storage)


def get_cart(storage: BrowserStorage = Depends(get_storage)) -> CartStore:
    return CartStore(storage)


def get_market(storage: BrowserStorage = Depends(get_storage)) -> MarketStore:
    return MarketStore(storage)


def get_notifier() -> Notifier:
    return Notifier()


def get_api(
    container: AppContainer = Depends(get_container),
    session: SessionStore = Depends(get_session),
) -> ApiClient:
    return ApiClient(container.http_client(), container.settings, session=session)


def get_checkout(
    container: AppContainer = Depends(get_container),
    api: ApiClient = Depends(get_api),
    cart: CartStore = Depends(get_cart),
    session: SessionStore = Depends(get_session),
    storage: BrowserStorage = Depends(get_storage),
) -> CheckoutFlow:
    return CheckoutFlow(api, cart, session, storage, container.settings)


# ---------- Guard ----------

def guard_page(path: str) -> Callable[..., Session]:
    """Dependency factory: allow the request or raise GuardRedirect for the route at `path`."""
    route = BY_PATH[path]

    def _guard(request: Request, session: SessionStore = Depends(get_session)) -> Session:
        auth = session.get_auth()
        current = request.url.path + (f"?{request.url.query}" if request.url.query else "")
        decision = evaluate(route, auth, current)
        if not decision.allowed:
            raise GuardRedirect(decision.redirect_to or "/")
        return auth

    return _guard


# ---------- Responses ----------

def render(
    page: str,
    notifier: Optional[Notifier] = None,
    status_code: int = 200,
    **data: Any,
) -> JSONResponse:
    """Page payload: {"page", ...data, "notices": [...]}."""
    body: Dict[str, Any] = {"page": page, **data}
    notices: List[Any] = notifier.drain() if notifier is not None else []
    body["notices"] = [n.model_dump() for n in notices]
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
