# storefront/app/services/guard.py
"""
Which pages need a login, and which need a particular role.

`evaluate` is stateless: it looks at the stored session on every navigation
and never caches a decision.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlencode

from pydantic import BaseModel

from storefront.app.models.session import Session, UserType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteSpec:
    path: str                               # "/store/product/{id}" style pattern
    page: str
    protected: bool = False
    required_role: Optional[UserType] = None


class GuardDecision(BaseModel):
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None


def _public(path: str, page: str) -> RouteSpec:
    return RouteSpec(path, page)


def _role(path: str, page: str, role: Optional[UserType]) -> RouteSpec:
    return RouteSpec(path, page, protected=True, required_role=role)


ROUTES: List[RouteSpec] = [
    # store front
    _public("/", "home"),
    _public("/products", "products"),
    _public("/store/product/{id}", "product-detail"),
    _public("/cart", "cart"),
    _public("/checkout", "checkout"),
    _public("/about", "about"),
    _public("/reviews", "reviews"),
    _public("/store-status", "store-status"),
    _public("/legal/terms", "legal-terms"),
    _public("/legal/privacy", "legal-privacy"),
    _public("/legal/refund", "legal-refund"),
    _public("/contact", "contact"),
    _public("/login", "login"),
    _public("/register", "register"),
    # client area
    _role("/client/dashboard", "client-overview", "client"),
    _role("/client/orders", "client-orders", "client"),
    _role("/client/support", "client-support", "client"),
    # admin panel
    _role("/dashboard", "dashboard", "admin"),
    _role("/applications", "applications", "admin"),
    _role("/resellers", "resellers", "admin"),
    _role("/licenses", "licenses", "admin"),
    _role("/subscriptions", "subscriptions", "admin"),
    _role("/tickets", "tickets", "admin"),
    _role("/clients", "clients", "admin"),
    _role("/variables", "variables", "admin"),
    _role("/manage-team", "team", "admin"),
    _role("/manage-reviews", "reviews-admin", "admin"),
    _role("/manage-products", "products-admin", "admin"),
    _role("/users", "users", "admin"),
    _role("/orders", "orders", "admin"),
    _role("/revenue", "revenue", "admin"),
    _role("/logs", "logs", "admin"),
    # reseller panel
    _role("/reseller/dashboard", "reseller-dashboard", "reseller"),
    _role("/reseller/licenses", "reseller-licenses", "reseller"),
    _role("/reseller/users", "reseller-users", "reseller"),
    _role("/reseller/applications", "reseller-applications", "reseller"),
    _role("/reseller/transactions", "reseller-transactions", "reseller"),
    _role("/reseller/profile", "reseller-profile", "reseller"),
    # any signed-in user
    _role("/profile", "profile", None),
    _role("/status", "status", None),
]

BY_PATH: Dict[str, RouteSpec] = {r.path: r for r in ROUTES}


def _segments(path: str) -> List[str]:
    return [s for s in path.split("?", 1)[0].split("/") if s]


def resolve(path: str) -> Optional[RouteSpec]:
    """Match a concrete path against the table; "{x}" segments match anything."""
    parts = _segments(path)
    for route in ROUTES:
        pattern = _segments(route.path)
        if len(pattern) != len(parts):
            continue
        if all(p.startswith("{") or p == s for p, s in zip(pattern, parts)):
            return route
    return None


def login_redirect(return_url: str) -> str:
    return "/login?" + urlencode({"returnUrl": return_url})


def evaluate(route: RouteSpec, session: Session, current_path: Optional[str] = None) -> GuardDecision:
    if not route.protected:
        return GuardDecision(allowed=True)
    if not session.token:
        return GuardDecision(
            allowed=False,
            redirect_to=login_redirect(current_path or route.path),
            reason="not-authenticated",
        )
    if route.required_role and session.user_type != route.required_role:
        logger.warning(
            "guard: user of type %s attempted to access %s route %s",
            session.user_type, route.required_role, route.path,
        )
        return GuardDecision(allowed=False, redirect_to="/", reason="wrong-role")
    return GuardDecision(allowed=True)
