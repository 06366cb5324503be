# storefront/app/models/session.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

UserType = Literal["admin", "reseller", "client"]
USER_TYPES = ("admin", "reseller", "client")


class Session(BaseModel):
    token: Optional[str] = None
    user_type: Optional[UserType] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)


class SessionView(BaseModel):
    """What the browser is allowed to see about its own session (never the token)."""
    authenticated: bool = False
    user_type: Optional[UserType] = None
    user: Optional[Dict[str, Any]] = None
    landing: str = Field(default="/products", description="Where this role lands after login")


def local_path(url: Optional[str]) -> Optional[str]:
    """`url` when it is a path inside this site, else None."""
    if not url or not url.startswith("/") or url.startswith("//") or "\\" in url:
        return None
    parts = urlsplit(url)
    if parts.scheme or parts.netloc:
        return None
    return url


def landing_page(user_type: Optional[str], return_url: Optional[str] = None) -> str:
    if user_type == "admin":
        return "/dashboard"
    if user_type == "reseller":
        return "/reseller/dashboard"
    return local_path(return_url) or "/products"
