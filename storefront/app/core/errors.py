# storefront/app/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base class for errors raised by the storefront itself."""


class ValidationFailed(StorefrontError):
    """A form was rejected locally; no request was sent."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Missing or invalid fields: {fields}")


class ApiError(StorefrontError):
    """The platform API answered non-2xx, or could not be reached (status_code=None)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


class SessionExpired(ApiError):
    """401 (or an expired-token message) on an authenticated call. The session is already cleared."""


class PaymentError(StorefrontError):
    """Checkout could not proceed (not logged in, empty order, widget/verification failure)."""


def extract_error_message(data: Any, status_code: int) -> str:
    """Pick the most useful human message out of an error body."""
    if isinstance(data, dict):
        for key in ("detail", "error", "message", "raw"):
            val = data.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
            # FastAPI-style 422 detail: [{"msg": ...}, ...]
            if key == "detail" and isinstance(val, list) and val:
                first = val[0]
                if isinstance(first, dict) and first.get("msg"):
                    return str(first["msg"])
    return f"HTTP {status_code}"
