# storefront/app/services/session_store.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from storefront.app.models.session import USER_TYPES, Session, UserType
from storefront.app.services.storage import BrowserStorage

logger = logging.getLogger(__name__)

TOKEN_KEY = "emerite_token"
USER_TYPE_KEY = "emerite_user_type"
USER_DATA_KEY = "emerite_user_data"


class SessionStore:
    """
    Read/write access to the persisted credential of one browser.

    Nothing here checks the token; the platform API rejects stale tokens and
    the API client clears the session when it does.
    """

    def __init__(self, storage: BrowserStorage) -> None:
        self._storage = storage

    # ---------- reads ----------

    def get_auth(self) -> Session:
        return Session(
            token=self._storage.get_item(TOKEN_KEY) or None,
            user_type=self._read_user_type(),
            user=self._read_user(),
        )

    def is_authenticated(self) -> bool:
        return bool(self._storage.get_item(TOKEN_KEY))

    @property
    def token(self) -> Optional[str]:
        return self._storage.get_item(TOKEN_KEY) or None

    # ---------- writes ----------

    def set_auth(self, token: str, user_type: UserType, user: Optional[Dict[str, Any]] = None) -> None:
        """Login or impersonation: overwrite the stored credential."""
        if user_type not in USER_TYPES:
            raise ValueError(f"unknown user type '{user_type}'")
        self._storage.set_item(TOKEN_KEY, token)
        self._storage.set_item(USER_TYPE_KEY, user_type)
        if user is not None:
            self._storage.set_item(USER_DATA_KEY, json.dumps(user, ensure_ascii=False))
        else:
            # a previous identity's profile must not leak into this one
            self._storage.remove_item(USER_DATA_KEY)
        logger.info("session: set credential for user_type=%s", user_type)

    def update_user(self, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge `changes` into the stored user record; no-op without one."""
        current = self._read_user()
        if current is None:
            return None
        merged = {**current, **changes}
        self._storage.set_item(USER_DATA_KEY, json.dumps(merged, ensure_ascii=False))
        return merged

    def clear_auth(self) -> None:
        for key in (TOKEN_KEY, USER_TYPE_KEY, USER_DATA_KEY):
            self._storage.remove_item(key)

    # ---------- internals ----------

    def _read_user_type(self) -> Optional[UserType]:
        raw = self._storage.get_item(USER_TYPE_KEY)
        if raw is None:
            return None
        if raw not in USER_TYPES:
            logger.warning("session: ignoring unknown stored user type %r", raw)
            return None
        return raw  # type: ignore[return-value]

    def _read_user(self) -> Optional[Dict[str, Any]]:
        raw = self._storage.get_item(USER_DATA_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("session: failed to parse stored user (%s); treating as absent", e)
            return None
        return data if isinstance(data, dict) else None
