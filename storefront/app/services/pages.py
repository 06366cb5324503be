# storefront/app/services/pages.py
"""
The fetch / mutate / re-fetch loop every admin page runs.

A `ResourceSpec` says where a page's records live and which fields matter;
`ResourcePage` runs the loop for one request and records the page state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

from storefront.app.core.errors import ApiError, SessionExpired, ValidationFailed
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import Record, RecordId, parse_list
from storefront.app.services.notices import Notifier

logger = logging.getLogger(__name__)


class PageState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ResourceSpec:
    name: str                                 # page id, e.g. "applications"
    path: str                                 # page URL, e.g. "/applications"
    title: str                                # plural label for notices
    singular: str                             # singular label for notices
    model: type
    list_endpoint: str
    item_endpoint: Optional[str] = None       # "{id}" is substituted
    create_endpoint: Optional[str] = None
    update_method: str = "PUT"
    can_update: bool = True
    can_delete: bool = True
    required: Tuple[str, ...] = ()
    search_fields: Tuple[str, ...] = ()
    list_params: Tuple[str, ...] = ()         # query params forwarded to the list call

    @property
    def can_create(self) -> bool:
        return self.create_endpoint is not None

    def item_url(self, item_id: RecordId) -> str:
        if not self.item_endpoint:
            raise ValueError(f"{self.name} has no item endpoint")
        return self.item_endpoint.format(id=quote(str(item_id), safe=""))


def missing_fields(data: Mapping[str, Any], required: Tuple[str, ...], partial: bool = False) -> Dict[str, str]:
    """Required fields that are absent or blank. With partial=True only present keys are checked."""
    errors: Dict[str, str] = {}
    for name in required:
        if partial and name not in data:
            continue
        val = data.get(name)
        if val is None or (isinstance(val, str) and not val.strip()):
            errors[name] = f"{name} is required"
    return errors


def matches(item: Any, query: str, fields: Tuple[str, ...]) -> bool:
    q = query.strip().casefold()
    if not q:
        return True
    for name in fields:
        val = getattr(item, name, None)
        if val is not None and q in str(val).casefold():
            return True
    return False


class ResourcePage:
    """
    One admin page: idle -> loading -> success|error on every (re)load.

    Each load takes a request number; only the newest load may write
    `items`, so a slow earlier response can never overwrite a newer one.
    Each HTTP request builds its own page, so this orders loads within one
    request only.
    """

    def __init__(self, api: ApiClient, spec: ResourceSpec, notifier: Optional[Notifier] = None) -> None:
        self.api = api
        self.spec = spec
        self.notifier = notifier or Notifier()
        self.state = PageState.IDLE
        self.items: List[Record] = []
        self.error: Optional[str] = None
        self.session_expired = False
        self._seq = 0
        self._params: Dict[str, Any] = {}

    # ---------- reads ----------

    async def load(self, **params: Any) -> List[Record]:
        self._seq += 1
        token = self._seq
        self._params = {k: v for k, v in params.items() if k in self.spec.list_params}
        self.state = PageState.LOADING
        try:
            data = await self.api.get(self.spec.list_endpoint, params=self._params)
        except ApiError as e:
            if token != self._seq:
                logger.debug("%s: dropping stale failure #%s", self.spec.name, token)
                return self.items
            self.items = []
            self.state = PageState.ERROR
            self.error = e.message
            self.session_expired = isinstance(e, SessionExpired)
            self.notifier.error(f"Failed to load {self.spec.title.lower()}", e.message)
            return self.items

        if token != self._seq:
            logger.debug("%s: dropping stale response #%s (latest #%s)", self.spec.name, token, self._seq)
            return self.items
        self.items = parse_list(self.spec.model, data)
        self.state = PageState.SUCCESS
        self.error = None
        return self.items

    def filter(self, query: Optional[str]) -> List[Record]:
        """Substring search over the already-fetched records; never hits the API."""
        if not query:
            return list(self.items)
        return [it for it in self.items if matches(it, query, self.spec.search_fields)]

    def find(self, item_id: RecordId) -> Optional[Record]:
        for it in self.items:
            if str(getattr(it, "id", None)) == str(item_id):
                return it
        return None

    # ---------- writes ----------

    async def create(self, data: Mapping[str, Any]) -> Any:
        if not self.spec.can_create:
            raise ValueError(f"{self.spec.name} does not support create")
        self._validate(data, partial=False)
        result = await self._write("POST", self.spec.create_endpoint, data, "create")
        self.notifier.success(f"{self.spec.singular} created")
        await self.load(**self._params)
        return result

    async def update(self, item_id: RecordId, data: Mapping[str, Any]) -> Any:
        if not self.spec.can_update:
            raise ValueError(f"{self.spec.name} does not support update")
        self._validate(data, partial=True)
        result = await self._write(self.spec.update_method, self.spec.item_url(item_id), data, "update")
        self.notifier.success(f"{self.spec.singular} updated")
        await self.load(**self._params)
        return result

    async def delete(self, item_id: RecordId) -> Any:
        if not self.spec.can_delete:
            raise ValueError(f"{self.spec.name} does not support delete")
        result = await self._write("DELETE", self.spec.item_url(item_id), None, "delete")
        self.notifier.success(f"{self.spec.singular} deleted")
        await self.load(**self._params)
        return result

    async def toggle(self, item_id: RecordId, field_name: str, value: Any) -> Any:
        """Flip a field locally first; a failed write is rolled back by re-fetching."""
        for i, it in enumerate(self.items):
            if str(getattr(it, "id", None)) == str(item_id):
                self.items[i] = it.model_copy(update={field_name: value})
                break
        try:
            result = await self._write(
                self.spec.update_method, self.spec.item_url(item_id), {field_name: value}, "update"
            )
        except ApiError:
            await self.load(**self._params)
            raise
        self.notifier.success(f"{self.spec.singular} updated")
        return result

    # ---------- internals ----------

    def _validate(self, data: Mapping[str, Any], partial: bool) -> None:
        errors = missing_fields(data, self.spec.required, partial=partial)
        if errors:
            self.notifier.error("Validation failed", ", ".join(errors.values()))
            raise ValidationFailed(errors)

    async def _write(self, method: str, endpoint: str, data: Optional[Mapping[str, Any]], verb: str) -> Any:
        try:
            return await self.api.request(method, endpoint, json=dict(data) if data is not None else None)
        except ApiError as e:
            self.session_expired = isinstance(e, SessionExpired)
            self.notifier.error(f"Failed to {verb} {self.spec.singular.lower()}", e.message)
            raise
