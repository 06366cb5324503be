# storefront/app/api/resource_router.py
"""
One router per admin page: view, create, update, toggle, delete.

    GET    <page>?q=        list (+ local search)
    POST   <page>           create          201 | 422 | 502
    PUT    <page>/{id}      update          200 | 422 | 502
    PATCH  <page>/{id}      toggle a field  200 | 502
    DELETE <page>/{id}      delete          200 | 502
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.app.api.deps import GuardRedirect, get_api, get_notifier, guard_page, render
from storefront.app.core.errors import ApiError, ValidationFailed
from storefront.app.integrations.api.client import ApiClient
from storefront.app.services.guard import login_redirect
from storefront.app.services.notices import Notifier
from storefront.app.services.pages import ResourcePage, ResourceSpec


# ---------- Schemas ----------

class ToggleRequest(BaseModel):
    field: str
    value: Any


# ---------- Helpers ----------

def page_payload(page: ResourcePage, query: Optional[str] = None) -> Dict[str, Any]:
    spec = page.spec
    return {
        "state": page.state.value,
        "items": page.filter(query),
        "total": len(page.items),
        "query": query or "",
        "error": page.error,
        "capabilities": {
            "create": spec.can_create,
            "update": spec.can_update,
            "delete": spec.can_delete,
        },
    }


def upstream_failure(page_name: str, notifier: Notifier, e: ApiError, **extra: Any) -> JSONResponse:
    """502 with the server's message; callers echo the submitted form back in `extra`."""
    extra.update(error=e.message, upstream_status=e.status_code)
    return render(page_name, notifier, 502, **extra)


def _expired(page: ResourcePage) -> None:
    if page.session_expired:
        raise GuardRedirect(login_redirect(page.spec.path))


def resource_router(spec: ResourceSpec) -> APIRouter:
    router = APIRouter(tags=[spec.name])
    guard = guard_page(spec.path)

    @router.get(spec.path, name=f"{spec.name}_view")
    async def view(
        request: Request,
        q: Optional[str] = None,
        api: ApiClient = Depends(get_api),
        notifier: Notifier = Depends(get_notifier),
        _auth=Depends(guard),
    ):
        page = ResourcePage(api, spec, notifier)
        await page.load(**dict(request.query_params))
        _expired(page)
        return render(spec.name, notifier, **page_payload(page, q))

    if spec.can_create:
        @router.post(spec.path, name=f"{spec.name}_create")
        async def create(
            body: Dict[str, Any] = Body(...),
            api: ApiClient = Depends(get_api),
            notifier: Notifier = Depends(get_notifier),
            _auth=Depends(guard),
        ):
            page = ResourcePage(api, spec, notifier)
            try:
                result = await page.create(body)
            except ValidationFailed as e:
                return render(spec.name, notifier, 422, errors=e.errors, form=body)
            except ApiError as e:
                _expired(page)
                return upstream_failure(spec.name, notifier, e, form=body)
            return render(spec.name, notifier, 201, created=result, **page_payload(page))

    if spec.can_update:
        @router.put(spec.path + "/{item_id}", name=f"{spec.name}_update")
        async def update(
            item_id: str,
            body: Dict[str, Any] = Body(...),
            api: ApiClient = Depends(get_api),
            notifier: Notifier = Depends(get_notifier),
            _auth=Depends(guard),
        ):
            page = ResourcePage(api, spec, notifier)
            try:
                result = await page.update(item_id, body)
            except ValidationFailed as e:
                return render(spec.name, notifier, 422, errors=e.errors, form=body)
            except ApiError as e:
                _expired(page)
                return upstream_failure(spec.name, notifier, e, form=body)
            return render(spec.name, notifier, updated=result, **page_payload(page))

        @router.patch(spec.path + "/{item_id}", name=f"{spec.name}_toggle")
        async def toggle(
            item_id: str,
            body: ToggleRequest,
            api: ApiClient = Depends(get_api),
            notifier: Notifier = Depends(get_notifier),
            _auth=Depends(guard),
        ):
            page = ResourcePage(api, spec, notifier)
            await page.load()
            _expired(page)
            try:
                await page.toggle(item_id, body.field, body.value)
            except ApiError as e:
                _expired(page)
                return upstream_failure(spec.name, notifier, e, form=body.model_dump(), **page_payload(page))
            return render(spec.name, notifier, **page_payload(page))

    if spec.can_delete:
        @router.delete(spec.path + "/{item_id}", name=f"{spec.name}_delete")
        async def delete(
            item_id: str,
            api: ApiClient = Depends(get_api),
            notifier: Notifier = Depends(get_notifier),
            _auth=Depends(guard),
        ):
            page = ResourcePage(api, spec, notifier)
            try:
                await page.delete(item_id)
            except ApiError as e:
                _expired(page)
                await page.load()
                return upstream_failure(spec.name, notifier, e, item_id=item_id, **page_payload(page))
            return render(spec.name, notifier, deleted=item_id, **page_payload(page))

    return router
