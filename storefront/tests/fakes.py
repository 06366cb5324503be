from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
from fastapi.testclient import TestClient

from storefront.app.core.config import Settings

Reply = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakePlatform:
    """
    Route table standing in for the platform API.

    Keys are (METHOD, path-without-/api); values are (status, json body) or a
    callable taking the request. Anything unregistered answers 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Reply] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None) -> None:
        self.routes[(method.upper(), path)] = (status, json)

    def on_call(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method.upper(), path)] = fn

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        reply = self.routes.get((request.method, path))
        if reply is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        if callable(reply):
            return reply(request)
        status, body = reply
        return httpx.Response(status, json=body)

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [
            r.url.path[len("/api"):] for r in self.calls
            if method is None or r.method == method.upper()
        ]


def make_settings(**overrides: Any) -> Settings:
    base = dict(
        storage_backend="memory",
        api_base_url="http://platform.test",
        api_get_attempts=1,
        log_level="WARNING",
    )
    base.update(overrides)
    return Settings(**base)


def login_as(client: TestClient, platform: FakePlatform, user_type: str, token: str = "tok-1") -> None:
    platform.on(
        "POST", "/auth/client/login",
        json={
            "token": token,
            "user_type": user_type,
            "user": {"username": f"{user_type}1", "email": f"{user_type}@x.io"},
        },
    )
    r = client.post("/login", json={"email": f"{user_type}@x.io", "password": "pw"})
    assert r.status_code == 200, r.text
