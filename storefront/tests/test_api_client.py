import asyncio

import httpx
import pytest

from fakes import make_settings
from storefront.app.core.errors import ApiError, SessionExpired, extract_error_message
from storefront.app.integrations.api.client import ApiClient, make_http_client
from storefront.app.services.session_store import SessionStore
from storefront.app.services.storage import BrowserStorage, MemoryStorageBackend


def _call(handler, method="GET", endpoint="/admin/apps/", token=None, settings=None, **kwargs):
    """Run one ApiClient request against `handler`; returns (result or exception, session)."""
    settings = settings or make_settings()
    session = SessionStore(BrowserStorage(MemoryStorageBackend(), "browser-0001"))
    if token:
        session.set_auth(token, "admin")

    async def run():
        async with make_http_client(settings, transport=httpx.MockTransport(handler)) as http:
            api = ApiClient(http, settings, session=session)
            try:
                return await api.request(method, endpoint, **kwargs)
            except ApiError as e:
                return e

    return asyncio.run(run()), session


def test_token_headers_and_base_url():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["x"] = request.headers.get("x-emerite-token")
        return httpx.Response(200, json=[{"id": 1}])

    result, _ = _call(handler, token="abc")
    assert result == [{"id": 1}]
    assert seen["url"] == "http://platform.test/api/admin/apps/"
    assert seen["auth"] == "Bearer abc"
    assert seen["x"] == "abc"


def test_no_token_no_auth_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={})

    _call(handler)
    assert seen["auth"] is None


def test_params_drop_empty_and_lowercase_bools():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    _call(handler, params={"app_id": 3, "is_banned": True, "q": "", "x": None})
    assert seen["params"] == {"app_id": "3", "is_banned": "true"}


def test_401_clears_session():
    result, session = _call(lambda r: httpx.Response(401, json={"detail": "bad token"}), token="abc")
    assert isinstance(result, SessionExpired)
    assert result.status_code == 401
    assert not session.is_authenticated()


def test_token_expired_message_clears_session():
    result, session = _call(lambda r: httpx.Response(400, json={"error": "Token expired"}), token="abc")
    assert isinstance(result, SessionExpired)
    assert not session.is_authenticated()


def test_401_on_login_is_plain_error():
    result, _ = _call(
        lambda r: httpx.Response(401, json={"detail": "Invalid credentials"}),
        method="POST", endpoint="/auth/client/login", json={"email": "a", "password": "b"},
    )
    assert type(result) is ApiError
    assert result.message == "Invalid credentials"


def test_server_message_is_surfaced():
    result, session = _call(lambda r: httpx.Response(500, json={"error": "db down"}), token="abc")
    assert type(result) is ApiError
    assert result.message == "db down"
    assert result.status_code == 500
    assert session.is_authenticated()


def test_non_json_body_wrapped_as_raw():
    result, _ = _call(lambda r: httpx.Response(200, text="pong", headers={"content-type": "text/plain"}))
    assert result == {"raw": "pong"}


def test_non_json_error_uses_raw_text():
    result, _ = _call(lambda r: httpx.Response(502, text="Bad Gateway", headers={"content-type": "text/html"}))
    assert result.message == "Bad Gateway"


def test_invalid_json_raises():
    result, _ = _call(
        lambda r: httpx.Response(200, content=b"{nope", headers={"content-type": "application/json"})
    )
    assert isinstance(result, ApiError)
    assert "expected JSON" in result.message


def test_network_error():
    def handler(request):
        raise httpx.ConnectError("refused")

    result, _ = _call(handler)
    assert isinstance(result, ApiError)
    assert result.is_network_error
    assert "Server connection failed" in result.message


def test_get_is_retried_on_transport_error():
    attempts = {"n": 0}

    def handler(request):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise httpx.ConnectError("blip")
        return httpx.Response(200, json={"ok": True})

    result, _ = _call(handler, settings=make_settings(api_get_attempts=2))
    assert result == {"ok": True}
    assert attempts["n"] == 2


def test_post_is_not_retried():
    attempts = {"n": 0}

    def handler(request):
        attempts["n"] += 1
        raise httpx.ConnectError("blip")

    result, _ = _call(handler, method="POST", settings=make_settings(api_get_attempts=3), json={})
    assert isinstance(result, ApiError)
    assert attempts["n"] == 1


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"detail": "nope"}, "nope"),
        ({"error": " spaced "}, "spaced"),
        ({"message": "msg"}, "msg"),
        ({"detail": [{"msg": "field required"}]}, "field required"),
        ({"other": 1}, "HTTP 418"),
        ("text", "HTTP 418"),
    ],
)
def test_extract_error_message(body, expected):
    assert extract_error_message(body, 418) == expected
