import json

from fakes import login_as


def test_login_stores_session_and_lands_by_role(client, platform):
    login_as(client, platform, "reseller")
    body = client.get("/session").json()
    assert body["session"]["authenticated"] is True
    assert body["session"]["user_type"] == "reseller"
    assert body["session"]["landing"] == "/reseller/dashboard"
    # the token itself never leaves the server
    assert "tok-1" not in json.dumps(body)


def test_login_return_url_for_clients(client, platform):
    platform.on("POST", "/auth/client/login", json={"token": "t", "user_type": "client"})
    r = client.post("/login", json={"email": "a@b.c", "password": "pw", "returnUrl": "/checkout"})
    assert r.json()["redirect_to"] == "/checkout"


def test_login_unknown_user_type_falls_back_to_client(client, platform):
    platform.on("POST", "/auth/client/login", json={"token": "t", "user_type": "wizard"})
    r = client.post("/login", json={"email": "a@b.c", "password": "pw"})
    assert r.json()["session"]["user_type"] == "client"


def test_login_wrong_password(client, platform):
    platform.on("POST", "/auth/client/login", status=401, json={"detail": "Invalid credentials"})
    r = client.post("/login", json={"email": "a@b.c", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials"
    assert r.json()["notices"][0]["title"] == "Access Denied"


def test_login_unverified_account(client, platform):
    platform.on("POST", "/auth/client/login", status=403, json={"detail": "Account not verified"})
    r = client.post("/login", json={"email": "a@b.c", "password": "pw"})
    assert r.status_code == 403
    assert r.json()["verification_required"] is True


def test_login_without_token(client, platform):
    platform.on("POST", "/auth/client/login", json={"message": "ok"})
    r = client.post("/login", json={"email": "a@b.c", "password": "pw"})
    assert r.status_code == 502
    assert client.get("/session").json()["session"]["authenticated"] is False


def test_register_then_verify(client, platform):
    platform.on("POST", "/auth/client/register", json={"message": "code sent"})
    platform.on("POST", "/auth/client/verify", json={"token": "new", "user": {"email": "n@x.io"}})

    r = client.post("/register", json={"email": "n@x.io", "password": "pw", "confirm_password": "pw"})
    assert r.status_code == 201
    assert r.json()["verification_required"] is True

    r = client.post("/register/verify", json={"email": "n@x.io", "code": "123456"})
    assert r.status_code == 200
    assert r.json()["session"]["user_type"] == "client"
    assert r.json()["redirect_to"] == "/products"


def test_register_password_mismatch(client, platform):
    r = client.post("/register", json={"email": "n@x.io", "password": "a", "confirm_password": "b"})
    assert r.status_code == 422
    assert platform.calls == []


def test_password_reset_flow(client, platform):
    platform.on("POST", "/auth/client/forgot-password", json={})
    platform.on("POST", "/auth/client/reset-password", json={})
    assert client.post("/password/forgot", json={"email": "a@b.c"}).json()["reset_step"] == 2
    r = client.post("/password/reset", json={"email": "a@b.c", "code": "1", "new_password": "x"})
    assert r.status_code == 200
    assert r.json()["notices"][0]["title"] == "Success"


def test_logout(client, platform):
    login_as(client, platform, "admin")
    r = client.post("/logout")
    assert r.json()["redirect_to"] == "/"
    assert client.get("/session").json()["session"]["authenticated"] is False


def test_api_calls_carry_the_token(client, platform):
    platform.on("GET", "/admin/apps/", json=[])
    login_as(client, platform, "admin", token="secret-token")
    client.get("/applications")
    call = platform.calls[-1]
    assert call.headers["authorization"] == "Bearer secret-token"
    assert call.headers["x-emerite-token"] == "secret-token"


def test_login_ignores_off_site_return_url(client, platform):
    platform.on("POST", "/auth/client/login", json={"token": "t", "user_type": "client"})
    for target in ("https://evil.example/phish", "//evil.example", "/\\evil.example", "javascript:alert(1)"):
        r = client.post("/login", json={"email": "a@b.c", "password": "pw", "returnUrl": target})
        assert r.json()["redirect_to"] == "/products"
    assert client.get("/login", params={"returnUrl": "//evil.example"}).json()["return_url"] is None
