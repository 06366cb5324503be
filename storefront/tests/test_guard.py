from fakes import login_as
from storefront.app.models.session import Session
from storefront.app.services.guard import BY_PATH, evaluate, login_redirect, resolve


# ---------- unit ----------

def test_resolve_patterns():
    assert resolve("/store/product/42").page == "product-detail"
    assert resolve("/applications?q=x").page == "applications"
    assert resolve("/").page == "home"
    assert resolve("/nope/nope") is None


def test_public_route_always_allowed():
    assert evaluate(BY_PATH["/products"], Session()).allowed


def test_evaluate_roles():
    route = BY_PATH["/applications"]
    anon = evaluate(route, Session(), "/applications?q=a")
    assert not anon.allowed
    assert anon.reason == "not-authenticated"
    assert anon.redirect_to == login_redirect("/applications?q=a")

    wrong = evaluate(route, Session(token="t", user_type="client"))
    assert not wrong.allowed
    assert wrong.reason == "wrong-role"
    assert wrong.redirect_to == "/"

    assert evaluate(route, Session(token="t", user_type="admin")).allowed


def test_any_signed_in_user():
    route = BY_PATH["/profile"]
    assert not evaluate(route, Session()).allowed
    for role in ("admin", "reseller", "client"):
        assert evaluate(route, Session(token="t", user_type=role)).allowed


# ---------- over HTTP ----------

def test_admin_page_without_token_redirects_to_login(client, platform):
    r = client.get("/applications", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login?returnUrl=%2Fapplications"
    assert platform.calls == []


def test_admin_page_with_client_token_redirects_home(client, platform):
    login_as(client, platform, "client")
    r = client.get("/applications", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert "/api/admin/apps/" not in [c.url.path for c in platform.calls]


def test_admin_page_with_admin_token_renders(client, platform):
    platform.on("GET", "/admin/apps/", json=[{"id": 1, "name": "Alpha"}])
    login_as(client, platform, "admin")
    r = client.get("/applications")
    assert r.status_code == 200
    body = r.json()
    assert body["page"] == "applications"
    assert body["state"] == "success"
    assert [a["name"] for a in body["items"]] == ["Alpha"]


def test_reseller_routes_need_reseller(client, platform):
    login_as(client, platform, "admin")
    r = client.get("/reseller/dashboard", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_expired_token_upstream_sends_back_to_login(client, platform):
    platform.on("GET", "/admin/apps/", status=401, json={"detail": "expired"})
    login_as(client, platform, "admin")
    r = client.get("/applications", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login?returnUrl=%2Fapplications"
    assert client.get("/session").json()["session"]["authenticated"] is False
