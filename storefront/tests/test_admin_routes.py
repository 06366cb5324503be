import json

from fakes import login_as


def _body(request):
    return json.loads(request.content or b"null")


def test_create_application(client, platform):
    platform.on("POST", "/admin/apps/", json={"id": 9, "name": "Nova"})
    platform.on("GET", "/admin/apps/", json=[{"id": 9, "name": "Nova"}])
    login_as(client, platform, "admin")

    r = client.post("/applications", json={"name": "Nova"})
    assert r.status_code == 201
    body = r.json()
    assert body["created"] == {"id": 9, "name": "Nova"}
    assert body["total"] == 1
    assert body["notices"][0]["title"] == "Application created"


def test_create_validation_error_never_reaches_platform(client, platform):
    login_as(client, platform, "admin")
    before = len(platform.calls)
    r = client.post("/applications", json={"version": "1"})
    assert r.status_code == 422
    assert r.json()["errors"] == {"name": "name is required"}
    assert r.json()["form"] == {"version": "1"}
    assert len(platform.calls) == before


def test_create_upstream_failure_is_502(client, platform):
    platform.on("POST", "/admin/apps/", status=400, json={"detail": "Name taken"})
    login_as(client, platform, "admin")
    r = client.post("/applications", json={"name": "Dup"})
    assert r.status_code == 502
    body = r.json()
    assert body["error"] == "Name taken"
    assert body["upstream_status"] == 400
    assert body["notices"][0]["description"] == "Name taken"


def test_search_is_local(client, platform):
    platform.on("GET", "/admin/apps/", json=[{"id": 1, "name": "Alpha"}, {"id": 2, "name": "Beta"}])
    login_as(client, platform, "admin")
    r = client.get("/applications", params={"q": "alp"})
    body = r.json()
    assert [a["name"] for a in body["items"]] == ["Alpha"]
    assert body["total"] == 2
    assert body["query"] == "alp"
    # the search term is not forwarded
    assert "q" not in platform.calls[-1].url.params


def test_toggle_failure_rolls_back(client, platform):
    platform.on("GET", "/admin/apps/", json=[{"id": 1, "name": "Alpha", "force_update": False}])
    platform.on("PUT", "/admin/apps/1", status=500, json={"error": "nope"})
    login_as(client, platform, "admin")

    r = client.patch("/applications/1", json={"field": "force_update", "value": True})
    assert r.status_code == 502
    assert r.json()["items"][0]["force_update"] is False


def test_delete_application(client, platform):
    platform.on("DELETE", "/admin/apps/1", json={"ok": True})
    platform.on("GET", "/admin/apps/", json=[])
    login_as(client, platform, "admin")
    r = client.delete("/applications/1")
    assert r.status_code == 200
    assert r.json()["deleted"] == "1"
    assert r.json()["items"] == []


def test_read_only_page_has_no_write_routes(client, platform):
    platform.on("GET", "/admin/logs/", json=[{"id": 1, "action": "login"}])
    login_as(client, platform, "admin")
    body = client.get("/logs").json()
    assert body["capabilities"] == {"create": False, "update": False, "delete": False}
    assert client.post("/logs", json={}).status_code == 405


def test_add_reseller_balance(client, platform):
    platform.on("POST", "/admin/resellers/5/add-balance", json={"balance": 150})
    login_as(client, platform, "admin")
    r = client.post("/resellers/5/add-balance", json={"amount": 50})
    assert r.status_code == 200
    assert r.json()["result"] == {"balance": 150}
    assert _body(platform.calls[-1]) == {"amount": 50}


def test_amount_must_be_positive(client, platform):
    login_as(client, platform, "admin")
    assert client.post("/resellers/5/add-balance", json={"amount": 0}).status_code == 422


def test_bulk_license_delete_passes_mode(client, platform):
    platform.on("DELETE", "/admin/licenses/", json={"deleted": 3})
    login_as(client, platform, "admin")
    r = client.delete("/licenses", params={"mode": "unused"})
    assert r.status_code == 200
    assert platform.calls[-1].url.params["mode"] == "unused"
    assert client.delete("/licenses", params={"mode": "some"}).status_code == 422


def test_ticket_reply(client, platform):
    platform.on("POST", "/admin/tickets/message", json={"ok": True})
    login_as(client, platform, "admin")
    r = client.post("/tickets/12/reply", json={"content": "On it"})
    assert r.status_code == 200
    assert _body(platform.calls[-1]) == {"ticket_id": "12", "content": "On it"}


def test_impersonate_switches_session(client, platform):
    platform.on(
        "POST", "/admin/store/clients/3/impersonate",
        json={"token": "client-tok", "user": {"username": "c3"}},
    )
    login_as(client, platform, "admin")
    r = client.post("/clients/3/impersonate")
    assert r.status_code == 200
    assert r.json()["redirect_to"] == "/client/dashboard"

    session = client.get("/session").json()["session"]
    assert session["user_type"] == "client"
    assert session["user"] == {"username": "c3"}
    # the admin panel is now off limits
    assert client.get("/applications", follow_redirects=False).status_code == 303


def test_path_parameters_are_quoted_upstream(client, platform):
    platform.on("POST", "/admin/users/a b?c/reset-hwid", json={})
    login_as(client, platform, "admin")
    r = client.post("/users/a%20b%3Fc/reset-hwid")
    assert r.status_code == 200
    assert platform.calls[-1].url.raw_path == b"/api/admin/users/a%20b%3Fc/reset-hwid"
