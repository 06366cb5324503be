from fakes import login_as

PRODUCTS = [
    {"id": 1, "name": "Aimbot Pro", "price": 20, "category": "Tools", "platform": "PC",
     "region_prices": [{"region_id": 2, "price": 3}]},
    {"id": 2, "name": "ESP Lite", "price": 10, "category": "Tools"},
    {"id": 3, "name": "Spoofer", "price": 15},
    {"id": 4, "name": "Retired", "price": 5, "is_active": False},
    {"id": 5, "name": "Hidden", "price": 5, "status": "hidden"},
]


def test_products_grouped_by_category(client, platform):
    platform.on("GET", "/admin/store/", json=PRODUCTS)
    r = client.get("/products")
    assert r.status_code == 200
    body = r.json()
    assert body["page"] == "products"
    assert body["total"] == 3
    groups = {g["name"]: [p["name"] for p in g["products"]] for g in body["categories"]}
    assert groups == {"Tools": ["Aimbot Pro", "ESP Lite"], "General": ["Spoofer"]}


def test_products_search(client, platform):
    platform.on("GET", "/admin/store/", json=PRODUCTS)
    body = client.get("/products", params={"q": "esp"}).json()
    assert body["total"] == 1
    assert body["categories"][0]["products"][0]["name"] == "ESP Lite"


def test_products_failure_renders_error_state(client, platform):
    platform.on("GET", "/admin/store/", status=500, json={"error": "down"})
    body = client.get("/products").json()
    assert body["state"] == "error"
    assert body["error"] == "down"
    assert body["notices"][0]["title"] == "Failed to load products"


def test_home_shows_three_featured(client, platform):
    platform.on("GET", "/admin/store/", json=PRODUCTS)
    body = client.get("/").json()
    assert body["page"] == "home"
    assert [p["name"] for p in body["featured"]] == ["Aimbot Pro", "ESP Lite", "Spoofer"]


def test_region_prices(client, platform):
    platform.on("GET", "/admin/store/", json=PRODUCTS)
    body = client.get("/products").json()
    assert body["region"]["currency_code"] == "INR"
    assert body["categories"][0]["products"][0]["display_price"] == 20

    r = client.post("/market/region", json={"region_id": 2})
    assert r.status_code == 200
    assert r.json()["selected"]["currency_code"] == "USD"

    body = client.get("/products").json()
    assert body["categories"][0]["products"][0]["display_price"] == 3


def test_unknown_region(client, platform):
    r = client.post("/market/region", json={"region_id": 99})
    assert r.status_code == 404
    assert r.json()["selected"]["id"] == 1


def test_product_detail_uses_app_plans(client, platform):
    platform.on("GET", "/admin/store/1", json={"id": 1, "name": "Aimbot Pro", "price": 20, "app_id": 7})
    platform.on("GET", "/admin/store/", json=PRODUCTS)
    platform.on("GET", "/admin/subscriptions/plans", json=[
        {"id": 11, "app_id": 7, "name": "Monthly"},
        {"id": 12, "app_id": 7, "name": "Old", "active": False},
    ])
    body = client.get("/store/product/1").json()
    assert body["page"] == "product-detail"
    assert [p["name"] for p in body["plans"]] == ["Monthly"]
    assert body["selected_plan"]["id"] == 11
    assert body["plans"][0]["display_price"] == 20
    assert 1 not in [p["id"] for p in body["related"]]


def test_product_detail_prefers_best_value(client, platform):
    platform.on("GET", "/admin/store/2", json={
        "id": 2, "name": "ESP Lite", "price": 10,
        "plans": [{"id": "d", "name": "Day", "price": 1}, {"id": "w", "name": "Week", "price": 5, "is_best_value": True}],
    })
    body = client.get("/store/product/2").json()
    assert body["selected_plan"]["id"] == "w"


def test_product_not_found(client, platform):
    r = client.get("/store/product/404")
    assert r.status_code == 404
    assert r.json()["page"] == "product-detail"


def test_post_review_requires_login(client, platform):
    r = client.post("/reviews", json={"content": "great", "stars": 5}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login?returnUrl=%2Freviews"


def test_post_review(client, platform):
    platform.on("POST", "/admin/store/reviews/", json={"id": 1, "content": "great"})
    login_as(client, platform, "client")
    r = client.post("/reviews", json={"content": "great", "stars": 4})
    assert r.status_code == 201
    assert r.json()["created"]["content"] == "great"


def test_store_status_degrades_per_part(client, platform):
    platform.on("GET", "/admin/store/", json=PRODUCTS[:2])
    body = client.get("/store-status").json()
    assert body["health"] == {"status": "unknown"}
    assert [p["status"] for p in body["products"]] == ["active", "active"]
    assert body["updates"] == []


def test_static_pages(client):
    assert client.get("/contact").json()["support_url"].startswith("https://")
    assert client.get("/legal/terms").json()["page"] == "legal-terms"
    assert client.get("/legal/cookies").status_code == 404


def test_unknown_path_is_not_found(client):
    r = client.get("/definitely/not/here")
    assert r.status_code == 404
    assert r.json()["page"] == "not-found"
    assert r.json()["path"] == "/definitely/not/here"


def test_browser_cookie_issued_once(client):
    first = client.get("/contact")
    assert "emerite_sid" in first.cookies
    second = client.get("/contact")
    assert "emerite_sid" not in second.cookies
