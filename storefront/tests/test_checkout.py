import json

from fakes import login_as

ORDER = {"id": "order_1", "amount": 2000, "currency": "INR", "key_id": "rzp_test"}
CALLBACK = {
    "razorpay_order_id": "order_1",
    "razorpay_payment_id": "pay_1",
    "razorpay_signature": "sig",
}


def _fill_cart(client, platform):
    platform.on("GET", "/admin/store/1", json={"id": 1, "name": "Aimbot", "price": 10})
    client.post("/cart/items", json={"product_id": 1})
    client.post("/cart/items", json={"product_id": 1})


def test_start_requires_login(client, platform):
    r = client.post("/checkout/start", json={})
    assert r.status_code == 401
    assert r.json()["redirect_to"] == "/login?returnUrl=%2Fcheckout"
    assert "/api/payments/razorpay/create-order" not in [c.url.path for c in platform.calls]


def test_start_with_empty_cart(client, platform):
    login_as(client, platform, "client")
    r = client.post("/checkout/start", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "Your cart is empty"


def test_cart_checkout_success_clears_cart(client, platform):
    login_as(client, platform, "client")
    _fill_cart(client, platform)
    platform.on("POST", "/payments/razorpay/create-order", json=ORDER)
    platform.on("POST", "/payments/razorpay/verify", json={"status": "success", "keys": ["KEY-1"]})

    r = client.post("/checkout/start", json={})
    assert r.status_code == 200
    widget = r.json()["widget"]
    assert widget["key"] == "rzp_test"
    assert widget["order_id"] == "order_1"
    assert widget["description"] == "Purchase: 1 items"
    assert widget["prefill"] == {"name": "client1", "email": "client@x.io"}
    assert r.json()["checkout"]["status"] == "awaiting_widget"

    sent = json.loads(platform.calls[-1].content)
    assert sent["amount"] == 20
    assert sent["items"] == [{"product_id": 1, "plan_id": None, "price": 10.0, "quantity": 2}]

    r = client.post("/checkout/verify", json=CALLBACK)
    state = r.json()["checkout"]
    assert state["status"] == "success"
    assert state["keys"] == [{"product_name": "Item", "key": "KEY-1", "plan_name": None, "expires_at": None}]
    assert client.get("/cart").json()["cart"]["items"] == []


def test_verification_failure_keeps_cart(client, platform):
    login_as(client, platform, "client")
    _fill_cart(client, platform)
    platform.on("POST", "/payments/razorpay/create-order", json=ORDER)
    platform.on("POST", "/payments/razorpay/verify", json={"status": "failed", "message": "Bad signature"})

    client.post("/checkout/start", json={})
    r = client.post("/checkout/verify", json=CALLBACK)
    assert r.json()["checkout"]["status"] == "error"
    assert r.json()["checkout"]["message"] == "Bad signature"
    assert client.get("/cart").json()["cart"]["total_items"] == 2

    # retry goes back to idle, nothing is re-sent
    before = len(platform.calls)
    assert client.post("/checkout/retry").json()["checkout"]["status"] == "idle"
    assert len(platform.calls) == before


def test_verify_without_pending_order(client, platform):
    r = client.post("/checkout/verify", json=CALLBACK)
    assert r.status_code == 409


def test_create_order_failure_is_error_state(client, platform):
    login_as(client, platform, "client")
    _fill_cart(client, platform)
    platform.on("POST", "/payments/razorpay/create-order", status=500, json={"detail": "gateway down"})
    r = client.post("/checkout/start", json={})
    assert r.status_code == 400
    assert r.json()["checkout"]["status"] == "error"
    assert r.json()["checkout"]["message"] == "gateway down"


def test_direct_purchase_keeps_cart(client, platform):
    login_as(client, platform, "client")
    _fill_cart(client, platform)
    platform.on("GET", "/admin/store/2", json={
        "id": 2, "name": "Spoofer", "price": 99,
        "plans": [{"id": 7, "name": "Lifetime", "price": 50}],
    })
    platform.on("POST", "/payments/razorpay/create-order", json=dict(ORDER, amount=5000))
    platform.on("POST", "/payments/razorpay/verify", json={
        "status": "success",
        "keys_data": [{"product_name": "Spoofer", "key": "SP-1", "plan_name": "Lifetime"}],
    })

    r = client.post("/checkout/start", json={"product_id": 2, "plan_id": 7})
    assert r.json()["widget"]["description"] == "Purchase: Spoofer"
    sent = json.loads(platform.calls[-1].content)
    assert sent["items"] == [{"product_id": 2, "plan_id": 7, "price": 50.0, "quantity": 1}]

    state = client.post("/checkout/verify", json=CALLBACK).json()["checkout"]
    assert state["keys"][0]["key"] == "SP-1"
    assert client.get("/cart").json()["cart"]["total_items"] == 2


def test_widget_failure_and_dismiss(client, platform):
    assert client.post("/checkout/fail", json={}).json()["checkout"]["status"] == "error"
    assert client.get("/checkout").json()["checkout"]["status"] == "error"
    assert client.post("/checkout/dismiss").json()["checkout"]["status"] == "idle"


def test_crypto_instructions(client, platform):
    body = client.get("/checkout/crypto/trc20").json()
    crypto = body["crypto"]
    assert crypto["network"] == "trc20"
    assert crypto["address"].startswith("T")
    assert "size=150x150" in crypto["qr_url"]
    assert crypto["address"] in crypto["qr_url"]

    evm = client.get("/checkout/crypto/BEP20").json()["crypto"]
    assert evm["address"].startswith("0x")
    assert client.get("/checkout/crypto/btc").status_code == 404


def test_direct_purchase_matches_cart_line_price(client, platform):
    login_as(client, platform, "client")
    platform.on("GET", "/admin/store/3", json={
        "id": 3, "name": "Radar", "price": 15,
        "region_prices": [{"region_id": 1, "price": 999}],
        "plans": [{"id": 1, "name": "Week", "price": 20}],
    })
    platform.on("POST", "/payments/razorpay/create-order", json=ORDER)

    cart_price = client.post("/cart/items", json={"product_id": 3, "plan_id": 1}).json()["cart"]["items"][0]["price"]
    client.post("/checkout/start", json={"product_id": 3, "plan_id": 1})
    sent = json.loads(platform.calls[-1].content)
    assert sent["items"][0]["price"] == cart_price == 999
