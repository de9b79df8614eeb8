import pytest

from conftest import method_by_code, product_by_sku

SHIPPING = {
    "email": "a@b.com",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address": "12 Analytical Row",
    "city": "London",
    "postal_code": "N1 7AA",
    "country": "GB",
    "phone": "+44 20 7946 0000",
}


def new_session(client) -> str:
    resp = client.post('/sessions', follow_redirects=False)
    assert resp.status_code == 201
    return resp.json()["session_id"]


def test_create_session_without_redirect(client):
    resp = client.post('/sessions', follow_redirects=False)
    assert resp.status_code == 201
    body = resp.json()
    assert client.get(f'/sessions/{body["session_id"]}/cart').json()["lines"] == []


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert "X-Request-ID" in resp.headers


def test_readiness(client):
    resp = client.get('/health/ready')
    assert resp.status_code in [200, 503]
    assert "database:connectivity" in resp.json()["checks"]


def test_catalog_listings(client):
    products = client.get('/products').json()
    assert {p["sku"] for p in products} == {"SKU0001", "SKU0002", "SKU0003"}
    assert products[0]["is_featured"]

    apparel = client.get('/products', params={"category": "apparel"}).json()
    assert {p["sku"] for p in apparel} == {"SKU0001", "SKU0002"}

    methods = client.get('/payment-methods').json()
    assert [m["code"] for m in methods] == ["stripe", "paypal", "cod", "bank_transfer"]

    currencies = client.get('/currencies').json()
    assert currencies[0]["code"] == "USD"
    assert currencies[0]["is_default"]


def test_unknown_product_is_404(client):
    assert client.get('/products/9999').status_code == 404


def test_unknown_session_is_404(client):
    resp = client.get('/sessions/nope/cart')
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Storefront session not found or expired"


def test_cart_operations(client, db):
    sid = new_session(client)
    tee = product_by_sku(db, "SKU0001")

    cart = client.post(f'/sessions/{sid}/cart/items', json={"product_id": tee.id, "quantity": 1}).json()
    cart = client.post(f'/sessions/{sid}/cart/items', json={"product_id": tee.id, "quantity": 1}).json()
    assert len(cart["lines"]) == 1
    assert cart["total_items"] == 2
    assert cart["pricing"]["subtotal"] == pytest.approx(59.98)
    assert cart["pricing"]["shipping"] == 0
    assert cart["pricing"]["tax"] == pytest.approx(5.998)
    assert cart["pricing"]["total"] == pytest.approx(65.978)
    assert cart["pricing"]["formatted_total"] == "$65.98"

    eur = client.get(f'/sessions/{sid}/cart', params={"currency": "EUR"}).json()
    assert eur["pricing"]["formatted_total"] == "€60.70"

    cart = client.put(f'/sessions/{sid}/cart/items/{tee.id}', json={"quantity": 0}).json()
    assert cart["lines"] == []

    resp = client.put(f'/sessions/{sid}/cart/items/{tee.id}', json={"quantity": 1})
    assert resp.status_code == 404

    assert client.delete(f'/sessions/{sid}/cart/items/{tee.id}').status_code == 200


def test_add_rejects_non_positive_quantity(client, db):
    sid = new_session(client)
    resp = client.post(f'/sessions/{sid}/cart/items', json={"product_id": product_by_sku(db, "SKU0001").id, "quantity": 0})
    assert resp.status_code == 422


def test_checkout_flow_end_to_end(client, db):
    sid = new_session(client)
    tote = product_by_sku(db, "SKU0003")
    client.post(f'/sessions/{sid}/cart/items', json={"product_id": tote.id, "quantity": 1})

    checkout = client.post(f'/sessions/{sid}/checkout/open').json()
    assert checkout["step"] == "info"
    assert checkout["pricing"]["total"] == pytest.approx(15.99)

    checkout = client.post(f'/sessions/{sid}/checkout/advance').json()
    assert checkout["step"] == "info"
    assert "email" in checkout["errors"]

    client.put(f'/sessions/{sid}/checkout/shipping', json={**SHIPPING, "email": "foo@"})
    checkout = client.post(f'/sessions/{sid}/checkout/advance').json()
    assert checkout["step"] == "info"
    assert list(checkout["errors"]) == ["email"]

    client.put(f'/sessions/{sid}/checkout/shipping', json=SHIPPING)
    checkout = client.post(f'/sessions/{sid}/checkout/advance').json()
    assert checkout["step"] == "payment"

    resp = client.post(f'/sessions/{sid}/checkout/submit')
    assert resp.status_code == 409

    cod = method_by_code(db, "cod")
    client.put(f'/sessions/{sid}/checkout/payment-method', json={"payment_method_id": cod.id})
    checkout = client.post(f'/sessions/{sid}/checkout/advance').json()
    assert checkout["step"] == "review"

    resp = client.post(f'/sessions/{sid}/checkout/submit', json={"currency_code": "USD"})
    assert resp.status_code == 201
    placed = resp.json()
    assert placed["subtotal"] == pytest.approx(10.0)
    assert placed["shipping_amount"] == pytest.approx(4.99)
    assert placed["tax_amount"] == pytest.approx(1.0)
    assert placed["total_amount"] == pytest.approx(15.99)
    assert placed["payment_method"] == "cod"
    assert placed["requires_online_payment"] is False

    assert client.get(f'/sessions/{sid}/cart').json()["lines"] == []
    checkout = client.get(f'/sessions/{sid}/checkout').json()
    assert checkout["step"] == "submitted"
    assert checkout["order_number"] == placed["order_number"]

    order = client.get(f'/orders/{placed["order_number"]}').json()
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["customer_email"] == "a@b.com"
    assert order["customer_name"] == "Ada Lovelace"
    assert order["shipping_address"]["city"] == "London"
    assert [(i["product_sku"], i["quantity"], i["total_price"]) for i in order["items"]] == [("SKU0003", 1, 10.0)]


def test_back_navigation_keeps_data(client, db):
    sid = new_session(client)
    client.post(f'/sessions/{sid}/cart/items', json={"product_id": product_by_sku(db, "SKU0003").id})
    client.post(f'/sessions/{sid}/checkout/open')
    client.put(f'/sessions/{sid}/checkout/shipping', json=SHIPPING)
    client.post(f'/sessions/{sid}/checkout/advance')
    checkout = client.post(f'/sessions/{sid}/checkout/back').json()
    assert checkout["step"] == "info"
    assert checkout["shipping_info"] == SHIPPING


def test_shipping_edit_outside_info_step_is_409(client, db):
    sid = new_session(client)
    client.post(f'/sessions/{sid}/cart/items', json={"product_id": product_by_sku(db, "SKU0003").id})
    resp = client.put(f'/sessions/{sid}/checkout/shipping', json=SHIPPING)
    assert resp.status_code == 409


def test_open_checkout_with_empty_cart_is_409(client):
    sid = new_session(client)
    assert client.post(f'/sessions/{sid}/checkout/open').status_code == 409


def test_order_status_update(client, db):
    sid = new_session(client)
    client.post(f'/sessions/{sid}/cart/items', json={"product_id": product_by_sku(db, "SKU0002").id})
    client.post(f'/sessions/{sid}/checkout/open')
    client.put(f'/sessions/{sid}/checkout/shipping', json=SHIPPING)
    client.post(f'/sessions/{sid}/checkout/advance')
    client.post(f'/sessions/{sid}/checkout/advance')
    placed = client.post(f'/sessions/{sid}/checkout/submit').json()
    assert placed["requires_online_payment"] is True

    resp = client.put(f'/orders/{placed["order_number"]}/status', json={"status": "processing"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "processing"

    resp = client.put(f'/orders/{placed["order_number"]}/status', json={"status": "lost"})
    assert resp.status_code == 422
    assert client.get('/orders/ORD-0000-MISSING').status_code == 404
