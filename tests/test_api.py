import pytest
from fastapi.testclient import TestClient

from consultation_service.config import Settings
from consultation_service.main import build_services, create_app
from consultation_service.signature import sign
from tests.factories import KEY_ID, KEY_SECRET, ORDER_ID, PAYMENT_ID


def receipt(**overrides):
    body = {
        "razorpay_order_id": ORDER_ID,
        "razorpay_payment_id": PAYMENT_ID,
        "razorpay_signature": sign(ORDER_ID, PAYMENT_ID, KEY_SECRET),
    }
    body.update(overrides)
    return body


def test_create_order_success(client, gateway_client):
    response = client.post("/payment/create-order", json={"name": "Asha", "email": "asha@example.com"})

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "orderId": ORDER_ID,
        "amount": 29900,
        "currency": "INR",
        "keyId": KEY_ID,
    }
    gateway_client.order.create.assert_called_once()


def test_create_order_ignores_client_amount(client, gateway_client):
    client.post("/payment/create-order", json={"name": "Asha", "amount": 1, "currency": "USD"})

    (payload,), _ = gateway_client.order.create.call_args
    assert payload["amount"] == 29900
    assert payload["currency"] == "INR"


@pytest.mark.parametrize("body", [None, "not json", "[1, 2]"])
def test_create_order_tolerates_missing_or_bad_body(client, gateway_client, body):
    response = client.post(
        "/payment/create-order",
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 201
    (payload,), _ = gateway_client.order.create.call_args
    assert payload["notes"]["customer_name"] == "unknown"


def test_create_order_gateway_failure(client, gateway_client):
    gateway_client.order.create.side_effect = Exception("Razorpay Service Unavailable")

    response = client.post("/payment/create-order", json={})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to create payment order"}


def test_create_order_not_configured(tmp_path):
    services = build_services(Settings(database_url=f"sqlite:///{tmp_path / 'db.sqlite'}"))

    with TestClient(create_app(services=services)) as c:
        response = c.post("/payment/create-order", json={})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Payment gateway not configured"
    assert "RAZORPAY_KEY_ID" in body["hint"]


def test_verify_success(client):
    response = client.post("/payment/verify", json=receipt())

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "verified": True,
        "paymentId": PAYMENT_ID,
        "orderId": ORDER_ID,
    }


@pytest.mark.parametrize("missing", ["razorpay_order_id", "razorpay_payment_id", "razorpay_signature"])
def test_verify_missing_fields(client, missing):
    body = receipt()
    del body[missing]

    response = client.post("/payment/verify", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing payment verification fields"


def test_verify_signature_mismatch_reveals_nothing(client):
    expected = sign(ORDER_ID, PAYMENT_ID, KEY_SECRET)
    tampered = ("0" if expected[0] != "0" else "1") + expected[1:]

    response = client.post("/payment/verify", json=receipt(razorpay_signature=tampered))

    assert response.status_code == 400
    assert response.json()["error"] == "Payment verification failed"
    assert expected not in response.text
    assert KEY_SECRET not in response.text


def test_verify_malformed_signature(client):
    response = client.post("/payment/verify", json=receipt(razorpay_signature="abc123"))

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid payment signature format"}


def test_verify_rejects_non_json_body(client):
    response = client.post("/payment/verify", content="oops", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_verify_not_configured(tmp_path):
    services = build_services(Settings(razorpay_key_id=KEY_ID))

    with TestClient(create_app(services=services)) as c:
        response = c.post("/payment/verify", json=receipt())

    assert response.status_code == 500
    assert response.json()["error"] == "Payment verification not configured"
    assert "RAZORPAY_KEY_SECRET" in response.json()["hint"]


@pytest.mark.parametrize("path", ["/payment/create-order", "/payment/verify", "/consultation"])
def test_options_returns_cors_headers(client, path):
    response = client.options(path)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"


def test_health_reports_components(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "components": {
            "gateway": True,
            "store": True,
            "verification": True,
            "email": False,
            "whatsapp": False,
        },
    }


def test_unexpected_error_is_generic(services, mocker):
    mocker.patch("consultation_service.routes.verify_payment", side_effect=RuntimeError("boom at /srv/app.py"))

    with TestClient(create_app(services=services), raise_server_exceptions=False) as c:
        response = c.post("/payment/verify", json=receipt())

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
