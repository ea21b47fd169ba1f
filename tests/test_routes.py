import io
import json

import pytest

from conftest import VALID_SIGNATURE


def order_payload(**overrides):
    payload = {
        "jobName": "Team Logo",
        "material": "Premium Vinyl",
        "materialId": "premium-vinyl",
        "size": '3"',
        "cutting": "Die Cut",
        "cuttingId": "die-cut",
        "quantity": 50,
        "fileUrl": "s3://test-bucket/dtf-orders/logo.png",
        "fileKey": "dtf-orders/logo.png",
        "fileName": "logo.png",
        "unitPriceCents": 89,
        "totalPriceCents": 4450,
    }
    payload.update(overrides)
    return payload


def post_completed_event(client, session_id="cs_test_1", email=None):
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {"id": session_id, "customer_details": {"email": email}}},
    }
    return client.post(
        "/api/webhooks/stripe",
        data=json.dumps(event),
        headers={"Stripe-Signature": VALID_SIGNATURE},
        content_type="application/json",
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["database"] == "reachable"


class TestPricingRoutes:
    def test_quote(self, client):
        response = client.get("/api/pricing/quote?size=3&quantity=50&material=premium-vinyl&cutting=die-cut")
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["breakdown"]["unitPriceCents"] == 89
        assert body["breakdown"]["totalPriceCents"] == 4450
        assert body["totalPrice"] == "$44.50"
        assert body["tierHint"]["nextTierMinQuantity"] == 100
        assert "timestamp" in body

    def test_quote_snaps_size(self, client):
        body = client.get("/api/pricing/quote?size=6.25&quantity=1&cutting=rectangle").get_json()
        assert body["size"] == 6.5
        assert body["breakdown"]["basePriceCents"] == 217

    def test_quote_top_tier_has_no_hint(self, client):
        body = client.get("/api/pricing/quote?size=3&quantity=1000").get_json()
        assert body["breakdown"]["discountPercent"] == 25
        assert body["tierHint"] is None

    def test_quote_rejects_quantity_out_of_range(self, client):
        response = client.get("/api/pricing/quote?size=3&quantity=10000")
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_quote_rejects_non_numeric_size(self, client):
        response = client.get("/api/pricing/quote?size=big&quantity=10")
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("size", ["40", "0.5", "12.5"])
    def test_quote_rejects_size_out_of_range(self, client, size):
        response = client.get(f"/api/pricing/quote?size={size}&quantity=10")
        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_quote_accepts_size_bounds(self, client):
        assert client.get("/api/pricing/quote?size=1&quantity=10").status_code == 200
        assert client.get("/api/pricing/quote?size=12&quantity=10").status_code == 200

    def test_tiers(self, client):
        tiers = client.get("/api/pricing/tiers").get_json()["tiers"]
        assert [t["min"] for t in tiers] == [1, 10, 50, 100, 250]

    def test_catalog(self, client):
        body = client.get("/api/catalog").get_json()
        assert body["defaultMaterialId"] == "premium-vinyl"
        assert len(body["materials"]) == 8


class TestCheckoutRoutes:
    def test_single_order(self, client, payment_gateway):
        response = client.post("/api/orders", json=order_payload())
        body = response.get_json()

        assert response.status_code == 200
        assert body["sessionId"] == "cs_test_1"
        assert body["checkoutUrl"] == "https://checkout.test/pay/cs_test_1"

        order = client.get("/api/orders/session/cs_test_1").get_json()["order"]
        assert order["status"] == "created"
        assert order["cartOrderId"] is None

    def test_single_order_missing_fields(self, client, payment_gateway):
        response = client.post("/api/orders", json=order_payload(jobName=""))
        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing required fields"
        assert payment_gateway.requests == []

    def test_single_checkout_rejects_out_of_range_size(self, client, payment_gateway):
        response = client.post("/api/orders", json=order_payload(
            size="40 in", quantity=5, unitPriceCents=0, totalPriceCents=0,
        ))
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid size"
        assert payment_gateway.requests == []

    def test_single_order_requires_json(self, client):
        response = client.post("/api/orders", data="not json", content_type="text/plain")
        assert response.status_code == 400

    def test_cart_checkout(self, client):
        items = [
            {"type": "single-image", "size": "3x3", "quantity": 10, "fileKey": "dtf-orders/a.png"},
            {"type": "gang-sheet", "sheetSize": "22x12", "quantity": 1},
        ]
        response = client.post("/api/cart-checkout", json={"items": items})
        body = response.get_json()

        assert response.status_code == 200
        assert body["cartId"].startswith("cart_")
        assert len(body["processedItems"]) == 2

        rows = client.get(f"/api/orders/cart/{body['cartId']}").get_json()
        assert rows["count"] == 2

    def test_cart_checkout_unpriceable_second_item(self, client, payment_gateway):
        items = [
            {"type": "single-image", "size": "3x3", "quantity": 10},
            {"type": "single-image", "size": "9x2", "quantity": 10},
        ]
        response = client.post("/api/cart-checkout", json={"items": items})
        body = response.get_json()

        assert response.status_code == 400
        assert body["error"].startswith("Invalid pricing for item 2 (")
        assert body["code"] == "PRICING_ERROR"
        assert payment_gateway.requests == []

    def test_empty_cart(self, client):
        response = client.post("/api/cart-checkout", json={"items": []})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Cart is empty"

    def test_provider_failure_is_generic_500(self, client, payment_gateway):
        payment_gateway.fail = True
        response = client.post("/api/orders", json=order_payload())
        body = response.get_json()

        assert response.status_code == 500
        assert body["error"] == "Failed to create checkout session"
        assert "card_declined" not in json.dumps(body)


class TestOrderRoutes:
    def test_repeated_webhook_is_idempotent(self, client):
        client.post("/api/orders", json=order_payload())

        first = post_completed_event(client, email="buyer@gmail.com")
        first_order = client.get("/api/orders/session/cs_test_1").get_json()["order"]
        second = post_completed_event(client, email="buyer@gmail.com")
        second_order = client.get("/api/orders/session/cs_test_1").get_json()["order"]

        assert first.status_code == second.status_code == 200
        assert first_order == second_order
        assert second_order["status"] == "completed"

    def test_orders_cannot_be_completed_without_payment_event(self, client):
        client.post("/api/orders", json=order_payload())

        response = client.post("/api/orders/cs_test_1/confirm", json={"email": "x@evil.com"})

        assert response.status_code in (404, 405)
        order = client.get("/api/orders/session/cs_test_1").get_json()["order"]
        assert order["status"] == "created"
        assert order["customerEmail"] is None

    def test_webhook_for_unknown_session_is_acknowledged(self, client):
        response = post_completed_event(client, session_id="cs_missing")
        body = response.get_json()

        assert response.status_code == 200
        assert body["handled"] is False

    def test_unknown_order(self, client):
        response = client.get("/api/orders/session/cs_missing")
        assert response.status_code == 404
        assert response.get_json()["success"] is False

    def test_webhook_completes_order(self, client):
        client.post("/api/orders", json=order_payload())
        event = {
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_test_1", "customer_details": {"email": "buyer@gmail.com"}}},
        }
        response = client.post(
            "/api/webhooks/stripe",
            data=json.dumps(event),
            headers={"Stripe-Signature": VALID_SIGNATURE},
            content_type="application/json",
        )

        assert response.get_json()["handled"] is True
        order = client.get("/api/orders/session/cs_test_1").get_json()["order"]
        assert order["status"] == "completed"
        assert order["customerEmail"] == "buyer@gmail.com"

    def test_webhook_bad_signature(self, client):
        response = client.post("/api/webhooks/stripe", data=b"{}", headers={"Stripe-Signature": "forged"})
        assert response.status_code == 400


class TestUploadRoute:
    def test_upload(self, client, object_storage):
        response = client.post(
            "/api/upload-file",
            data={"file": (io.BytesIO(b"\x89PNG data"), "logo.png", "image/png")},
            content_type="multipart/form-data",
        )
        body = response.get_json()

        assert response.status_code == 200
        assert body["url"] == f"s3://test-bucket/{body['key']}"
        assert body["mimetype"] == "image/png"
        assert body["key"] in object_storage.objects

    def test_only_first_file_is_stored(self, client, object_storage):
        response = client.post(
            "/api/upload-file",
            data={"file": [
                (io.BytesIO(b"one"), "one.png", "image/png"),
                (io.BytesIO(b"two"), "two.png", "image/png"),
            ]},
            content_type="multipart/form-data",
        )
        assert response.get_json()["filename"] == "one.png"
        assert len(object_storage.objects) == 1

    def test_missing_file_field(self, client):
        response = client.post("/api/upload-file", data={"other": "x"}, content_type="multipart/form-data")
        assert response.status_code == 400
        assert "form field is named 'file'" in response.get_json()["error"]

    def test_disallowed_type(self, client):
        response = client.post(
            "/api/upload-file",
            data={"file": (io.BytesIO(b"<html>"), "page.html", "text/html")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid file type: text/html"

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json()["success"] is False
