"""Integration tests for the storefront and admin order endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import admin_router, storefront_router
from ordering.catalogue.product import Product
from protean import current_domain
from shared.api import register_error_handlers

CUSTOMER = {"X-Customer-Id": "cust-001"}
ADMIN = {"X-Admin-Id": "admin-1"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(storefront_router)
    app.include_router(admin_router)
    register_error_handlers(app)
    return TestClient(app)


def _order_body(product, quantity=3, coupon_code=None):
    body = {
        "items": [{"product_id": str(product.id), "quantity": quantity}],
        "customer": {"full_name": "Somchai Jaidee", "phone": "0812345678"},
    }
    if coupon_code:
        body["coupon_code"] = coupon_code
    return body


def _create(client, product, **kwargs):
    response = client.post("/orders", json=_order_body(product, **kwargs), headers=CUSTOMER)
    assert response.status_code == 201, response.text
    return response.json()


def _upload(client, order_number, content=b"\x89PNG-data", content_type="image/png"):
    return client.post(
        f"/orders/{order_number}/slip",
        files={"file": ("slip.png", content, content_type)},
        headers=CUSTOMER,
    )


class TestCatalogueEndpoints:
    def test_list_products(self, client, make_product):
        make_product(title="Blue helmet")
        make_product(status="inactive")

        response = client.get("/products")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Blue helmet"

    def test_product_by_slug(self, client, make_product):
        make_product(slug="blue-helmet")
        assert client.get("/products/blue-helmet").json()["slug"] == "blue-helmet"

    def test_unknown_slug(self, client):
        response = client.get("/products/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"ok": False, "code": "PRODUCT_NOT_FOUND", "error": "Product not found"}


class TestCouponEndpoint:
    def test_valid(self, client, make_coupon):
        make_coupon(code="SAVE10")
        data = client.post("/coupons/validate", json={"code": "SAVE10", "subtotal": 300}).json()
        assert data["valid"] is True
        assert data["discount_amount"] == 30.0
        assert data["total_after_discount"] == 270.0

    def test_unknown_code_is_not_an_error(self, client):
        response = client.post("/coupons/validate", json={"code": "NOPE", "subtotal": 300})
        assert response.status_code == 200
        assert response.json()["valid"] is False

    def test_malformed_rule_hides_detail(self, client, make_coupon):
        make_coupon(code="BROKEN", discount_type="weird")
        response = client.post("/coupons/validate", json={"code": "BROKEN", "subtotal": 300})
        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "COUPON_CONFIG_INVALID"
        assert "BROKEN" not in body["error"]


class TestOrderEndpoints:
    def test_create_order(self, client, stored_product):
        data = _create(client, stored_product)

        assert data["payable_amount"] == 300.0
        assert data["payment_uri"] == "https://promptpay.io/0812345678/300"
        assert current_domain.repository_for(Product).get(str(stored_product.id)).stock == 2

    def test_create_requires_identity(self, client, stored_product):
        response = client.post("/orders", json=_order_body(stored_product))
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_insufficient_stock(self, client, make_product):
        product = make_product(stock=2)
        response = client.post("/orders", json=_order_body(product, quantity=3), headers=CUSTOMER)
        assert response.status_code == 409
        assert response.json()["code"] == "INSUFFICIENT_STOCK"

    def test_invalid_coupon_is_bad_request(self, client, stored_product):
        response = client.post("/orders", json=_order_body(stored_product, coupon_code="NOPE"), headers=CUSTOMER)
        assert response.status_code == 400
        assert response.json()["code"] == "COUPON_INVALID"

    def test_my_orders(self, client, stored_product):
        created = _create(client, stored_product, quantity=1)

        listing = client.get("/orders", headers=CUSTOMER).json()["orders"]
        assert [o["order_number"] for o in listing] == [created["order_number"]]

        detail = client.get(f"/orders/{created['order_number']}", headers=CUSTOMER).json()
        assert detail["status"] == "pending_payment"

        other = client.get(f"/orders/{created['order_number']}", headers={"X-Customer-Id": "cust-002"})
        assert other.status_code == 404

    def test_cancel(self, client, stored_product):
        created = _create(client, stored_product)

        response = client.post(f"/orders/{created['order_number']}/cancel", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert current_domain.repository_for(Product).get(str(stored_product.id)).stock == 5


class TestSlipEndpoints:
    def test_upload_slip(self, client, stored_product):
        created = _create(client, stored_product)

        response = _upload(client, created["order_number"])

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending_review"
        assert data["payment_status"] == "pending_verify"
        assert data["slip_id"]

    def test_rejects_unsupported_type(self, client, stored_product):
        created = _create(client, stored_product)
        response = _upload(client, created["order_number"], content=b"GIF89a", content_type="image/gif")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_admin_review_cycle(self, client, stored_product):
        created = _create(client, stored_product)
        order_number = created["order_number"]
        slip_id = _upload(client, order_number).json()["slip_id"]

        desk = client.get("/admin/orders", params={"status": "pending_review"}, headers=ADMIN).json()["orders"]
        assert desk[0]["latest_pending_slip_id"] == slip_id

        rejected = client.post(
            f"/admin/orders/{order_number}/review",
            json={"slip_id": slip_id, "action": "reject", "note": "Wrong amount"},
            headers=ADMIN,
        )
        assert rejected.json()["status"] == "pending_payment"

        again = client.post(
            f"/admin/orders/{order_number}/review",
            json={"slip_id": slip_id, "action": "approve"},
            headers=ADMIN,
        )
        assert again.status_code == 409
        assert again.json()["code"] == "SLIP_ALREADY_REVIEWED"

        new_slip = _upload(client, order_number).json()["slip_id"]
        approved = client.post(
            f"/admin/orders/{order_number}/review",
            json={"slip_id": new_slip, "action": "approve"},
            headers=ADMIN,
        )
        assert approved.json() == {"order_number": order_number, "status": "paid", "payment_status": "paid"}

        detail = client.get(f"/admin/orders/{order_number}", headers=ADMIN).json()
        assert [s["status"] for s in detail["slips"]] == ["rejected", "approved"]

    def test_review_requires_admin(self, client):
        response = client.post("/admin/orders/ORD-1/review", json={"slip_id": "s", "action": "approve"})
        assert response.status_code == 401


class TestAdminFulfillment:
    def _paid(self, client, product):
        order_number = _create(client, product)["order_number"]
        slip_id = _upload(client, order_number).json()["slip_id"]
        client.post(
            f"/admin/orders/{order_number}/review",
            json={"slip_id": slip_id, "action": "approve"},
            headers=ADMIN,
        )
        return order_number

    def test_stages(self, client, stored_product):
        order_number = self._paid(client, stored_product)
        for stage in ("processing", "shipped", "completed"):
            response = client.put(f"/admin/orders/{order_number}/{stage}", headers=ADMIN)
            assert response.status_code == 200
            assert response.json()["status"] == stage

    def test_skipping_a_stage_is_a_conflict(self, client, stored_product):
        order_number = self._paid(client, stored_product)
        response = client.put(f"/admin/orders/{order_number}/shipped", headers=ADMIN)
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE_TRANSITION"

    def test_unknown_stage(self, client, stored_product):
        order_number = self._paid(client, stored_product)
        assert client.put(f"/admin/orders/{order_number}/teleported", headers=ADMIN).status_code == 404


class TestPaymentSettingsEndpoints:
    def test_read_environment_settings(self, client):
        data = client.get("/admin/settings/payment", headers=ADMIN).json()
        assert data == {
            "promptpay_id": "0812345678",
            "promptpay_base_url": "https://promptpay.io",
            "source": "environment",
        }

    def test_update(self, client, stored_product):
        response = client.put(
            "/admin/settings/payment",
            json={"promptpay_id": "0899999999"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["source"] == "database"

        created = _create(client, stored_product, quantity=1)
        assert created["payment_uri"] == "https://promptpay.io/0899999999/100"

    def test_invalid_base_url(self, client):
        response = client.put(
            "/admin/settings/payment",
            json={"promptpay_id": "0899999999", "promptpay_base_url": "promptpay.io"},
            headers=ADMIN,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"
