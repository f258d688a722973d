"""
Tests for the customer API: quotes, checkout, tracking, reviews and wallet.
"""

from decimal import Decimal

import pytest

from shared.config.constants import OrderStatus, PaymentMethod
from rest_api.services.domain import OrderService


def _cart(seed_menu, **quantities):
    return [{"menu_item_id": seed_menu[key].id, "quantity": qty} for key, qty in quantities.items()]


def _order_body(seed_restaurant, seed_menu, payment_method=PaymentMethod.COD_CASH, **extra):
    body = {
        "restaurant_id": seed_restaurant.id,
        "items": _cart(seed_menu, paneer=2),
        "delivery_address": "12 MG Road, Bengaluru",
        "payment_method": payment_method,
        "gps_coordinates": "12.9716, 77.5946",
    }
    body.update(extra)
    return body


@pytest.fixture
def delivered_order(db_session, place_order, seed_restaurant):
    order = place_order()
    service = OrderService(db_session)
    while order.status != OrderStatus.DELIVERED:
        order = service.advance_status(order.id, seed_restaurant.id)
    return order


class TestQuote:
    def test_bill_breakdown(self, client, customer_headers, seed_restaurant, seed_menu, seed_coupon):
        res = client.post(
            "/api/customer/quote",
            json={"restaurant_id": seed_restaurant.id, "items": _cart(seed_menu, paneer=2), "coupon_code": "save50"},
            headers=customer_headers,
        )

        assert res.status_code == 200
        data = res.json()
        assert data["coupon_code"] == "SAVE50"
        bill = data["bill"]
        assert Decimal(bill["cart_subtotal"]) == Decimal("500")
        assert Decimal(bill["discount_amount"]) == Decimal("50")
        assert Decimal(bill["delivery_fee"]) == Decimal("40")
        assert Decimal(bill["grand_total"]) == Decimal("490")
        assert Decimal(bill["cgst_amount"]) == Decimal(bill["sgst_amount"])

    def test_requires_token(self, client, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/quote",
            json={"restaurant_id": seed_restaurant.id, "items": _cart(seed_menu, paneer=1)},
        )

        assert res.status_code == 401

    def test_riders_cannot_quote(self, client, rider_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/quote",
            json={"restaurant_id": seed_restaurant.id, "items": _cart(seed_menu, paneer=1)},
            headers=rider_headers,
        )

        assert res.status_code == 403

    def test_coupon_below_minimum_is_400(self, client, customer_headers, seed_restaurant, seed_menu, seed_coupon):
        res = client.post(
            "/api/customer/quote",
            json={"restaurant_id": seed_restaurant.id, "items": _cart(seed_menu, dal=1), "coupon_code": "SAVE50"},
            headers=customer_headers,
        )

        assert res.status_code == 400
        assert "200" in res.json()["detail"]

    def test_zero_quantity_rejected(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/quote",
            json={"restaurant_id": seed_restaurant.id, "items": _cart(seed_menu, paneer=0)},
            headers=customer_headers,
        )

        assert res.status_code == 422


class TestValidateCoupon:
    def test_valid(self, client, customer_headers, seed_coupon):
        res = client.post(
            "/api/customer/coupons/validate",
            json={"restaurant_id": seed_coupon.restaurant_id, "code": "SAVE50", "cart_subtotal": "300"},
            headers=customer_headers,
        )

        assert res.status_code == 200
        data = res.json()
        assert data["valid"] is True
        assert Decimal(data["discount"]) == Decimal("50")

    def test_rejection_reported_in_body(self, client, customer_headers, seed_coupon):
        res = client.post(
            "/api/customer/coupons/validate",
            json={"restaurant_id": seed_coupon.restaurant_id, "code": "SAVE50", "cart_subtotal": "150"},
            headers=customer_headers,
        )

        assert res.status_code == 200
        data = res.json()
        assert data["valid"] is False
        assert data["reason"] == "BELOW_MINIMUM"
        assert Decimal(data["min_order_value"]) == Decimal("200")


class TestPlaceOrder:
    def test_cash_order_created(self, client, customer_headers, seed_restaurant, seed_menu, published_events):
        res = client.post(
            "/api/customer/orders", json=_order_body(seed_restaurant, seed_menu), headers=customer_headers
        )

        assert res.status_code == 201
        data = res.json()
        order = data["order"]
        assert order["short_id"].startswith("ANT-")
        assert order["status"] == "PENDING"
        assert order["delivery_status"] is None
        assert order["gps_coordinates"] == "12.9716,77.5946"
        assert Decimal(order["total_amount"]) == Decimal("540")
        assert data["payment_required"] is False
        assert data["upi_link"] is None

        kind, payload = published_events.call_args.args
        assert kind == "order"
        assert payload["event_type"] == "ORDER_CREATED"
        assert payload["order_id"] == order["id"]

    def test_prepaid_order_needs_payment(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/orders",
            json=_order_body(seed_restaurant, seed_menu, payment_method=PaymentMethod.PREPAID_UPI),
            headers=customer_headers,
        )

        assert res.status_code == 201
        assert res.json()["payment_required"] is True

    def test_upi_scan_order_gets_upi_link(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/orders",
            json=_order_body(seed_restaurant, seed_menu, payment_method=PaymentMethod.COD_UPI_SCAN),
            headers=customer_headers,
        )

        link = res.json()["upi_link"]
        assert link.startswith("upi://pay?pa=spiceroute%40upi")
        assert "am=540.00" in link

    def test_suspended_restaurant_is_409(
        self, client, db_session, customer_headers, seed_restaurant, seed_menu, published_events
    ):
        seed_restaurant.credit_balance = Decimal("-600")
        db_session.commit()

        res = client.post(
            "/api/customer/orders", json=_order_body(seed_restaurant, seed_menu), headers=customer_headers
        )

        assert res.status_code == 409
        assert "temporarily unavailable" in res.json()["detail"]
        published_events.assert_not_called()

    def test_crossing_floor_announces_suspension(
        self, client, db_session, customer_headers, seed_restaurant, seed_menu, published_events
    ):
        seed_restaurant.credit_balance = Decimal("-495")
        db_session.commit()

        res = client.post(
            "/api/customer/orders", json=_order_body(seed_restaurant, seed_menu), headers=customer_headers
        )

        assert res.status_code == 201
        kinds = [call.args[0] for call in published_events.call_args_list]
        assert kinds == ["order", "suspension"]

    def test_bad_gps_rejected(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/orders",
            json=_order_body(seed_restaurant, seed_menu, gps_coordinates="north pole"),
            headers=customer_headers,
        )

        assert res.status_code == 400

    def test_internal_voice_note_url_rejected(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/orders",
            json=_order_body(seed_restaurant, seed_menu, voice_note_url="http://169.254.169.254/x"),
            headers=customer_headers,
        )

        assert res.status_code == 400

    def test_unknown_payment_method_is_422(self, client, customer_headers, seed_restaurant, seed_menu):
        res = client.post(
            "/api/customer/orders",
            json=_order_body(seed_restaurant, seed_menu, payment_method="BARTER"),
            headers=customer_headers,
        )

        assert res.status_code == 422


class TestMyOrders:
    def test_list_and_get(self, client, customer_headers, place_order):
        order = place_order()

        listed = client.get("/api/customer/orders", headers=customer_headers)
        single = client.get(f"/api/customer/orders/{order.id}", headers=customer_headers)

        assert [o["id"] for o in listed.json()] == [order.id]
        assert single.status_code == 200
        assert single.json()["short_id"] == order.short_id

    def test_other_customers_order_is_404(self, client, other_customer_headers, place_order):
        order = place_order()

        res = client.get(f"/api/customer/orders/{order.id}", headers=other_customer_headers)

        assert res.status_code == 404


class TestReviews:
    def test_review_delivered_order(self, client, db_session, customer_headers, delivered_order, seed_restaurant):
        res = client.post(
            "/api/customer/reviews",
            json={"order_id": delivered_order.id, "rating": 4, "review_text": "Great paneer"},
            headers=customer_headers,
        )

        assert res.status_code == 201
        assert res.json()["rating"] == 4
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.rating_count == 1
        assert seed_restaurant.rating_avg == Decimal("4.00")

    def test_second_review_is_409(self, client, customer_headers, delivered_order):
        body = {"order_id": delivered_order.id, "rating": 5}
        client.post("/api/customer/reviews", json=body, headers=customer_headers)

        res = client.post("/api/customer/reviews", json=body, headers=customer_headers)

        assert res.status_code == 409

    def test_undelivered_order_cannot_be_reviewed(self, client, customer_headers, place_order):
        order = place_order()

        res = client.post(
            "/api/customer/reviews", json={"order_id": order.id, "rating": 5}, headers=customer_headers
        )

        assert res.status_code == 400

    def test_rating_out_of_range_is_422(self, client, customer_headers, delivered_order):
        res = client.post(
            "/api/customer/reviews", json={"order_id": delivered_order.id, "rating": 6}, headers=customer_headers
        )

        assert res.status_code == 422


class TestWallet:
    def test_balance(self, client, db_session, customer_headers, seed_customer):
        seed_customer.wallet_balance = Decimal("125.50")
        db_session.commit()

        res = client.get("/api/customer/wallet", headers=customer_headers)

        assert res.status_code == 200
        assert Decimal(res.json()["wallet_balance"]) == Decimal("125.50")
