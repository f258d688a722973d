"""
Tests for the admin API: onboarding, the on/off switch, recharge approvals and stats.
"""

from decimal import Decimal

import pytest

from rest_api.models import Profile
from rest_api.services.domain import WalletService
from shared.config.constants import Roles


@pytest.fixture
def pending_recharge(db_session, seed_restaurant):
    return WalletService(db_session).request_recharge(
        amount=Decimal("1000"),
        restaurant_id=seed_restaurant.id,
        proof_image_url="https://cdn.test/proof.jpg",
    )


class TestOnboarding:
    def test_onboard_with_platform_defaults(self, client, db_session, admin_headers):
        res = client.post(
            "/api/admin/restaurants",
            json={"name": "Dosa Corner", "owner_phone": "98765 43210", "upi_id": "dosa@upi"},
            headers=admin_headers,
        )

        assert res.status_code == 201
        data = res.json()
        assert data["slug"] == "dosa-corner"
        assert data["owner_phone"] == "+919876543210"
        assert Decimal(data["tech_fee"]) == Decimal("10")
        assert Decimal(data["delivery_fee"]) == Decimal("40")
        assert Decimal(data["credit_balance"]) == Decimal("0")
        assert Decimal(data["min_balance_limit"]) == Decimal("-500")
        assert data["is_accepting_orders"] is True

        owner = db_session.query(Profile).filter_by(phone="+919876543210").one()
        assert owner.role == Roles.RESTAURANT

    def test_generated_slug_avoids_collision(self, client, admin_headers, seed_restaurant):
        res = client.post(
            "/api/admin/restaurants",
            json={"name": "Spice Route", "owner_phone": "9876543211", "upi_id": "sr2@upi"},
            headers=admin_headers,
        )

        assert res.json()["slug"] == "spice-route-2"

    def test_explicit_duplicate_slug_rejected(self, client, admin_headers, seed_restaurant):
        res = client.post(
            "/api/admin/restaurants",
            json={"name": "Copycat", "owner_phone": "9876543211", "upi_id": "cc@upi", "slug": "spice-route"},
            headers=admin_headers,
        )

        assert res.status_code == 400

    def test_invalid_phone_rejected(self, client, admin_headers):
        res = client.post(
            "/api/admin/restaurants",
            json={"name": "Nowhere", "owner_phone": "12345678901234", "upi_id": "n@upi"},
            headers=admin_headers,
        )

        assert res.status_code == 400

    def test_owner_cannot_onboard(self, client, owner_headers):
        res = client.post(
            "/api/admin/restaurants",
            json={"name": "Dosa Corner", "owner_phone": "9876543210", "upi_id": "dosa@upi"},
            headers=owner_headers,
        )

        assert res.status_code == 403


class TestSwitch:
    def test_switched_off_restaurant_hidden_from_public(self, client, admin_headers, seed_restaurant):
        res = client.patch(
            f"/api/admin/restaurants/{seed_restaurant.id}", json={"is_active": False}, headers=admin_headers
        )
        public = client.get("/api/public/restaurants")
        listed = client.get("/api/admin/restaurants", headers=admin_headers)

        assert res.status_code == 200
        assert res.json()["is_active"] is False
        assert res.json()["is_accepting_orders"] is False
        assert public.json() == []
        assert [r["id"] for r in listed.json()] == [seed_restaurant.id]

    def test_unknown_restaurant_is_404(self, client, admin_headers):
        res = client.patch("/api/admin/restaurants/9999", json={"is_active": False}, headers=admin_headers)

        assert res.status_code == 404


class TestRechargeQueue:
    def test_pending_queue(self, client, admin_headers, pending_recharge):
        res = client.get("/api/admin/finance/recharges", headers=admin_headers)

        (txn,) = res.json()
        assert txn["id"] == pending_recharge.id
        assert txn["status"] == "PENDING"
        assert txn["proof_image_url"] == "https://cdn.test/proof.jpg"

    def test_unknown_status_filter_rejected(self, client, admin_headers):
        res = client.get("/api/admin/finance/recharges", headers=admin_headers, params={"status": "DONE"})

        assert res.status_code == 400

    def test_approve_credits_balance_once(
        self, client, db_session, admin_headers, seed_admin, seed_restaurant, pending_recharge, published_events
    ):
        url = f"/api/admin/finance/recharges/{pending_recharge.id}/resolve"

        approved = client.post(url, json={"decision": "APPROVE"}, headers=admin_headers)
        again = client.post(url, json={"decision": "APPROVE"}, headers=admin_headers)

        assert approved.status_code == 200
        assert approved.json()["status"] == "APPROVED"
        assert approved.json()["approved_by"] == seed_admin.id
        assert again.status_code == 400
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("1000.00")

        assert published_events.call_count == 1
        kind, payload = published_events.call_args.args
        assert kind == "wallet"
        assert payload["event_type"] == "WALLET_RECHARGE_RESOLVED"
        assert payload["actor_id"] == seed_admin.id

    def test_reject_leaves_balance(self, client, db_session, admin_headers, seed_restaurant, pending_recharge):
        res = client.post(
            f"/api/admin/finance/recharges/{pending_recharge.id}/resolve",
            json={"decision": "REJECT"},
            headers=admin_headers,
        )

        assert res.json()["status"] == "REJECTED"
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("0.00")

    def test_unknown_decision_is_422(self, client, admin_headers, pending_recharge):
        res = client.post(
            f"/api/admin/finance/recharges/{pending_recharge.id}/resolve",
            json={"decision": "MAYBE"},
            headers=admin_headers,
        )

        assert res.status_code == 422

    def test_unknown_transaction_is_404(self, client, admin_headers):
        res = client.post(
            "/api/admin/finance/recharges/9999/resolve", json={"decision": "APPROVE"}, headers=admin_headers
        )

        assert res.status_code == 404

    def test_owner_cannot_approve_own_recharge(self, client, owner_headers, pending_recharge):
        res = client.post(
            f"/api/admin/finance/recharges/{pending_recharge.id}/resolve",
            json={"decision": "APPROVE"},
            headers=owner_headers,
        )

        assert res.status_code == 403


class TestStats:
    def test_platform_revenue_is_net_profit(self, client, admin_headers, place_order):
        place_order(paneer=2)

        res = client.get("/api/admin/stats", headers=admin_headers)

        data = res.json()
        assert data["order_count"] == 1
        assert Decimal(data["platform_revenue"]) == Decimal("30")
        assert Decimal(data["gross_order_value"]) == Decimal("540")
        assert data["restaurant_count"] == 1
        assert data["suspended_restaurants"] == 0

    def test_restaurant_stats(self, client, admin_headers, place_order, seed_restaurant):
        place_order(paneer=2)

        res = client.get(f"/api/admin/restaurants/{seed_restaurant.id}/stats", headers=admin_headers)

        assert Decimal(res.json()["total_sales"]) == Decimal("510")
