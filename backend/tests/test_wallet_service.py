"""
Tests for the wallet ledger: recharges, approval idempotency and balance health.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from shared.config.constants import (
    BalanceStatus,
    RechargeDecision,
    WalletTxnStatus,
)
from rest_api.services.domain.wallet_service import (
    InsufficientWalletBalanceError,
    InvalidRechargeAmountError,
    RechargeAlreadyResolvedError,
    WalletService,
    WalletTransactionNotFoundError,
    balance_status,
    can_accept_orders,
    items_until_suspension,
)


def _restaurant(credit, floor="-500", tech_fee="10"):
    return SimpleNamespace(
        credit_balance=Decimal(credit),
        min_balance_limit=Decimal(floor),
        tech_fee=Decimal(tech_fee),
    )


class TestRecharge:
    def test_request_is_pending_and_changes_nothing(self, db_session, seed_restaurant):
        txn = WalletService(db_session).request_recharge(Decimal("1000"), restaurant_id=seed_restaurant.id)

        assert txn.status == WalletTxnStatus.PENDING
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("0.00")

    def test_non_positive_amount_rejected(self, db_session, seed_restaurant):
        with pytest.raises(InvalidRechargeAmountError):
            WalletService(db_session).request_recharge(Decimal("0"), restaurant_id=seed_restaurant.id)

    def test_exactly_one_owner_required(self, db_session, seed_restaurant, seed_customer):
        with pytest.raises(ValueError):
            WalletService(db_session).request_recharge(
                Decimal("100"), restaurant_id=seed_restaurant.id, profile_id=seed_customer.id
            )

    def test_approval_credits_restaurant(self, db_session, seed_restaurant, seed_admin):
        service = WalletService(db_session)
        txn = service.request_recharge(Decimal("1000"), restaurant_id=seed_restaurant.id)

        resolved = service.resolve_recharge(txn.id, RechargeDecision.APPROVE, approver_id=seed_admin.id)

        assert resolved.status == WalletTxnStatus.APPROVED
        assert resolved.approved_by == seed_admin.id
        assert resolved.approved_at is not None
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("1000.00")

    def test_second_approval_does_not_double_credit(self, db_session, seed_restaurant, seed_admin):
        service = WalletService(db_session)
        txn = service.request_recharge(Decimal("1000"), restaurant_id=seed_restaurant.id)
        service.resolve_recharge(txn.id, RechargeDecision.APPROVE, approver_id=seed_admin.id)

        with pytest.raises(RechargeAlreadyResolvedError) as exc_info:
            service.resolve_recharge(txn.id, RechargeDecision.APPROVE, approver_id=seed_admin.id)

        assert exc_info.value.status == WalletTxnStatus.APPROVED
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("1000.00")

    def test_rejection_changes_only_status(self, db_session, seed_restaurant, seed_admin):
        service = WalletService(db_session)
        txn = service.request_recharge(Decimal("500"), restaurant_id=seed_restaurant.id)

        resolved = service.resolve_recharge(txn.id, RechargeDecision.REJECT, approver_id=seed_admin.id)

        assert resolved.status == WalletTxnStatus.REJECTED
        assert resolved.approved_by is None
        db_session.refresh(seed_restaurant)
        assert seed_restaurant.credit_balance == Decimal("0.00")

    def test_approval_lifts_suspension(self, db_session, seed_restaurant, seed_admin):
        seed_restaurant.credit_balance = Decimal("-600")
        db_session.commit()
        assert not can_accept_orders(seed_restaurant)

        service = WalletService(db_session)
        txn = service.request_recharge(Decimal("200"), restaurant_id=seed_restaurant.id)
        service.resolve_recharge(txn.id, RechargeDecision.APPROVE, approver_id=seed_admin.id)

        db_session.refresh(seed_restaurant)
        assert can_accept_orders(seed_restaurant)

    def test_profile_recharge_credits_customer_wallet(self, db_session, seed_customer):
        service = WalletService(db_session)
        txn = service.request_recharge(Decimal("250"), profile_id=seed_customer.id)

        service.resolve_recharge(txn.id, RechargeDecision.APPROVE, payment_transaction_id="RECHARGE-1-1")

        db_session.refresh(seed_customer)
        assert seed_customer.wallet_balance == Decimal("250.00")

    def test_fee_deduction_cannot_be_resolved(self, db_session, place_order):
        order = place_order()
        fee_txn = WalletService(db_session).list_for_restaurant(order.restaurant_id)[0]

        with pytest.raises(RechargeAlreadyResolvedError):
            WalletService(db_session).resolve_recharge(fee_txn.id, RechargeDecision.APPROVE)

    def test_unknown_transaction(self, db_session):
        with pytest.raises(WalletTransactionNotFoundError):
            WalletService(db_session).resolve_recharge(9999, RechargeDecision.APPROVE)

    def test_finance_queue_filters_by_status(self, db_session, seed_restaurant, seed_admin):
        service = WalletService(db_session)
        first = service.request_recharge(Decimal("100"), restaurant_id=seed_restaurant.id)
        service.request_recharge(Decimal("200"), restaurant_id=seed_restaurant.id)
        service.resolve_recharge(first.id, RechargeDecision.APPROVE, approver_id=seed_admin.id)

        pending = service.list_recharges(status=WalletTxnStatus.PENDING)

        assert [t.amount for t in pending] == [Decimal("200.00")]
        assert len(service.list_recharges()) == 2


class TestCustomerWallet:
    def test_debit_refused_when_balance_short(self, db_session, seed_customer):
        seed_customer.wallet_balance = Decimal("20")
        db_session.commit()

        with pytest.raises(InsufficientWalletBalanceError):
            WalletService(db_session).debit_customer_wallet(seed_customer.id, Decimal("50"))


class TestBalanceHealth:
    @pytest.mark.parametrize(
        "credit,expected",
        [
            ("100", BalanceStatus.POSITIVE),
            ("0", BalanceStatus.POSITIVE),
            ("-1", BalanceStatus.WARNING),
            ("-500", BalanceStatus.WARNING),
            ("-500.01", BalanceStatus.CRITICAL),
        ],
    )
    def test_balance_status(self, credit, expected):
        assert balance_status(_restaurant(credit)) == expected

    def test_floor_is_inclusive(self):
        assert can_accept_orders(_restaurant("-500"))
        assert not can_accept_orders(_restaurant("-500.01"))

    def test_items_until_suspension(self):
        assert items_until_suspension(_restaurant("0")) == 50
        assert items_until_suspension(_restaurant("-495")) == 0
        assert items_until_suspension(_restaurant("-600")) == 0

    def test_no_tech_fee_means_no_limit(self):
        assert items_until_suspension(_restaurant("0", tech_fee="0")) is None

    def test_summary(self, db_session, seed_restaurant):
        WalletService(db_session).request_recharge(Decimal("300"), restaurant_id=seed_restaurant.id)

        summary = WalletService(db_session).summary(seed_restaurant)

        assert summary["balance_status"] == BalanceStatus.POSITIVE
        assert summary["is_accepting_orders"] is True
        assert summary["items_until_suspension"] == 50
        assert summary["pending_recharges"] == 1
