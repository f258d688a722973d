"""
Wallet Domain Service.

Ledger rules for restaurant credit and customer wallets:
- Fee deductions are always recorded, even past the credit floor; the floor
  only blocks new orders.
- Recharges start PENDING and change no balance until resolved.
- Resolution is a one-way PENDING → APPROVED/REJECTED step guarded by a row
  lock plus a status-conditional UPDATE, so a second resolution can never
  credit the balance again.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from shared.config.constants import (
    BalanceStatus,
    RechargeDecision,
    WalletTxnStatus,
    WalletTxnType,
)
from shared.config.logging import audit_ledger_event, get_logger
from shared.infrastructure.db import safe_commit
from rest_api.models import Profile, Restaurant, WalletTransaction
from rest_api.services.domain.pricing import ZERO, round_money, to_decimal

logger = get_logger(__name__)


class WalletTransactionNotFoundError(Exception):
    pass


class InvalidRechargeAmountError(Exception):
    pass


class RechargeAlreadyResolvedError(Exception):
    """The transaction is not PENDING (or not a recharge)."""

    def __init__(self, txn_id: int, status: str):
        self.txn_id = txn_id
        self.status = status
        super().__init__(f"Wallet transaction {txn_id} is already {status}")


class InsufficientWalletBalanceError(Exception):
    pass


def can_accept_orders(restaurant: Restaurant) -> bool:
    return to_decimal(restaurant.credit_balance) >= to_decimal(restaurant.min_balance_limit)


def balance_status(restaurant: Restaurant) -> str:
    """positive at or above zero, warning down to the floor, critical below it."""
    balance = to_decimal(restaurant.credit_balance)
    if balance >= 0:
        return BalanceStatus.POSITIVE
    if balance >= to_decimal(restaurant.min_balance_limit):
        return BalanceStatus.WARNING
    return BalanceStatus.CRITICAL


def items_until_suspension(restaurant: Restaurant) -> int | None:
    """
    How many more item units can be sold before the balance drops below the
    floor. None when the restaurant pays no tech fee.
    """
    fee = to_decimal(restaurant.tech_fee)
    if fee <= 0:
        return None
    headroom = to_decimal(restaurant.credit_balance) - to_decimal(restaurant.min_balance_limit)
    if headroom < 0:
        return 0
    return int(headroom // fee)


class WalletService:
    """
    Domain service for the wallet ledger.
    """

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Deductions (part of the caller's unit of work, no commit here)
    # =========================================================================

    def record_fee_deduction(
        self,
        restaurant: Restaurant,
        amount: Any,
        order_id: int | None = None,
    ) -> WalletTransaction:
        """
        Deduct platform fees from a restaurant's credit balance.
        """
        fee = round_money(amount)
        self._db.execute(
            update(Restaurant)
            .where(Restaurant.id == restaurant.id)
            .values(credit_balance=Restaurant.credit_balance - fee)
        )
        txn = WalletTransaction(
            restaurant_id=restaurant.id,
            order_id=order_id,
            amount=-fee,
            type=WalletTxnType.FEE_DEDUCTION,
            status=WalletTxnStatus.APPROVED,
            notes=f"Tech fee for order {order_id}" if order_id else "Tech fee",
        )
        self._db.add(txn)
        self._db.flush()
        audit_ledger_event("FEE_DEDUCTION", txn.id, -fee, restaurant_id=restaurant.id, order_id=order_id)
        return txn

    def debit_customer_wallet(self, profile_id: int, amount: Any, order_id: int | None = None) -> None:
        """
        Take `amount` from a customer's wallet.

        Raises:
            InsufficientWalletBalanceError: balance changed since the bill was computed.
        """
        value = round_money(amount)
        if value <= 0:
            return
        result = self._db.execute(
            update(Profile)
            .where(Profile.id == profile_id, Profile.wallet_balance >= value)
            .values(wallet_balance=Profile.wallet_balance - value)
        )
        if result.rowcount != 1:
            raise InsufficientWalletBalanceError(f"Wallet balance below ₹{value}")
        audit_ledger_event("WALLET_DEBIT", None, -value, profile_id=profile_id, order_id=order_id)

    # =========================================================================
    # Recharges
    # =========================================================================

    def request_recharge(
        self,
        amount: Any,
        restaurant_id: int | None = None,
        profile_id: int | None = None,
        proof_image_url: str | None = None,
        notes: str | None = None,
    ) -> WalletTransaction:
        """
        Create a PENDING recharge for a restaurant (manual proof reviewed by an
        admin) or a profile (settled by the payment gateway).
        """
        if (restaurant_id is None) == (profile_id is None):
            raise ValueError("Exactly one of restaurant_id or profile_id is required")

        value = round_money(amount)
        if value <= 0:
            raise InvalidRechargeAmountError("Recharge amount must be positive")

        txn = WalletTransaction(
            restaurant_id=restaurant_id,
            profile_id=profile_id,
            amount=value,
            type=WalletTxnType.WALLET_RECHARGE,
            status=WalletTxnStatus.PENDING,
            proof_image_url=proof_image_url,
            notes=notes,
        )
        self._db.add(txn)
        safe_commit(self._db)
        self._db.refresh(txn)

        logger.info(
            "Recharge requested",
            txn_id=txn.id,
            restaurant_id=restaurant_id,
            profile_id=profile_id,
            amount=str(value),
        )
        return txn

    def resolve_recharge(
        self,
        txn_id: int,
        decision: str,
        approver_id: int | None = None,
        payment_transaction_id: str | None = None,
    ) -> WalletTransaction:
        """
        Approve or reject a PENDING recharge.

        Approval credits the owner's balance and stamps approver and time.
        Rejection only changes status.

        Raises:
            WalletTransactionNotFoundError: no such transaction.
            RechargeAlreadyResolvedError: not a PENDING recharge.
        """
        txn = self._db.scalar(
            select(WalletTransaction).where(WalletTransaction.id == txn_id).with_for_update()
        )
        if txn is None:
            raise WalletTransactionNotFoundError(f"Wallet transaction {txn_id} not found")
        if txn.type != WalletTxnType.WALLET_RECHARGE or txn.status != WalletTxnStatus.PENDING:
            raise RechargeAlreadyResolvedError(txn.id, txn.status)

        approve = decision == RechargeDecision.APPROVE
        new_status = WalletTxnStatus.APPROVED if approve else WalletTxnStatus.REJECTED

        values: dict[str, Any] = {"status": new_status}
        if approve:
            values["approved_by"] = approver_id
            values["approved_at"] = datetime.now(timezone.utc)
        if payment_transaction_id:
            values["payment_transaction_id"] = payment_transaction_id

        result = self._db.execute(
            update(WalletTransaction)
            .where(
                WalletTransaction.id == txn.id,
                WalletTransaction.status == WalletTxnStatus.PENDING,
            )
            .values(**values)
        )
        if result.rowcount != 1:
            self._db.rollback()
            raise RechargeAlreadyResolvedError(txn_id, "resolved")

        amount = to_decimal(txn.amount)
        if approve and txn.restaurant_id is not None:
            self._db.execute(
                update(Restaurant)
                .where(Restaurant.id == txn.restaurant_id)
                .values(credit_balance=Restaurant.credit_balance + amount)
            )
        elif approve and txn.profile_id is not None:
            self._db.execute(
                update(Profile)
                .where(Profile.id == txn.profile_id)
                .values(wallet_balance=Profile.wallet_balance + amount)
            )

        safe_commit(self._db)
        self._db.refresh(txn)

        audit_ledger_event(
            "RECHARGE_APPROVED" if approve else "RECHARGE_REJECTED",
            txn.id,
            amount if approve else ZERO,
            restaurant_id=txn.restaurant_id,
            profile_id=txn.profile_id,
            actor_id=approver_id,
        )
        return txn

    # =========================================================================
    # Queries
    # =========================================================================

    def get_transaction(self, txn_id: int) -> WalletTransaction:
        txn = self._db.get(WalletTransaction, txn_id)
        if txn is None:
            raise WalletTransactionNotFoundError(f"Wallet transaction {txn_id} not found")
        return txn

    def list_for_restaurant(self, restaurant_id: int, limit: int = 50) -> list[WalletTransaction]:
        return list(
            self._db.scalars(
                select(WalletTransaction)
                .where(WalletTransaction.restaurant_id == restaurant_id)
                .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
                .limit(limit)
            )
        )

    def list_recharges(self, status: str | None = None, limit: int = 100) -> list[WalletTransaction]:
        """Admin finance queue: restaurant recharges, newest first."""
        query = select(WalletTransaction).where(
            WalletTransaction.type == WalletTxnType.WALLET_RECHARGE,
            WalletTransaction.restaurant_id.is_not(None),
        )
        if status:
            query = query.where(WalletTransaction.status == status)
        return list(
            self._db.scalars(
                query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc()).limit(limit)
            )
        )

    def summary(self, restaurant: Restaurant) -> dict[str, Any]:
        return {
            "restaurant_id": restaurant.id,
            "credit_balance": round_money(restaurant.credit_balance),
            "min_balance_limit": round_money(restaurant.min_balance_limit),
            "balance_status": balance_status(restaurant),
            "is_accepting_orders": restaurant.is_active and can_accept_orders(restaurant),
            "items_until_suspension": items_until_suspension(restaurant),
            "pending_recharges": self._db.scalar(
                select(func.count(WalletTransaction.id)).where(
                    WalletTransaction.restaurant_id == restaurant.id,
                    WalletTransaction.type == WalletTxnType.WALLET_RECHARGE,
                    WalletTransaction.status == WalletTxnStatus.PENDING,
                )
            )
            or 0,
        }
