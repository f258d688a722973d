"""
Applies verified gateway callbacks to orders and wallet recharges.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from shared.config.constants import PaymentPurpose, RechargeDecision
from shared.config.logging import payments_logger as logger
from rest_api.models import Order, WalletTransaction
from rest_api.services.domain.order_service import OrderService
from rest_api.services.domain.wallet_service import (
    RechargeAlreadyResolvedError,
    WalletService,
    WalletTransactionNotFoundError,
)
from rest_api.services.payments.phonepe import CallbackResult, parse_transaction_id


class UnknownTransactionError(Exception):
    pass


@dataclass(frozen=True)
class SettlementOutcome:
    purpose: str
    entity_id: int
    succeeded: bool
    already_settled: bool = False
    order: Order | None = None
    wallet_transaction: WalletTransaction | None = None


class SettlementService:
    def __init__(self, db: Session):
        self._orders = OrderService(db)
        self._wallet = WalletService(db)

    def apply(self, result: CallbackResult) -> SettlementOutcome:
        """
        Route a callback by its transaction-id prefix.

        Order callbacks only touch payment fields. Recharge callbacks approve
        or reject the PENDING wallet transaction; a redelivered callback for an
        already resolved recharge leaves balances alone.

        Raises:
            UnknownTransactionError
        """
        ref = parse_transaction_id(result.transaction_id)
        if ref is None:
            raise UnknownTransactionError(f"Unrecognised transaction id {result.transaction_id}")

        if ref.purpose == PaymentPurpose.ORDER:
            order = self._orders.find_by_payment_transaction(result.transaction_id)
            if order is None or order.id != ref.entity_id:
                raise UnknownTransactionError(f"No order for transaction {result.transaction_id}")
            order = self._orders.mark_payment(order.id, result.succeeded, result.transaction_id)
            return SettlementOutcome(ref.purpose, order.id, result.succeeded, order=order)

        decision = RechargeDecision.APPROVE if result.succeeded else RechargeDecision.REJECT
        try:
            txn = self._wallet.resolve_recharge(
                ref.entity_id,
                decision,
                payment_transaction_id=result.transaction_id,
            )
        except WalletTransactionNotFoundError:
            raise UnknownTransactionError(f"No wallet transaction for {result.transaction_id}") from None
        except RechargeAlreadyResolvedError as e:
            logger.info(
                "Recharge callback for resolved transaction ignored",
                txn_id=ref.entity_id,
                status=e.status,
                transaction_id=result.transaction_id,
            )
            txn = self._wallet.get_transaction(ref.entity_id)
            return SettlementOutcome(
                ref.purpose, ref.entity_id, result.succeeded, already_settled=True, wallet_transaction=txn
            )

        return SettlementOutcome(ref.purpose, txn.id, result.succeeded, wallet_transaction=txn)
