"""
Wallet ledger: every movement of restaurant credit or customer wallet money.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, MONEY, AuditMixin, Base


class WalletTransaction(AuditMixin, Base):
    """
    A ledger entry against exactly one owner: a restaurant (credit balance)
    or a profile (customer wallet).

    - FEE_DEDUCTION: negative amount, recorded APPROVED at order placement.
    - WALLET_RECHARGE: positive amount, PENDING until an admin (manual proof)
      or the payment gateway resolves it. APPROVED and REJECTED are terminal.
    """

    __tablename__ = "wallet_transaction"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("restaurant.id"), nullable=True, index=True
    )
    profile_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("profile.id"), nullable=True, index=True
    )
    order_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("app_order.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="PENDING", nullable=False, index=True)
    proof_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_transaction_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<WalletTransaction(id={self.id}, type={self.type}, amount={self.amount}, status={self.status})>"

    __table_args__ = (
        CheckConstraint(
            "(restaurant_id IS NULL) <> (profile_id IS NULL)",
            name="chk_wallet_txn_single_owner",
        ),
        Index("ix_wallet_txn_type_status", "type", "status"),
    )
