"""
Profile: every authenticated person (customer, restaurant owner, rider, admin).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, MONEY, AuditMixin, Base


class Profile(AuditMixin, Base):
    """
    User profile keyed by phone number.

    wallet_balance is the customer's prepaid wallet; rider_wallet_balance
    holds rider bonuses/adjustments credited outside per-delivery payouts.
    """

    __tablename__ = "profile"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    role: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    wallet_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    rider_wallet_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="chk_profile_wallet_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"
