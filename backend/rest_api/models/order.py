"""
Order model.

All monetary fields are frozen when the order is placed; later changes to
menu prices, coupons or restaurant settings never rewrite them.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ID_TYPE, JSON_TYPE, MONEY, AuditMixin, Base

if TYPE_CHECKING:
    from .restaurant import Restaurant


class Order(AuditMixin, Base):
    """
    A customer order.

    Two status columns:
    - status: PENDING → CONFIRMED → COOKING → READY → DELIVERED (restaurant)
    - delivery_status: SEARCHING_FOR_RIDER → RIDER_ASSIGNED → OUT_FOR_DELIVERY
      → DELIVERED (rider), NULL until the restaurant requests a rider

    items is a snapshot: [{menu_item_id, name, price, quantity, is_mystery}].
    """

    __tablename__ = "app_order"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    short_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    restaurant_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("profile.id"), nullable=False, index=True
    )
    rider_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("profile.id"), nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(Text, default="PENDING", nullable=False, index=True)
    delivery_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)

    payment_method: Mapped[str] = mapped_column(Text, nullable=False)
    payment_status: Mapped[str] = mapped_column(Text, default="PENDING", nullable=False)
    payment_transaction_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON_TYPE, nullable=False)
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    gps_coordinates: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    voice_note_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    customer_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Frozen pricing
    coupon_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    cart_subtotal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    delivery_fee_charged: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    subtotal_before_gst: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    food_gst_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    delivery_fee_before_gst: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    delivery_gst_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_gst_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    cgst_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    sgst_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    wallet_deduction: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    amount_to_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    net_profit: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="orders")

    @property
    def item_units(self) -> int:
        return sum(int(item.get("quantity", 0)) for item in self.items or [])

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, short_id={self.short_id}, status={self.status}, delivery={self.delivery_status})>"

    __table_args__ = (
        CheckConstraint("discount_amount >= 0", name="chk_order_discount_non_negative"),
        CheckConstraint("discount_amount <= cart_subtotal", name="chk_order_discount_within_cart"),
        CheckConstraint("cgst_amount = sgst_amount", name="chk_order_gst_split_symmetric"),
        Index("ix_order_restaurant_status", "restaurant_id", "status"),
        Index("ix_order_delivery_rider", "delivery_status", "rider_id"),
    )
