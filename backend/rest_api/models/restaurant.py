"""
Restaurant-side models: Restaurant, MenuItem, Coupon.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ID_TYPE, MONEY, RATE, AuditMixin, Base

if TYPE_CHECKING:
    from .order import Order


class Restaurant(AuditMixin, Base):
    """
    A partner restaurant.

    credit_balance is the prepaid platform credit. Tech fees are deducted from
    it on every order; once it drops below min_balance_limit the restaurant
    stops accepting new orders until an admin approves a recharge.
    Inherits: is_active (admin on/off switch), created_at, updated_at.
    """

    __tablename__ = "restaurant"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    owner_phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    upi_id: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tech_fee: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("10"), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("40"), nullable=False)
    free_delivery_threshold: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    credit_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    min_balance_limit: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("-500"), nullable=False)

    gst_number: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    is_gst_registered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    gst_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    food_gst_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("5"), nullable=False)

    rating_avg: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"), nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    menu_items: Mapped[list["MenuItem"]] = relationship(back_populates="restaurant")
    coupons: Mapped[list["Coupon"]] = relationship(back_populates="restaurant")
    orders: Mapped[list["Order"]] = relationship(back_populates="restaurant")

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, slug={self.slug}, credit={self.credit_balance})>"

    __table_args__ = (
        CheckConstraint("tech_fee >= 0", name="chk_restaurant_tech_fee_non_negative"),
        CheckConstraint("delivery_fee >= 0", name="chk_restaurant_delivery_fee_non_negative"),
    )


class MenuItem(AuditMixin, Base):
    """
    A dish on a restaurant's menu.

    selling_price is base_price plus the restaurant's tech fee at creation time.
    Loot (clearance) items are sold from a limited stock; mystery items hide
    the dish until delivery.
    """

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    base_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_veg: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    is_clearance: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    stock_remaining: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loot_discount_percentage: Mapped[Optional[Decimal]] = mapped_column(RATE, nullable=True)
    promo_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_mystery: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mystery_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="menu_items")

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, name={self.name}, price={self.selling_price})>"

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="chk_menu_item_base_price_non_negative"),
        CheckConstraint("stock_remaining >= 0", name="chk_menu_item_stock_non_negative"),
        Index("ix_menu_item_restaurant_available", "restaurant_id", "is_available"),
    )


class Coupon(AuditMixin, Base):
    """
    Flat-amount discount code scoped to one restaurant.
    is_active (from AuditMixin) is the owner's on/off toggle.
    """

    __tablename__ = "coupon"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    min_order_value: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="coupons")

    def __repr__(self) -> str:
        return f"<Coupon(id={self.id}, code={self.code}, value={self.discount_value})>"

    __table_args__ = (
        UniqueConstraint("restaurant_id", "code", name="uq_coupon_restaurant_code"),
        CheckConstraint("discount_value >= 0", name="chk_coupon_discount_non_negative"),
    )
