"""
Review model.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ID_TYPE, AuditMixin, Base


class Review(AuditMixin, Base):
    """One rating per delivered order."""

    __tablename__ = "review"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(ID_TYPE, ForeignKey("profile.id"), nullable=False)
    order_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("app_order.id"), nullable=False, unique=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="chk_review_rating_range"),
    )
