"""
Review Domain Service.

A customer can rate each delivered order once. The restaurant's running
average is updated in the same transaction.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from rest_api.models import Order, Restaurant, Review
from rest_api.services.domain.order_service import OrderNotFoundError

logger = get_logger(__name__)


class ReviewNotAllowedError(Exception):
    pass


class DuplicateReviewError(Exception):
    pass


class ReviewService:
    def __init__(self, db: Session):
        self._db = db

    def list_for_restaurant(self, restaurant_id: int, limit: int = 50) -> list[Review]:
        return list(
            self._db.scalars(
                select(Review)
                .where(Review.restaurant_id == restaurant_id)
                .order_by(Review.created_at.desc(), Review.id.desc())
                .limit(limit)
            )
        )

    def submit(self, customer_id: int, order_id: int, rating: int, review_text: str | None = None) -> Review:
        """
        Raises:
            OrderNotFoundError: unknown order or someone else's.
            ReviewNotAllowedError: order not delivered yet, or bad rating.
            DuplicateReviewError: order already reviewed.
        """
        if not Limits.MIN_RATING <= rating <= Limits.MAX_RATING:
            raise ReviewNotAllowedError(f"Rating must be between {Limits.MIN_RATING} and {Limits.MAX_RATING}")

        order = self._db.get(Order, order_id)
        if order is None or order.customer_id != customer_id:
            raise OrderNotFoundError(f"Order {order_id} not found")
        if order.status != OrderStatus.DELIVERED:
            raise ReviewNotAllowedError("Only delivered orders can be reviewed")

        existing = self._db.scalar(select(Review.id).where(Review.order_id == order_id))
        if existing is not None:
            raise DuplicateReviewError(f"Order {order_id} was already reviewed")

        restaurant = self._db.scalar(
            select(Restaurant).where(Restaurant.id == order.restaurant_id).with_for_update()
        )
        review = Review(
            restaurant_id=order.restaurant_id,
            customer_id=customer_id,
            order_id=order_id,
            rating=rating,
            review_text=review_text,
        )
        self._db.add(review)

        count = restaurant.rating_count or 0
        total = Decimal(restaurant.rating_avg or 0) * count + rating
        restaurant.rating_count = count + 1
        restaurant.rating_avg = (total / restaurant.rating_count).quantize(Decimal("0.01"))

        safe_commit(self._db)
        self._db.refresh(review)
        logger.info("Review submitted", order_id=order_id, restaurant_id=order.restaurant_id, rating=rating)
        return review
