"""
Customer order history, tracking and reviews.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits, Roles
from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import ConflictError, OrderNotFoundError, ValidationError
from shared.utils.schemas import OrderOutput, ReviewOutput, ReviewRequest
from shared.utils.validators import sanitize_text
from rest_api.routers._common import order_output
from rest_api.services.domain import OrderService, ReviewService
from rest_api.services.domain.order_service import OrderNotFoundError as DomainOrderNotFound
from rest_api.services.domain.review_service import DuplicateReviewError, ReviewNotAllowedError


router = APIRouter(prefix="/api/customer", tags=["customer"])


@router.get("/orders", response_model=list[OrderOutput])
def list_my_orders(
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[OrderOutput]:
    require_roles(ctx, [Roles.CUSTOMER])
    return [order_output(o) for o in OrderService(db).list_for_customer(ctx.user_id, limit=limit)]


@router.get("/orders/{order_id}", response_model=OrderOutput)
def get_my_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, [Roles.CUSTOMER])
    try:
        order = OrderService(db).get_order(order_id)
    except DomainOrderNotFound:
        raise OrderNotFoundError(order_id)
    # Other customers' orders look like missing ones
    if order.customer_id != ctx.user_id:
        raise OrderNotFoundError(order_id)
    return order_output(order)


@router.post("/reviews", response_model=ReviewOutput, status_code=status.HTTP_201_CREATED)
def submit_review(
    body: ReviewRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> ReviewOutput:
    """Rate a delivered order, once."""
    require_roles(ctx, [Roles.CUSTOMER])
    try:
        review = ReviewService(db).submit(
            ctx.user_id,
            body.order_id,
            body.rating,
            sanitize_text(body.review_text, Limits.MAX_REVIEW_LENGTH),
        )
    except DomainOrderNotFound:
        raise OrderNotFoundError(body.order_id)
    except ReviewNotAllowedError as e:
        raise ValidationError(str(e), order_id=body.order_id)
    except DuplicateReviewError as e:
        raise ConflictError(str(e), order_id=body.order_id)

    return ReviewOutput(
        id=review.id,
        restaurant_id=review.restaurant_id,
        order_id=review.order_id,
        rating=review.rating,
        review_text=review.review_text,
        created_at=review.created_at,
    )
