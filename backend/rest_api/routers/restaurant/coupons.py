"""
Restaurant dashboard: coupon management.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import DuplicateEntityError, NotFoundError
from shared.utils.schemas import CouponOutput, CreateCouponRequest, ToggleCouponRequest
from rest_api.routers._common import coupon_output, get_owned_restaurant
from rest_api.services.domain import CouponService
from rest_api.services.domain.coupon_service import CouponNotFoundError, DuplicateCouponError


router = APIRouter(prefix="/api/restaurant", tags=["restaurant"])

OWNER_ROLES = [Roles.RESTAURANT, Roles.SUPER_ADMIN]


@router.get("/coupons", response_model=list[CouponOutput])
def list_coupons(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[CouponOutput]:
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    return [coupon_output(c) for c in CouponService(db).list_for_restaurant(restaurant.id)]


@router.post("/coupons", response_model=CouponOutput, status_code=status.HTTP_201_CREATED)
def create_coupon(
    body: CreateCouponRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> CouponOutput:
    """Codes are stored upper-cased and must be unique per restaurant."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    try:
        coupon = CouponService(db).create(
            restaurant.id,
            body.code,
            body.discount_value,
            body.min_order_value,
        )
    except DuplicateCouponError as e:
        raise DuplicateEntityError("Coupon", e.code, restaurant_id=restaurant.id)
    return coupon_output(coupon)


@router.patch("/coupons/{coupon_id}", response_model=CouponOutput)
def toggle_coupon(
    coupon_id: int,
    body: ToggleCouponRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> CouponOutput:
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    try:
        coupon = CouponService(db).set_active(restaurant.id, coupon_id, body.is_active)
    except CouponNotFoundError:
        raise NotFoundError("Coupon", coupon_id)
    return coupon_output(coupon)


@router.delete("/coupons/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: int,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> Response:
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    try:
        CouponService(db).delete(restaurant.id, coupon_id)
    except CouponNotFoundError:
        raise NotFoundError("Coupon", coupon_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
