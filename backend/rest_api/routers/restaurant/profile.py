"""
Restaurant dashboard: own record, settings and sales figures.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import (
    RestaurantAdminOutput,
    RestaurantStatsOutput,
    UpdateRestaurantSettingsRequest,
)
from shared.utils.validators import validate_url
from rest_api.routers._common import get_owned_restaurant, restaurant_admin_output
from rest_api.services.domain import RestaurantService
from rest_api.services.domain.restaurant_service import InvalidGSTNumberError


router = APIRouter(prefix="/api/restaurant", tags=["restaurant"])

OWNER_ROLES = [Roles.RESTAURANT, Roles.SUPER_ADMIN]


@router.get("/me", response_model=RestaurantAdminOutput)
def get_my_restaurant(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RestaurantAdminOutput:
    require_roles(ctx, OWNER_ROLES)
    return restaurant_admin_output(get_owned_restaurant(db, ctx, restaurant_id))


@router.patch("/settings", response_model=RestaurantAdminOutput)
def update_settings(
    body: UpdateRestaurantSettingsRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RestaurantAdminOutput:
    """
    Change delivery pricing, GST registration and display details.
    Existing orders keep the values they were placed with.
    """
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    changes = body.model_dump(exclude_unset=True)
    if "image_url" in changes:
        try:
            changes["image_url"] = validate_url(changes["image_url"])
        except ValueError as e:
            raise ValidationError(str(e))

    try:
        restaurant = RestaurantService(db).update_settings(restaurant, changes)
    except InvalidGSTNumberError as e:
        raise ValidationError(str(e))
    return restaurant_admin_output(restaurant)


@router.get("/stats", response_model=RestaurantStatsOutput)
def get_stats(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RestaurantStatsOutput:
    """Sales exclude the platform's share of each order."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    return RestaurantStatsOutput(**RestaurantService(db).restaurant_stats(restaurant.id))
