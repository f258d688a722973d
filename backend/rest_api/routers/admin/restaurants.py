"""
Admin: restaurant onboarding and the on/off switch.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext
from shared.utils.exceptions import DuplicateEntityError, RestaurantNotFoundError, ValidationError
from shared.utils.schemas import (
    OnboardRestaurantRequest,
    RestaurantAdminOutput,
    RestaurantStatsOutput,
    ToggleRestaurantRequest,
)
from shared.utils.validators import validate_url
from rest_api.routers._common import restaurant_admin_output
from rest_api.routers.admin._base import require_admin
from rest_api.services.domain import RestaurantService
from rest_api.services.domain.restaurant_service import (
    DuplicateSlugError,
    InvalidGSTNumberError,
    RestaurantNotFoundError as DomainRestaurantNotFound,
)


router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/restaurants", response_model=list[RestaurantAdminOutput])
def list_restaurants(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> list[RestaurantAdminOutput]:
    """All restaurants, including switched-off and suspended ones."""
    return [restaurant_admin_output(r) for r in RestaurantService(db).list_all()]


@router.post("/restaurants", response_model=RestaurantAdminOutput, status_code=status.HTTP_201_CREATED)
def onboard_restaurant(
    body: OnboardRestaurantRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> RestaurantAdminOutput:
    """
    Onboard a restaurant with platform defaults (tech fee, delivery fee,
    credit floor). The owner's phone gets a RESTAURANT profile.
    """
    try:
        image_url = validate_url(body.image_url)
        restaurant = RestaurantService(db).onboard(
            name=body.name.strip(),
            owner_phone=body.owner_phone,
            upi_id=body.upi_id.strip(),
            slug=body.slug,
            tech_fee=body.tech_fee,
            delivery_fee=body.delivery_fee,
            free_delivery_threshold=body.free_delivery_threshold,
            image_url=image_url,
            gst_number=body.gst_number,
            food_gst_rate=body.food_gst_rate,
        )
    except DuplicateSlugError as e:
        raise DuplicateEntityError("Restaurant", e.slug)
    except InvalidGSTNumberError as e:
        raise ValidationError(str(e))
    except ValueError as e:
        raise ValidationError(str(e))
    return restaurant_admin_output(restaurant)


@router.patch("/restaurants/{restaurant_id}", response_model=RestaurantAdminOutput)
def toggle_restaurant(
    restaurant_id: int,
    body: ToggleRestaurantRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> RestaurantAdminOutput:
    try:
        restaurant = RestaurantService(db).set_active(restaurant_id, body.is_active)
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(restaurant_id)
    return restaurant_admin_output(restaurant)


@router.get("/restaurants/{restaurant_id}/stats", response_model=RestaurantStatsOutput)
def restaurant_stats(
    restaurant_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> RestaurantStatsOutput:
    service = RestaurantService(db)
    try:
        service.get(restaurant_id)
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(restaurant_id)
    return RestaurantStatsOutput(**service.restaurant_stats(restaurant_id))
