"""
Resolve the caller's Profile and, for restaurant owners, their Restaurant.
"""

from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.security.auth import AuthContext
from shared.utils.exceptions import ForbiddenError, NotFoundError, RestaurantNotFoundError
from rest_api.models import Profile, Restaurant
from rest_api.services.domain import RestaurantService
from rest_api.services.domain.restaurant_service import RestaurantNotFoundError as DomainRestaurantNotFound


def get_profile(db: Session, ctx: AuthContext) -> Profile:
    profile = db.get(Profile, ctx.user_id)
    if profile is None or not profile.is_active:
        raise NotFoundError("Profile", ctx.user_id)
    return profile


def get_owned_restaurant(db: Session, ctx: AuthContext, restaurant_id: int | None = None) -> Restaurant:
    """
    The restaurant the caller manages.

    Owners are matched by phone. Admins may act on any restaurant, but then
    must name it.
    """
    service = RestaurantService(db)
    if ctx.is_admin:
        if restaurant_id is None:
            raise ForbiddenError("manage a restaurant without naming it", user_id=ctx.user_id)
        try:
            return service.get(restaurant_id)
        except DomainRestaurantNotFound:
            raise RestaurantNotFoundError(restaurant_id)

    if ctx.role != Roles.RESTAURANT:
        raise ForbiddenError("manage a restaurant", user_id=ctx.user_id, role=ctx.role)

    restaurant = service.find_owned(ctx.phone)
    if restaurant is None:
        raise RestaurantNotFoundError(user_id=ctx.user_id)
    if restaurant_id is not None and restaurant.id != restaurant_id:
        raise ForbiddenError("manage this restaurant", user_id=ctx.user_id, restaurant_id=restaurant_id)
    return restaurant
