"""
Public restaurant browsing: listings, menus and reviews. No authentication.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.utils.exceptions import RestaurantNotFoundError
from shared.utils.schemas import MenuOutput, RestaurantPublicOutput, ReviewOutput
from rest_api.routers._common import menu_item_output, restaurant_public_output
from rest_api.services.domain import MenuService, RestaurantService, ReviewService
from rest_api.services.domain.restaurant_service import RestaurantNotFoundError as DomainRestaurantNotFound


router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/restaurants", response_model=list[RestaurantPublicOutput])
def list_restaurants(db: Session = Depends(get_db)) -> list[RestaurantPublicOutput]:
    """Active restaurants, best rated first."""
    return [restaurant_public_output(r) for r in RestaurantService(db).list_public()]


@router.get("/restaurants/{slug}", response_model=MenuOutput)
def get_restaurant_menu(slug: str, db: Session = Depends(get_db)) -> MenuOutput:
    """
    Restaurant card plus its available menu items.
    Loot items show their remaining stock and discount badge.
    """
    try:
        restaurant = RestaurantService(db).get_by_slug(slug)
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(slug)

    items = MenuService(db).list_menu(restaurant.id)
    return MenuOutput(
        restaurant=restaurant_public_output(restaurant),
        items=[menu_item_output(item) for item in items],
    )


@router.get("/restaurants/{slug}/reviews", response_model=list[ReviewOutput])
def list_restaurant_reviews(slug: str, db: Session = Depends(get_db)) -> list[ReviewOutput]:
    try:
        restaurant = RestaurantService(db).get_by_slug(slug)
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(slug)

    return [
        ReviewOutput(
            id=review.id,
            restaurant_id=review.restaurant_id,
            order_id=review.order_id,
            rating=review.rating,
            review_text=review.review_text,
            created_at=review.created_at,
        )
        for review in ReviewService(db).list_for_restaurant(restaurant.id)
    ]
