"""
Restaurant dashboard: menu items, availability and the loot shelf.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.schemas import (
    CreateMenuItemRequest,
    MenuItemOutput,
    ToggleAvailabilityRequest,
    ToggleLootRequest,
)
from shared.utils.validators import validate_url
from rest_api.routers._common import get_owned_restaurant, menu_item_output
from rest_api.services.domain import MenuService
from rest_api.services.domain.menu_service import InvalidLootConfigError, MenuItemNotFoundError


router = APIRouter(prefix="/api/restaurant", tags=["restaurant"])

OWNER_ROLES = [Roles.RESTAURANT, Roles.SUPER_ADMIN]


@router.get("/menu", response_model=list[MenuItemOutput])
def list_menu(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[MenuItemOutput]:
    """All items, including unavailable ones."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    items = MenuService(db).list_menu(restaurant.id, include_unavailable=True)
    return [menu_item_output(item) for item in items]


@router.post("/menu", response_model=MenuItemOutput, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    body: CreateMenuItemRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> MenuItemOutput:
    """Selling price is the base price plus the restaurant's tech fee."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    try:
        image_url = validate_url(body.image_url)
    except ValueError as e:
        raise ValidationError(str(e))

    item = MenuService(db).create_item(
        restaurant,
        name=body.name.strip(),
        base_price=body.base_price,
        category=body.category,
        image_url=image_url,
        is_veg=body.is_veg,
        is_mystery=body.is_mystery,
        mystery_type=body.mystery_type,
    )
    return menu_item_output(item)


@router.patch("/menu/{item_id}/availability", response_model=MenuItemOutput)
def set_item_availability(
    item_id: int,
    body: ToggleAvailabilityRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> MenuItemOutput:
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    try:
        item = MenuService(db).set_availability(restaurant.id, item_id, body.is_available)
    except MenuItemNotFoundError:
        raise NotFoundError("Menu item", item_id)
    return menu_item_output(item)


@router.post("/menu/{item_id}/loot", response_model=MenuItemOutput)
def toggle_loot(
    item_id: int,
    body: ToggleLootRequest,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> MenuItemOutput:
    """
    Enable loot mode with a stock (and optional discount badge), or turn it off.
    Loot cannot be enabled with zero stock.
    """
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    try:
        item = MenuService(db).toggle_loot(
            restaurant.id,
            item_id,
            enabled=body.enabled,
            stock=body.stock,
            discount_percentage=body.discount_percentage,
            promo_description=body.promo_description,
        )
    except MenuItemNotFoundError:
        raise NotFoundError("Menu item", item_id)
    except InvalidLootConfigError as e:
        raise ValidationError(str(e), item_id=item_id)
    return menu_item_output(item)
