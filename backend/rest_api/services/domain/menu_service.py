"""
Menu Domain Service.

Menu items carry two prices: base_price is what the restaurant asked for,
selling_price adds the platform tech fee and is what customers pay.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import MysteryType
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from rest_api.models import MenuItem, Restaurant
from rest_api.services.domain.pricing import HUNDRED, ZERO, round_money, to_decimal

logger = get_logger(__name__)


class MenuItemNotFoundError(Exception):
    pass


class InvalidLootConfigError(Exception):
    pass


def effective_discount(item: MenuItem) -> Decimal:
    """
    Discount percentage to badge an item with.

    Loot items show their configured loot percentage. Otherwise the gap
    between base and selling price, which is negative whenever a tech fee
    applies and is then shown as no discount.
    """
    if item.is_clearance and item.loot_discount_percentage is not None:
        return round_money(item.loot_discount_percentage)
    base = to_decimal(item.base_price)
    if base <= 0:
        return ZERO
    pct = (base - to_decimal(item.selling_price)) / base * HUNDRED
    return round_money(max(pct, ZERO))


class MenuService:
    def __init__(self, db: Session):
        self._db = db

    def list_menu(self, restaurant_id: int, include_unavailable: bool = False) -> list[MenuItem]:
        query = select(MenuItem).where(
            MenuItem.restaurant_id == restaurant_id,
            MenuItem.is_active.is_(True),
        )
        if not include_unavailable:
            query = query.where(MenuItem.is_available.is_(True))
        return list(self._db.scalars(query.order_by(MenuItem.category, MenuItem.name)))

    def get_item(self, restaurant_id: int, item_id: int) -> MenuItem:
        item = self._db.scalar(
            select(MenuItem).where(MenuItem.id == item_id, MenuItem.restaurant_id == restaurant_id)
        )
        if item is None:
            raise MenuItemNotFoundError(f"Menu item {item_id} not found")
        return item

    def create_item(
        self,
        restaurant: Restaurant,
        name: str,
        base_price: Any,
        category: str | None = None,
        image_url: str | None = None,
        is_veg: bool = True,
        is_mystery: bool = False,
        mystery_type: str | None = None,
    ) -> MenuItem:
        """
        Add a dish. selling_price = base_price + the restaurant's current tech fee.
        """
        if is_mystery and mystery_type not in MysteryType.ALL:
            mystery_type = MysteryType.ANY
        base = round_money(base_price)
        item = MenuItem(
            restaurant_id=restaurant.id,
            name=name,
            category=category,
            image_url=image_url,
            base_price=base,
            selling_price=round_money(base + to_decimal(restaurant.tech_fee)),
            is_available=True,
            is_veg=is_veg,
            is_clearance=False,
            stock_remaining=0,
            is_mystery=is_mystery,
            mystery_type=mystery_type if is_mystery else None,
        )
        self._db.add(item)
        safe_commit(self._db)
        self._db.refresh(item)
        logger.info("Menu item created", restaurant_id=restaurant.id, item_id=item.id)
        return item

    def set_availability(self, restaurant_id: int, item_id: int, is_available: bool) -> MenuItem:
        item = self.get_item(restaurant_id, item_id)
        item.is_available = is_available
        safe_commit(self._db)
        self._db.refresh(item)
        return item

    def toggle_loot(
        self,
        restaurant_id: int,
        item_id: int,
        enabled: bool,
        stock: int | None = None,
        discount_percentage: Any = None,
        promo_description: str | None = None,
    ) -> MenuItem:
        """
        Put an item on (or take it off) the loot shelf.

        Enabling needs a positive stock; placement decrements it and turns
        loot off again when it reaches zero.

        Raises:
            MenuItemNotFoundError, InvalidLootConfigError
        """
        item = self.get_item(restaurant_id, item_id)

        if not enabled:
            item.is_clearance = False
        else:
            new_stock = item.stock_remaining if stock is None else stock
            if new_stock is None or new_stock <= 0:
                raise InvalidLootConfigError("Loot items need a stock above zero")
            if discount_percentage is not None:
                pct = to_decimal(discount_percentage)
                if pct < 0 or pct > HUNDRED:
                    raise InvalidLootConfigError("Loot discount must be between 0 and 100")
                item.loot_discount_percentage = round_money(pct)
            item.stock_remaining = new_stock
            item.is_clearance = True
            if promo_description is not None:
                item.promo_description = promo_description

        safe_commit(self._db)
        self._db.refresh(item)
        logger.info(
            "Loot toggled",
            restaurant_id=restaurant_id,
            item_id=item_id,
            enabled=item.is_clearance,
            stock=item.stock_remaining,
        )
        return item
