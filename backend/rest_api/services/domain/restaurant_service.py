"""
Restaurant Domain Service.

Onboarding and admin on/off switch, public listings, owner settings and the
sales / revenue aggregates shown on dashboards.
"""

import re
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.constants import OrderStatus, Roles
from shared.config.logging import get_logger, mask_phone
from shared.config.settings import settings
from shared.infrastructure.db import safe_commit
from shared.utils.validators import is_valid_gst_number, normalize_gst_number, normalize_phone
from rest_api.models import Order, Profile, Restaurant
from rest_api.services.domain.pricing import ZERO, round_money

logger = get_logger(__name__)


class RestaurantNotFoundError(Exception):
    pass


class DuplicateSlugError(Exception):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug {slug} is already taken")


class InvalidGSTNumberError(Exception):
    pass


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "restaurant"


class RestaurantService:
    def __init__(self, db: Session):
        self._db = db

    def get(self, restaurant_id: int) -> Restaurant:
        restaurant = self._db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise RestaurantNotFoundError(f"Restaurant {restaurant_id} not found")
        return restaurant

    def get_by_slug(self, slug: str) -> Restaurant:
        restaurant = self._db.scalar(
            select(Restaurant).where(Restaurant.slug == slug, Restaurant.is_active.is_(True))
        )
        if restaurant is None:
            raise RestaurantNotFoundError(f"Restaurant {slug} not found")
        return restaurant

    def find_owned(self, owner_phone: str | None) -> Restaurant | None:
        if not owner_phone:
            return None
        return self._db.scalar(
            select(Restaurant)
            .where(Restaurant.owner_phone == normalize_phone(owner_phone))
            .order_by(Restaurant.id)
        )

    def list_public(self) -> list[Restaurant]:
        """Active restaurants, best rated first. Suspended ones stay listed but cannot take orders."""
        return list(
            self._db.scalars(
                select(Restaurant)
                .where(Restaurant.is_active.is_(True))
                .order_by(Restaurant.rating_avg.desc(), Restaurant.name)
            )
        )

    def list_all(self) -> list[Restaurant]:
        return list(self._db.scalars(select(Restaurant).order_by(Restaurant.created_at.desc(), Restaurant.id.desc())))

    def _unique_slug(self, base: str) -> str:
        slug = base
        suffix = 2
        while self._db.scalar(select(Restaurant.id).where(Restaurant.slug == slug)) is not None:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def onboard(
        self,
        name: str,
        owner_phone: str,
        upi_id: str,
        slug: str | None = None,
        tech_fee: Decimal | None = None,
        delivery_fee: Decimal | None = None,
        free_delivery_threshold: Decimal | None = None,
        image_url: str | None = None,
        gst_number: str | None = None,
        food_gst_rate: Decimal | None = None,
    ) -> Restaurant:
        """
        Create a restaurant with platform defaults and make sure its owner has
        a RESTAURANT profile.
        """
        phone = normalize_phone(owner_phone)

        if slug:
            slug = slugify(slug)
            if self._db.scalar(select(Restaurant.id).where(Restaurant.slug == slug)) is not None:
                raise DuplicateSlugError(slug)
        else:
            slug = self._unique_slug(slugify(name))

        gstin = None
        if gst_number:
            gstin = normalize_gst_number(gst_number)
            if not is_valid_gst_number(gstin):
                raise InvalidGSTNumberError(f"Invalid GSTIN {gst_number}")

        restaurant = Restaurant(
            name=name,
            slug=slug,
            owner_phone=phone,
            upi_id=upi_id,
            image_url=image_url,
            tech_fee=round_money(settings.default_tech_fee if tech_fee is None else tech_fee),
            delivery_fee=round_money(settings.default_delivery_fee if delivery_fee is None else delivery_fee),
            free_delivery_threshold=(
                round_money(free_delivery_threshold) if free_delivery_threshold is not None else None
            ),
            credit_balance=ZERO,
            min_balance_limit=round_money(settings.default_min_balance_limit),
            gst_number=gstin,
            is_gst_registered=gstin is not None,
            food_gst_rate=food_gst_rate if food_gst_rate is not None else settings.default_food_gst_rate,
            is_active=True,
        )
        self._db.add(restaurant)

        owner = self._db.scalar(select(Profile).where(Profile.phone == phone))
        if owner is None:
            self._db.add(Profile(phone=phone, role=Roles.RESTAURANT, full_name=name))
        elif owner.role == Roles.CUSTOMER:
            owner.role = Roles.RESTAURANT

        safe_commit(self._db)
        self._db.refresh(restaurant)
        logger.info("Restaurant onboarded", restaurant_id=restaurant.id, slug=slug, owner=mask_phone(phone))
        return restaurant

    def set_active(self, restaurant_id: int, is_active: bool) -> Restaurant:
        restaurant = self.get(restaurant_id)
        restaurant.is_active = is_active
        safe_commit(self._db)
        self._db.refresh(restaurant)
        logger.info("Restaurant toggled", restaurant_id=restaurant_id, is_active=is_active)
        return restaurant

    def update_settings(self, restaurant: Restaurant, changes: dict[str, Any]) -> Restaurant:
        """
        Apply owner-editable settings. Money changes only affect future orders.
        """
        if "gst_number" in changes:
            raw = changes.pop("gst_number")
            if raw:
                gstin = normalize_gst_number(raw)
                if not is_valid_gst_number(gstin):
                    raise InvalidGSTNumberError(f"Invalid GSTIN {raw}")
                restaurant.gst_number = gstin
                restaurant.is_gst_registered = True
            else:
                restaurant.gst_number = None
                restaurant.is_gst_registered = False

        for field in ("name", "upi_id", "gst_enabled", "food_gst_rate"):
            if changes.get(field) is not None:
                setattr(restaurant, field, changes[field])
        if "image_url" in changes:
            restaurant.image_url = changes["image_url"]
        if changes.get("delivery_fee") is not None:
            restaurant.delivery_fee = round_money(changes["delivery_fee"])
        if "free_delivery_threshold" in changes:
            value = changes["free_delivery_threshold"]
            restaurant.free_delivery_threshold = round_money(value) if value is not None else None

        safe_commit(self._db)
        self._db.refresh(restaurant)
        logger.info("Restaurant settings updated", restaurant_id=restaurant.id, fields=sorted(changes))
        return restaurant

    # =========================================================================
    # Aggregates
    # =========================================================================

    def restaurant_stats(self, restaurant_id: int) -> dict[str, Any]:
        """
        Restaurant-facing numbers. Sales exclude the platform's share
        (total_amount - net_profit).
        """
        row = self._db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount - Order.net_profit), 0),
            ).where(Order.restaurant_id == restaurant_id)
        ).one()
        pending = self._db.scalar(
            select(func.count(Order.id)).where(
                Order.restaurant_id == restaurant_id,
                Order.status.in_(OrderStatus.ACTIVE),
            )
        ) or 0
        return {
            "restaurant_id": restaurant_id,
            "order_count": row[0],
            "active_orders": pending,
            "total_sales": round_money(row[1]),
        }

    def platform_stats(self) -> dict[str, Any]:
        """Admin overview. Platform revenue is the sum of frozen net profit."""
        order_count, revenue, gmv = self._db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.net_profit), 0),
                func.coalesce(func.sum(Order.total_amount), 0),
            )
        ).one()
        restaurants = self._db.scalar(select(func.count(Restaurant.id))) or 0
        active = self._db.scalar(select(func.count(Restaurant.id)).where(Restaurant.is_active.is_(True))) or 0
        suspended = self._db.scalar(
            select(func.count(Restaurant.id)).where(Restaurant.credit_balance < Restaurant.min_balance_limit)
        ) or 0
        return {
            "order_count": order_count,
            "platform_revenue": round_money(revenue),
            "gross_order_value": round_money(gmv),
            "restaurant_count": restaurants,
            "active_restaurants": active,
            "suspended_restaurants": suspended,
        }
