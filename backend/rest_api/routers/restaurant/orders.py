"""
Restaurant dashboard: incoming orders, status progress, rider dispatch and
the WhatsApp hand-off.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderStatus, Roles
from shared.infrastructure.db import get_db
from shared.infrastructure.events import ORDER_RIDER_SEARCH, ORDER_STATUS_CHANGED
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import InvalidTransitionError, OrderNotFoundError, ValidationError
from shared.utils.schemas import OrderOutput, WhatsAppLinkOutput
from rest_api.routers._common import get_owned_restaurant, order_output
from rest_api.services.domain import DispatchService, OrderService
from rest_api.services.domain.messaging import order_message, whatsapp_link
from rest_api.services.domain.order_lifecycle import InvalidOrderTransitionError
from rest_api.services.domain.order_service import OrderNotFoundError as DomainOrderNotFound
from rest_api.services.events import notify_order


router = APIRouter(prefix="/api/restaurant", tags=["restaurant"])

OWNER_ROLES = [Roles.RESTAURANT, Roles.SUPER_ADMIN]


@router.get("/orders", response_model=list[OrderOutput])
def list_orders(
    status: list[str] | None = Query(default=None),
    restaurant_id: int | None = None,
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[OrderOutput]:
    """Newest first, optionally filtered by status (repeat ?status=)."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    if status:
        unknown = [s for s in status if s not in OrderStatus.ALL]
        if unknown:
            raise ValidationError(f"Unknown status filter: {', '.join(unknown)}")

    orders = OrderService(db).list_for_restaurant(restaurant.id, statuses=status, limit=limit)
    return [order_output(o) for o in orders]


@router.post("/orders/{order_id}/advance", response_model=OrderOutput)
def advance_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> OrderOutput:
    """
    Move the order one step: PENDING → CONFIRMED → COOKING → READY → DELIVERED.
    DELIVERED is only reachable here for self-delivered orders.
    """
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    try:
        order = OrderService(db).advance_status(order_id, restaurant.id)
    except DomainOrderNotFound:
        raise OrderNotFoundError(order_id)
    except InvalidOrderTransitionError as e:
        raise InvalidTransitionError("order", e.from_status, e.to_status, order_id=order_id)

    notify_order(background_tasks, ORDER_STATUS_CHANGED, order, actor=ctx)
    return order_output(order)


@router.post("/orders/{order_id}/request-rider", response_model=OrderOutput)
def request_rider(
    order_id: int,
    background_tasks: BackgroundTasks,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> OrderOutput:
    """Publish an accepted order to the rider feed."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    try:
        order = DispatchService(db).request_rider(order_id, restaurant.id)
    except DomainOrderNotFound:
        raise OrderNotFoundError(order_id)
    except InvalidOrderTransitionError as e:
        raise InvalidTransitionError("delivery", e.from_status or "none", e.to_status, order_id=order_id)

    notify_order(background_tasks, ORDER_RIDER_SEARCH, order, actor=ctx)
    return order_output(order)


@router.get("/orders/{order_id}/whatsapp", response_model=WhatsAppLinkOutput)
def whatsapp_order_link(
    order_id: int,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> WhatsAppLinkOutput:
    """Order summary as WhatsApp text plus a wa.me link to the owner's number."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    try:
        order = OrderService(db).get_order(order_id)
    except DomainOrderNotFound:
        raise OrderNotFoundError(order_id)
    if order.restaurant_id != restaurant.id:
        raise OrderNotFoundError(order_id)

    message = order_message(order)
    return WhatsAppLinkOutput(order_id=order.id, message=message, url=whatsapp_link(restaurant.owner_phone, message))
