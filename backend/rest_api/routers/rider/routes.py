"""
Rider app: open feed, claiming, pickup/delivery and earnings.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.config.logging import rider_logger as logger
from shared.infrastructure.db import get_db
from shared.infrastructure.events import (
    ORDER_DELIVERED,
    ORDER_OUT_FOR_DELIVERY,
    ORDER_RIDER_ASSIGNED,
)
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import (
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from shared.utils.schemas import ClaimResponse, RiderEarningsOutput, RiderOrderOutput
from rest_api.routers._common import get_profile, rider_order_output
from rest_api.services.domain import DispatchService, OrderService
from rest_api.services.domain.dispatch_service import NotAssignedRiderError, OrderNotReadyError
from rest_api.services.domain.order_lifecycle import InvalidOrderTransitionError
from rest_api.services.domain.order_service import OrderNotFoundError as DomainOrderNotFound
from rest_api.services.events import notify_order


router = APIRouter(prefix="/api/rider", tags=["rider"])

CLAIM_LOST_MESSAGE = "Order no longer available. Try another order."


@router.get("/orders/available", response_model=list[RiderOrderOutput])
def list_available_orders(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[RiderOrderOutput]:
    """Orders searching for a rider, oldest first."""
    require_roles(ctx, [Roles.RIDER])
    return [rider_order_output(o) for o in DispatchService(db).list_available()]


@router.post("/orders/{order_id}/claim", response_model=ClaimResponse)
def claim_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> ClaimResponse:
    """
    Take an order from the feed. Losing the race is a normal outcome and
    comes back as claimed=false, not as an error.
    """
    require_roles(ctx, [Roles.RIDER])
    claimed = DispatchService(db).claim(order_id, ctx.user_id)
    if not claimed:
        return ClaimResponse(claimed=False, message=CLAIM_LOST_MESSAGE)

    order = OrderService(db).get_order(order_id)
    notify_order(background_tasks, ORDER_RIDER_ASSIGNED, order, actor=ctx)
    return ClaimResponse(
        claimed=True,
        message="Order assigned to you",
        order=rider_order_output(order, include_customer=True),
    )


@router.get("/orders/active", response_model=list[RiderOrderOutput])
def list_active_orders(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[RiderOrderOutput]:
    require_roles(ctx, [Roles.RIDER])
    orders = DispatchService(db).list_active(ctx.user_id)
    return [rider_order_output(o, include_customer=True) for o in orders]


def _step(action, order_id: int, ctx: AuthContext):
    try:
        return action(order_id, ctx.user_id)
    except DomainOrderNotFound:
        raise OrderNotFoundError(order_id)
    except NotAssignedRiderError:
        raise ForbiddenError("update an order assigned to another rider", user_id=ctx.user_id, order_id=order_id)
    except OrderNotReadyError as e:
        raise InvalidStateError("Order", e.status, ["READY"], order_id=order_id)
    except InvalidOrderTransitionError as e:
        raise InvalidTransitionError("delivery", e.from_status or "none", e.to_status, order_id=order_id)


@router.post("/orders/{order_id}/pickup", response_model=RiderOrderOutput)
def pick_up_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RiderOrderOutput:
    """RIDER_ASSIGNED → OUT_FOR_DELIVERY. The kitchen must have marked it READY."""
    require_roles(ctx, [Roles.RIDER])
    order = _step(DispatchService(db).pick_up, order_id, ctx)
    notify_order(background_tasks, ORDER_OUT_FOR_DELIVERY, order, actor=ctx)
    return rider_order_output(order, include_customer=True)


@router.post("/orders/{order_id}/deliver", response_model=RiderOrderOutput)
def deliver_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RiderOrderOutput:
    """OUT_FOR_DELIVERY → DELIVERED, closing the customer chain as well."""
    require_roles(ctx, [Roles.RIDER])
    order = _step(DispatchService(db).deliver, order_id, ctx)
    logger.info("Order delivered by rider", order_id=order.id, rider_id=ctx.user_id)
    notify_order(background_tasks, ORDER_DELIVERED, order, actor=ctx)
    return rider_order_output(order, include_customer=True)


@router.get("/earnings", response_model=RiderEarningsOutput)
def get_earnings(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> RiderEarningsOutput:
    require_roles(ctx, [Roles.RIDER])
    earnings = DispatchService(db).earnings(get_profile(db, ctx))
    return RiderEarningsOutput(
        delivered_count=earnings.delivered_count,
        payout_per_delivery=earnings.payout_per_delivery,
        delivery_earnings=earnings.delivery_earnings,
        wallet_balance=earnings.wallet_balance,
        total=earnings.total,
    )
