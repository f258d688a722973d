"""
Customer checkout: quotes, coupon checks and order placement.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from shared.config.constants import PaymentMethod, Roles
from shared.config.logging import orders_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.infrastructure.events import ORDER_CREATED
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.security.rate_limit import limiter
from shared.utils.exceptions import (
    ConflictError,
    RestaurantNotFoundError,
    RestaurantUnavailableError,
    ValidationError,
)
from shared.utils.schemas import (
    CouponValidationOutput,
    PlaceOrderRequest,
    PlaceOrderResponse,
    QuoteOutput,
    QuoteRequest,
    ValidateCouponRequest,
)
from shared.utils.validators import sanitize_text, validate_gps, validate_url
from rest_api.routers._common import bill_output, get_profile, order_output
from rest_api.services.domain import CouponService, OrderService
from rest_api.services.domain.coupon_service import CouponRejectedError
from rest_api.services.domain.messaging import upi_deep_link
from rest_api.services.domain.order_service import (
    CartLine,
    InsufficientStockError,
    InvalidCartError,
    MenuItemUnavailableError,
    RestaurantNotFoundError as DomainRestaurantNotFound,
    RestaurantSuspendedError,
)
from rest_api.services.domain.wallet_service import InsufficientWalletBalanceError
from rest_api.services.events import notify_order, notify_suspension


router = APIRouter(prefix="/api/customer", tags=["customer"])


def _lines(items) -> list[CartLine]:
    return [CartLine(menu_item_id=i.menu_item_id, quantity=i.quantity) for i in items]


@router.post("/quote", response_model=QuoteOutput)
def quote_cart(
    body: QuoteRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> QuoteOutput:
    """
    Price a cart: coupon, delivery fee, GST breakdown and wallet use.
    Nothing is persisted.
    """
    require_roles(ctx, [Roles.CUSTOMER])
    customer = get_profile(db, ctx)

    try:
        quote = OrderService(db).quote(
            body.restaurant_id,
            _lines(body.items),
            coupon_code=body.coupon_code,
            customer=customer,
            use_wallet=body.use_wallet,
        )
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(body.restaurant_id)
    except CouponRejectedError as e:
        raise ValidationError(e.message, coupon=e.code, reason=e.reason.value)
    except (MenuItemUnavailableError, InsufficientStockError, InvalidCartError) as e:
        raise ValidationError(str(e))

    return QuoteOutput(
        restaurant_id=quote.restaurant_id,
        items=quote.items,
        coupon_code=quote.coupon_code,
        bill=bill_output(quote.bill),
    )


@router.post("/coupons/validate", response_model=CouponValidationOutput)
def validate_coupon(
    body: ValidateCouponRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> CouponValidationOutput:
    """
    Check a coupon against a cart subtotal. Rejections are reported in the
    body (valid=false) with the reason.
    """
    require_roles(ctx, [Roles.CUSTOMER])
    try:
        result = CouponService(db).apply_coupon(body.code, body.restaurant_id, body.cart_subtotal)
    except CouponRejectedError as e:
        return CouponValidationOutput(
            valid=False,
            code=e.code,
            reason=e.reason.value,
            message=e.message,
            min_order_value=e.min_order_value,
        )
    return CouponValidationOutput(
        valid=True,
        code=result.code,
        discount=result.discount,
        min_order_value=result.min_order_value,
    )


@router.post("/orders", response_model=PlaceOrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.checkout_rate_limit)
def place_order(
    request: Request,
    body: PlaceOrderRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> PlaceOrderResponse:
    """
    Place an order. Every monetary field is frozen at this point.

    Fails with 409 when the restaurant is switched off or below its credit
    floor, and 400 for cart, coupon or wallet problems.
    """
    require_roles(ctx, [Roles.CUSTOMER])
    customer = get_profile(db, ctx)

    try:
        gps = validate_gps(body.gps_coordinates)
        voice_note_url = validate_url(body.voice_note_url)
    except ValueError as e:
        raise ValidationError(str(e))

    service = OrderService(db)
    try:
        placed = service.place_order(
            customer=customer,
            restaurant_id=body.restaurant_id,
            lines=_lines(body.items),
            delivery_address=sanitize_text(body.delivery_address, 500) or "",
            payment_method=body.payment_method,
            coupon_code=body.coupon_code,
            use_wallet=body.use_wallet,
            gps_coordinates=gps,
            voice_note_url=voice_note_url,
            customer_name=sanitize_text(body.customer_name, 80),
        )
    except DomainRestaurantNotFound:
        raise RestaurantNotFoundError(body.restaurant_id)
    except RestaurantSuspendedError as e:
        raise RestaurantUnavailableError(e.restaurant_id, e.reason)
    except CouponRejectedError as e:
        raise ValidationError(e.message, coupon=e.code, reason=e.reason.value)
    except (MenuItemUnavailableError, InsufficientStockError, InvalidCartError) as e:
        raise ValidationError(str(e))
    except InsufficientWalletBalanceError as e:
        raise ConflictError(str(e), customer_id=customer.id)

    order = placed.order
    notify_order(background_tasks, ORDER_CREATED, order, actor=ctx)
    if placed.restaurant_suspended:
        notify_suspension(background_tasks, order.restaurant)

    payment_required = order.amount_to_pay > 0 and order.payment_method == PaymentMethod.PREPAID_UPI
    upi_link = None
    if order.amount_to_pay > 0 and order.payment_method == PaymentMethod.COD_UPI_SCAN:
        upi_link = upi_deep_link(order.restaurant.upi_id, order.restaurant.name, order.amount_to_pay, order.short_id)

    logger.info("Checkout complete", order_id=order.id, payment_required=payment_required)
    return PlaceOrderResponse(order=order_output(order), payment_required=payment_required, upi_link=upi_link)
