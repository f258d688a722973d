"""
PhonePe payments: initiation for prepaid orders and customer wallet
top-ups, and the server-to-server callback.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from sqlalchemy.orm import Session

from shared.config.constants import PaymentMethod, PaymentPurpose, PaymentStatus, Roles
from shared.config.logging import payments_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.infrastructure.events import (
    ORDER_PAYMENT_UPDATED,
    WALLET_RECHARGE_REQUESTED,
    WALLET_RECHARGE_RESOLVED,
)
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.security.rate_limit import limiter
from shared.utils.exceptions import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
    OrderNotFoundError,
    PaymentAmountError,
    ValidationError,
)
from shared.utils.schemas import (
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    PaymentCallbackResponse,
    PhonePeCallbackRequest,
)
from rest_api.routers._common import get_profile
from rest_api.services.domain import OrderService, WalletService
from rest_api.services.domain.order_service import OrderNotFoundError as DomainOrderNotFound
from rest_api.services.events import notify_order, notify_wallet
from rest_api.services.payments import (
    CircuitBreakerError,
    InvalidChecksumError,
    InvalidPaymentAmountError,
    PhonePeClient,
    PhonePeConfigError,
    PhonePeError,
    SettlementService,
    UnknownTransactionError,
    order_transaction_id,
    recharge_transaction_id,
    validate_amount,
)


router = APIRouter(prefix="/api/payments", tags=["payments"])

SERVICE_NAME = "Payment gateway"


def get_phonepe_client() -> PhonePeClient:
    """FastAPI dependency, overridden in tests with a mock transport."""
    return PhonePeClient()


async def _initiate(client: PhonePeClient, transaction_id: str, amount, phone: str, user_id: int, purpose: str):
    try:
        return await client.initiate(transaction_id, amount, phone, user_id, purpose)
    except InvalidPaymentAmountError as e:
        raise PaymentAmountError(e.amount, e.reason)
    except CircuitBreakerError as e:
        raise ExternalServiceError(SERVICE_NAME, is_unavailable=True, retry_after=int(e.retry_after) + 1)
    except PhonePeConfigError as e:
        raise ExternalServiceError(SERVICE_NAME, is_unavailable=True, reason=str(e))
    except PhonePeError as e:
        raise ExternalServiceError(SERVICE_NAME, transaction_id=transaction_id, reason=str(e))


@router.post("/initiate", response_model=InitiatePaymentResponse)
@limiter.limit(settings.payment_rate_limit)
async def initiate_payment(
    request: Request,
    body: InitiatePaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
    client: PhonePeClient = Depends(get_phonepe_client),
) -> InitiatePaymentResponse:
    """
    Start a PhonePe payment and return the pay-page URL.

    ORDER needs `order_id` of the caller's own unpaid prepaid order; the
    amount is the order's amount_to_pay. RECHARGE needs `amount` and
    creates a PENDING wallet transaction that the callback resolves.
    """
    require_roles(ctx, [Roles.CUSTOMER])
    customer = get_profile(db, ctx)

    if body.type == PaymentPurpose.ORDER:
        if body.order_id is None:
            raise ValidationError("order_id is required for ORDER payments")
        orders = OrderService(db)
        try:
            order = orders.get_order(body.order_id)
        except DomainOrderNotFound:
            raise OrderNotFoundError(body.order_id)
        if order.customer_id != customer.id:
            raise OrderNotFoundError(body.order_id)
        if order.payment_method != PaymentMethod.PREPAID_UPI:
            raise ValidationError("Only prepaid orders are paid online", order_id=order.id)
        if order.payment_status == PaymentStatus.COMPLETED:
            raise InvalidStateError(
                "Order payment", order.payment_status, [PaymentStatus.PENDING, PaymentStatus.FAILED]
            )

        transaction_id = order_transaction_id(order.id)
        amount = order.amount_to_pay
        orders.attach_payment_transaction(order.id, transaction_id)
    else:
        if body.amount is None:
            raise ValidationError("amount is required for RECHARGE payments")
        try:
            amount = validate_amount(body.amount)
        except InvalidPaymentAmountError as e:
            raise PaymentAmountError(e.amount, e.reason)
        txn = WalletService(db).request_recharge(amount, profile_id=customer.id, notes="PhonePe wallet top-up")
        transaction_id = recharge_transaction_id(txn.id)
        notify_wallet(background_tasks, WALLET_RECHARGE_REQUESTED, txn, actor=ctx)

    initiation = await _initiate(client, transaction_id, amount, customer.phone, customer.id, body.type)
    logger.info("Payment initiated", transaction_id=transaction_id, purpose=body.type, user_id=customer.id)
    return InitiatePaymentResponse(
        success=True,
        transaction_id=initiation.transaction_id,
        redirect_url=initiation.redirect_url,
    )


@router.post("/phonepe/callback", response_model=PaymentCallbackResponse)
def phonepe_callback(
    body: PhonePeCallbackRequest,
    background_tasks: BackgroundTasks,
    x_verify: str | None = Header(default=None, alias="X-VERIFY"),
    db: Session = Depends(get_db),
    client: PhonePeClient = Depends(get_phonepe_client),
) -> PaymentCallbackResponse:
    """
    Gateway callback. The checksum is verified before anything is read;
    the transaction-id prefix decides whether an order or a wallet
    recharge is settled.
    """
    try:
        result = client.verify_callback(body.response, x_verify)
    except InvalidChecksumError as e:
        raise ValidationError(str(e))
    except PhonePeConfigError as e:
        raise ExternalServiceError(SERVICE_NAME, is_unavailable=True, reason=str(e))

    try:
        outcome = SettlementService(db).apply(result)
    except UnknownTransactionError as e:
        raise NotFoundError("Payment transaction", result.transaction_id, reason=str(e))

    if outcome.order is not None:
        notify_order(background_tasks, ORDER_PAYMENT_UPDATED, outcome.order)
    elif outcome.wallet_transaction is not None and not outcome.already_settled:
        notify_wallet(background_tasks, WALLET_RECHARGE_RESOLVED, outcome.wallet_transaction)

    logger.info(
        "Payment callback settled",
        transaction_id=result.transaction_id,
        purpose=outcome.purpose,
        succeeded=outcome.succeeded,
        code=result.code,
    )
    return PaymentCallbackResponse(
        success=outcome.succeeded,
        type=outcome.purpose,
        transaction_id=result.transaction_id,
        already_settled=outcome.already_settled,
    )
