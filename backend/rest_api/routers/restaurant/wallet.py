"""
Restaurant dashboard: credit balance, ledger and manual recharge requests.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Limits, Roles
from shared.infrastructure.db import get_db
from shared.infrastructure.events import WALLET_RECHARGE_REQUESTED
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import RechargeRequest, WalletSummaryOutput, WalletTransactionOutput
from shared.utils.validators import sanitize_text, validate_url
from rest_api.routers._common import get_owned_restaurant, wallet_txn_output
from rest_api.services.domain import WalletService
from rest_api.services.domain.wallet_service import InvalidRechargeAmountError
from rest_api.services.events import notify_wallet


router = APIRouter(prefix="/api/restaurant", tags=["restaurant"])

OWNER_ROLES = [Roles.RESTAURANT, Roles.SUPER_ADMIN]


@router.get("/wallet", response_model=WalletSummaryOutput)
def get_wallet_summary(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> WalletSummaryOutput:
    """Balance, indicator colour and how many items can still be sold."""
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    return WalletSummaryOutput(**WalletService(db).summary(restaurant))


@router.get("/wallet/transactions", response_model=list[WalletTransactionOutput])
def list_wallet_transactions(
    restaurant_id: int | None = None,
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> list[WalletTransactionOutput]:
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)
    txns = WalletService(db).list_for_restaurant(restaurant.id, limit=limit)
    return [wallet_txn_output(t) for t in txns]


@router.post("/wallet/recharge", response_model=WalletTransactionOutput, status_code=status.HTTP_201_CREATED)
def request_recharge(
    body: RechargeRequest,
    background_tasks: BackgroundTasks,
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> WalletTransactionOutput:
    """
    Submit a recharge with a payment screenshot. The balance changes only
    when an admin approves it.
    """
    require_roles(ctx, OWNER_ROLES)
    restaurant = get_owned_restaurant(db, ctx, restaurant_id)

    try:
        proof = validate_url(body.proof_image_url)
    except ValueError as e:
        raise ValidationError(str(e))

    try:
        txn = WalletService(db).request_recharge(
            body.amount,
            restaurant_id=restaurant.id,
            proof_image_url=proof,
            notes=sanitize_text(body.notes, Limits.MAX_NOTES_LENGTH),
        )
    except InvalidRechargeAmountError as e:
        raise ValidationError(str(e))

    notify_wallet(background_tasks, WALLET_RECHARGE_REQUESTED, txn, actor=ctx)
    return wallet_txn_output(txn)
