"""
Admin: recharge approval queue and platform stats.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.config.constants import Limits, WalletTxnStatus
from shared.infrastructure.db import get_db
from shared.infrastructure.events import WALLET_RECHARGE_RESOLVED
from shared.security.auth import AuthContext
from shared.utils.exceptions import InvalidStateError, NotFoundError, ValidationError
from shared.utils.schemas import PlatformStatsOutput, ResolveRechargeRequest, WalletTransactionOutput
from rest_api.routers._common import wallet_txn_output
from rest_api.routers.admin._base import require_admin
from rest_api.services.domain import RestaurantService, WalletService
from rest_api.services.domain.wallet_service import (
    RechargeAlreadyResolvedError,
    WalletTransactionNotFoundError,
)
from rest_api.services.events import notify_wallet


router = APIRouter(prefix="/api/admin", tags=["admin"])

_STATUSES = [WalletTxnStatus.PENDING, WalletTxnStatus.APPROVED, WalletTxnStatus.REJECTED]


@router.get("/finance/recharges", response_model=list[WalletTransactionOutput])
def list_recharges(
    status: str | None = Query(default=WalletTxnStatus.PENDING),
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> list[WalletTransactionOutput]:
    """Restaurant recharge requests, pending ones by default."""
    if status and status not in _STATUSES:
        raise ValidationError(f"Unknown status filter: {status}")
    return [wallet_txn_output(t) for t in WalletService(db).list_recharges(status=status, limit=limit)]


@router.post("/finance/recharges/{txn_id}/resolve", response_model=WalletTransactionOutput)
def resolve_recharge(
    txn_id: int,
    body: ResolveRechargeRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> WalletTransactionOutput:
    """
    Approve (credits the balance) or reject a pending recharge.
    Resolving twice is refused and leaves the balance unchanged.
    """
    try:
        txn = WalletService(db).resolve_recharge(txn_id, body.decision, approver_id=ctx.user_id)
    except WalletTransactionNotFoundError:
        raise NotFoundError("Wallet transaction", txn_id)
    except RechargeAlreadyResolvedError as e:
        raise InvalidStateError("Wallet transaction", e.status, [WalletTxnStatus.PENDING], txn_id=txn_id)

    notify_wallet(background_tasks, WALLET_RECHARGE_RESOLVED, txn, actor=ctx)
    return wallet_txn_output(txn)


@router.get("/stats", response_model=PlatformStatsOutput)
def platform_stats(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
) -> PlatformStatsOutput:
    """Platform revenue is the sum of each order's frozen net profit."""
    return PlatformStatsOutput(**RestaurantService(db).platform_stats())
