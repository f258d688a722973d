"""
Customer wallet balance. Top-ups go through /api/payments/initiate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.config.constants import Roles
from shared.infrastructure.db import get_db
from shared.security.auth import AuthContext, current_user_context, require_roles
from shared.utils.schemas import CustomerWalletOutput
from rest_api.routers._common import get_profile


router = APIRouter(prefix="/api/customer", tags=["customer"])


@router.get("/wallet", response_model=CustomerWalletOutput)
def get_my_wallet(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(current_user_context),
) -> CustomerWalletOutput:
    require_roles(ctx, [Roles.CUSTOMER])
    profile = get_profile(db, ctx)
    return CustomerWalletOutput(profile_id=profile.id, wallet_balance=profile.wallet_balance)
