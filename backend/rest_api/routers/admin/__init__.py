"""
Admin API router - combines all admin sub-routers.

- restaurants: onboarding, on/off switch, per-restaurant stats
- finance: recharge approval queue, platform stats

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from .finance import router as finance_router
from .restaurants import router as restaurants_router


router = APIRouter()

router.include_router(restaurants_router)
router.include_router(finance_router)


__all__ = ["router"]
