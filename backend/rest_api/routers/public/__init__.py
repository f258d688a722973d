"""
Public routers - No authentication required.
- /api/public/* - Restaurant listings and menus
- /api/health - Health check
"""

from .health import router as health_router
from .restaurants import router as restaurants_router

__all__ = ["health_router", "restaurants_router"]
