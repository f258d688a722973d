"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core import configure_cors, lifespan, register_middlewares
from rest_api.routers import admin, customer, payments, public, restaurant, rider


app = FastAPI(
    title="Food Delivery API",
    description="Multi-restaurant ordering, rider dispatch and restaurant credit wallets",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

# Public
app.include_router(public.health_router)
app.include_router(public.restaurants_router)

# Customer
app.include_router(customer.checkout_router)
app.include_router(customer.orders_router)
app.include_router(customer.wallet_router)

# Restaurant dashboard
app.include_router(restaurant.orders_router)
app.include_router(restaurant.menu_router)
app.include_router(restaurant.coupons_router)
app.include_router(restaurant.wallet_router)
app.include_router(restaurant.profile_router)

# Rider
app.include_router(rider.router)

# Super admin
app.include_router(admin.router)

# Payment gateway
app.include_router(payments.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
