"""
Health check endpoints for the REST API.
Provides basic and detailed health status of the service and its dependencies.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, engine
from shared.infrastructure.events import get_event_circuit_breaker, get_redis_pool
from shared.utils.health import (
    HealthStatus,
    aggregate_health_checks,
    health_check_with_timeout,
)
from rest_api.services.payments.circuit_breaker import phonepe_breaker


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


@health_check_with_timeout(timeout=3.0, component="database")
async def check_database_health() -> dict:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))
    return {"dialect": engine.dialect.name}


@health_check_with_timeout(timeout=3.0, component="redis")
async def check_redis_health() -> dict:
    client = await get_redis_pool()
    await client.ping()
    return {}


@router.get("/health/detailed")
async def detailed_health_check():
    """
    Check the database and Redis, and report circuit breaker state.

    Returns 503 if any dependency is down.
    """
    results = await aggregate_health_checks([
        check_database_health(),
        check_redis_health(),
    ])

    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "status": results["status"],
        "dependencies": results["components"],
        "circuit_breakers": {
            "phonepe": phonepe_breaker.snapshot(),
            "redis_events": get_event_circuit_breaker().get_stats(),
        },
    }

    if results["status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=checks, status_code=503)
    return checks
