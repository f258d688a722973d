"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.logging import rest_api_logger as logger, setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine
from shared.infrastructure.events import close_redis_pool
from rest_api.models import Base


def check_configuration() -> None:
    """
    Refuse to start in production with insecure secrets; log everything else.
    """
    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )

    for warning in settings.config_warnings():
        logger.warning("Configuration warning", warning=warning)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()

    logger.info("Starting REST API", env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("Shutting down REST API")
    await close_redis_pool()
    logger.info("Redis connection pool closed")
