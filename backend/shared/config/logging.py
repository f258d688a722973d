"""
Centralized structured logging for the backend.
Uses Python's standard logging with JSON output in production and a
coloured single-line format in development. Every record carries the
request correlation ID when one is bound.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    if request_id and request_id != "-":
        return request_id
    return None


class StructuredFormatter(logging.Formatter):
    """JSON formatter, one object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = _request_id(record)
        if request_id:
            payload["request_id"] = request_id

        context = getattr(record, "context", None)
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            payload["source"] = f"{record.filename}:{record.lineno} {record.funcName}"

        return json.dumps(payload, default=str, ensure_ascii=False)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        clock = datetime.now().strftime("%H:%M:%S")

        request_id = _request_id(record)
        prefix = f"{self.DIM}[{request_id[:8]}]{self.RESET} " if request_id else ""

        line = (
            f"{color}{clock} {record.levelname:<8}{self.RESET} "
            f"{prefix}{record.name}: {record.getMessage()}"
        )

        context = getattr(record, "context", None)
        if context:
            line += " {" + ", ".join(f"{k}={v}" for k, v in context.items()) + "}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class StructuredLogger(logging.Logger):
    """
    Logger whose level methods accept keyword context:

        logger.info("Order placed", order_id=12, total="490.00")
    """

    def log_with_context(
        self,
        level: int,
        msg: str,
        args: tuple = (),
        exc_info: Any = None,
        **context: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        self._log(level, msg, args, exc_info=exc_info, extra={"context": context or None})

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log_with_context(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log_with_context(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log_with_context(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log_with_context(logging.ERROR, msg, args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log_with_context(logging.CRITICAL, msg, args, **kwargs)


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Configure the root logger. Call once at application startup.
    """
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(
        StructuredFormatter() if settings.environment == "production" else DevelopmentFormatter()
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Recharge approved", txn_id=7, phone=mask_phone(phone))
    """
    return logging.getLogger(name)  # type: ignore


def mask_phone(phone: str | None) -> str:
    """
    Mask a phone number for logs, keeping the last 4 digits.

    "+919876543210" -> "+91******3210"
    """
    if not phone:
        return "<no-phone>"
    if len(phone) <= 4:
        return "*" * len(phone)
    keep_prefix = 3 if phone.startswith("+") else 0
    hidden = len(phone) - keep_prefix - 4
    return phone[:keep_prefix] + "*" * max(hidden, 0) + phone[-4:]


# Pre-configured loggers for common modules
rest_api_logger = get_logger("rest_api")
orders_logger = get_logger("rest_api.orders")
rider_logger = get_logger("rest_api.rider")
payments_logger = get_logger("rest_api.payments")
events_logger = get_logger("shared.events")

# Money movements get their own audit stream
ledger_audit_logger = get_logger("ledger.audit")


def audit_ledger_event(
    event_type: str,
    txn_id: int | None,
    amount: Any,
    restaurant_id: int | None = None,
    profile_id: int | None = None,
    actor_id: int | str | None = None,
    **extra: Any,
) -> None:
    """
    Record a balance-affecting ledger event.

    Args:
        event_type: FEE_DEDUCTION, RECHARGE_APPROVED, RECHARGE_REJECTED, WALLET_DEBIT...
        txn_id: Wallet transaction ID, when one exists
        amount: Signed amount applied to the balance
        restaurant_id: Restaurant whose credit balance moved
        profile_id: Customer profile whose wallet moved
        actor_id: Who triggered the movement (admin, gateway, customer)
    """
    ledger_audit_logger.info(
        f"LEDGER: {event_type}",
        event_type=event_type,
        txn_id=txn_id,
        amount=str(amount),
        restaurant_id=restaurant_id,
        profile_id=profile_id,
        actor_id=actor_id,
        **extra,
    )
