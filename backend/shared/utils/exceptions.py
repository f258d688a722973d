"""
HTTP exceptions used by the routers for consistent error responses.

Domain services raise their own small exceptions; routers translate them
into one of these. Every AppException logs itself on construction.

Usage:
    from shared.utils.exceptions import NotFoundError, ConflictError

    raise NotFoundError("Order", order_id)
    raise ConflictError("Restaurant is not accepting orders", restaurant_id=7)
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found (404).

    Usage:
        raise NotFoundError("Restaurant", 12)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int | str | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class RestaurantNotFoundError(NotFoundError):
    def __init__(self, restaurant_id: int | str | None = None, **log_context: Any):
        super().__init__("Restaurant", restaurant_id, **log_context)


# =============================================================================
# 401 / 403
# =============================================================================


class AuthenticationError(AppException):
    """Missing or invalid credentials (401)."""

    def __init__(self, detail: str = "Invalid or missing token", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization error (403).

    Usage:
        raise ForbiddenError("manage this restaurant", user_id=ctx.user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not allowed to {action}" if action else "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        super().__init__(
            f"perform this action (requires role: {', '.join(required_roles)})",
            required_roles=required_roles,
            **log_context,
        )


# =============================================================================
# 400 Bad Request
# =============================================================================


class ValidationError(AppException):
    """
    Input or business-rule validation error (400).

    Usage:
        raise ValidationError("Minimum order for this coupon is ₹200", coupon="SAVE50")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **log_context,
        )


class InvalidStateError(ValidationError):
    """Entity is in an invalid state for the operation."""

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        **log_context: Any,
    ):
        if expected_states:
            detail = f"{entity} is '{current_state}', expected one of: {', '.join(expected_states)}"
        else:
            detail = f"{entity} cannot be '{current_state}' for this operation"

        super().__init__(detail, entity=entity, current_state=current_state, **log_context)


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str | None, **log_context: Any):
        if to_status:
            detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        else:
            detail = f"{entity} in '{from_status}' has no further status"
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


class DuplicateEntityError(ValidationError):
    """Entity already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} '{identifier}' already exists"
        else:
            detail = f"{entity} already exists"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class PaymentAmountError(ValidationError):
    """Payment amount out of the accepted range."""

    def __init__(self, amount: Any, reason: str, **log_context: Any):
        super().__init__(f"Invalid payment amount ({amount}): {reason}", amount=str(amount), **log_context)


# =============================================================================
# 409 Conflict
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict (409).
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **log_context,
        )


class RestaurantUnavailableError(ConflictError):
    """Restaurant is inactive or below its credit floor."""

    def __init__(self, restaurant_id: int, reason: str, **log_context: Any):
        super().__init__(reason, restaurant_id=restaurant_id, **log_context)


# =============================================================================
# 5xx
# =============================================================================


class ExternalServiceError(AppException):
    """
    External service error: 502 when the service answered badly,
    503 when it could not be reached or its circuit is open.
    """

    def __init__(
        self,
        service: str,
        is_unavailable: bool = False,
        retry_after: int | None = None,
        **log_context: Any,
    ):
        if is_unavailable:
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            detail = f"{service} is temporarily unavailable"
        else:
            status_code = status.HTTP_502_BAD_GATEWAY
            detail = f"Error communicating with {service}"

        headers = {"Retry-After": str(retry_after)} if retry_after else None

        super().__init__(
            status_code=status_code,
            detail=detail,
            log_level="error",
            headers=headers,
            service=service,
            **log_context,
        )
