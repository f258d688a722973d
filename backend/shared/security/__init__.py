"""
Security: JWT verification, request auth context, rate limiting.
"""

from shared.security.auth import (
    AuthContext,
    sign_jwt,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    require_roles,
)
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "AuthContext",
    "sign_jwt",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "require_roles",
    "limiter",
    "rate_limit_exceeded_handler",
]
