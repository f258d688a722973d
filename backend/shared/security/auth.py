"""
Authentication and authorization utilities.

Tokens are HS256 JWTs issued by the identity provider after OTP login.
Handlers never read ambient session state: every protected route takes an
explicit AuthContext built from the verified claims.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Header

from shared.config.constants import Roles
from shared.config.logging import get_logger, mask_phone
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from shared.utils.exceptions import AuthenticationError, InsufficientRoleError

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller for a single request."""

    user_id: int
    role: str
    phone: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.SUPER_ADMIN

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "AuthContext":
        return cls(
            user_id=int(claims["sub"]),
            role=claims["role"],
            phone=claims.get("phone"),
        )


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign a JWT with the given claims (sub, role, phone).

    Used by tooling and tests; production tokens come from the identity provider
    sharing the same secret.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT.

    Raises:
        AuthenticationError: If the token is invalid, expired or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("JWT validation failed", error=str(e))
        raise AuthenticationError("Invalid token")

    if "sub" not in payload:
        raise AuthenticationError("Invalid token: missing subject claim")
    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise AuthenticationError("Invalid token: malformed subject claim")

    if payload.get("role") not in Roles.ALL:
        raise AuthenticationError("Invalid token: unknown role claim")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """Extract the token from an Authorization header."""
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthContext:
    """
    FastAPI dependency returning the caller's AuthContext.

    Usage:
        @router.get("/orders")
        def list_orders(ctx: AuthContext = Depends(current_user_context)):
            ...
    """
    ctx = AuthContext.from_claims(verify_jwt(get_bearer_token(authorization)))
    logger.debug("Authenticated request", user_id=ctx.user_id, role=ctx.role, phone=mask_phone(ctx.phone))
    return ctx


def require_roles(ctx: AuthContext, allowed: list[str]) -> None:
    """
    Raises:
        InsufficientRoleError: If the caller's role is not in `allowed`.
    """
    if ctx.role not in allowed:
        raise InsufficientRoleError(allowed, user_id=ctx.user_id, role=ctx.role)
