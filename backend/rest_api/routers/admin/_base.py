"""
Shared dependencies for admin routers.
"""

from fastapi import Depends

from shared.config.constants import Roles
from shared.security.auth import AuthContext, current_user_context, require_roles


def require_admin(ctx: AuthContext = Depends(current_user_context)) -> AuthContext:
    """Dependency: the caller must be a SUPER_ADMIN."""
    require_roles(ctx, [Roles.SUPER_ADMIN])
    return ctx
