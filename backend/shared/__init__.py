"""
Shared module for code used by every part of the food delivery backend.

STRUCTURE:
- shared.security: Authentication and rate limiting
  - auth.py: JWT verification, AuthContext, current_user_context, require_roles
  - rate_limit.py: slowapi limiter keyed by user or IP

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and log filter
  - events/: Redis pub/sub, event publishing

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Roles, order/delivery statuses, transitions

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Phone, GSTIN, GPS and URL validation
  - schemas.py: Pydantic API schemas
  - health.py: Health check helpers

IMPORT EXAMPLES:
    from shared.security.auth import AuthContext, current_user_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
