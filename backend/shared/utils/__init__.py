"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
)
from shared.utils.validators import (
    normalize_phone,
    validate_url,
    validate_gps,
    is_valid_gst_number,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    # validators
    "normalize_phone",
    "validate_url",
    "validate_gps",
    "is_valid_gst_number",
    # schemas
    "ErrorResponse",
]
