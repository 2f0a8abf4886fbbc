"""
Shared utilities: exceptions, validators and Pydantic schemas.
"""

from pos_shared.utils.exceptions import (
    AppException,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    PlanLimitExceededError,
    ValidationError,
)
from pos_shared.utils.validators import (
    escape_like_pattern,
    money_equal,
    quantize_money,
    safe_return_to,
    to_decimal,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "PlanLimitExceededError",
    "ValidationError",
    "escape_like_pattern",
    "money_equal",
    "quantize_money",
    "safe_return_to",
    "to_decimal",
]
