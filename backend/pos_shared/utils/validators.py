"""
Shared validators and money helpers.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pos_shared.config.constants import MONEY_TOLERANCE

CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    """
    Convert numbers, numeric strings and Decimals to Decimal.

    Floats go through str() so 0.1 stays 0.1. Returns `default` for
    None, empty strings and unparseable or non-finite input.
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip().replace(",", "."))
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite():
        return default
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_equal(a: Decimal, b: Decimal, tolerance: Decimal = MONEY_TOLERANCE) -> bool:
    """
    Compare two money amounts with one cent of tolerance.

    |a - b| <= 0.01 counts as equal.
    """
    return abs(a - b) <= tolerance


def escape_like_pattern(value: str) -> str:
    """
    Escape SQL LIKE wildcards in user search input.

    Use with `.ilike(pattern, escape="\\\\")`.
    """
    if not value:
        return value

    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def safe_return_to(value: str | None) -> str:
    """
    Sanitize a post-print redirect path.

    Only site-relative paths survive; absolute URLs, protocol-relative
    "//host" values and backslashes fall back to "/".
    """
    path = str(value or "").strip()
    if not path:
        return "/"
    if not path.startswith("/"):
        return "/"
    if path.startswith("//") or "\\" in path:
        return "/"
    return path
