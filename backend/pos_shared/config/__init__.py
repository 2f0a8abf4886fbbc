"""
Configuration module: Settings, logging, constants.
"""

from pos_shared.config.settings import settings, get_settings, DATABASE_URL
from pos_shared.config.logging import get_logger, setup_logging, mask_email
from pos_shared.config.constants import (
    Roles,
    ItemStatus,
    TableStatus,
    OrderStatus,
    PaymentMethod,
    Unit,
    Limits,
    MANAGEMENT_ROLES,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    "mask_email",
    # constants
    "Roles",
    "ItemStatus",
    "TableStatus",
    "OrderStatus",
    "PaymentMethod",
    "Unit",
    "Limits",
    "MANAGEMENT_ROLES",
]
