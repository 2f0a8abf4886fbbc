"""
Common utilities shared across routers.
"""

from .pagination import Pagination, get_pagination
from .payload import update_payload

__all__ = [
    "Pagination",
    "get_pagination",
    "update_payload",
]
