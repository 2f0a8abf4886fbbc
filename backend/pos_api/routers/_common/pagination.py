"""
Standardized pagination for list endpoints.

Usage:
    from pos_api.routers._common import Pagination, get_pagination

    @router.get("/clients")
    def list_clients(pagination: Pagination = Depends(get_pagination), ...):
        filters = ClientFilters(limit=pagination.limit, offset=pagination.offset)
        ...
        return Page(items=items, pagination=pagination.info(total))
"""

from dataclasses import dataclass

from fastapi import Query

from pos_shared.config.constants import Limits
from pos_shared.utils.schemas import PaginationInfo


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        limit: Maximum items per page (1 to max_limit)
        offset: Number of items to skip
        max_limit: Maximum allowed limit
    """

    limit: int
    offset: int
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        self.limit = min(max(1, self.limit), self.max_limit)
        self.offset = max(0, self.offset)

    def info(self, total: int | None = None) -> PaginationInfo:
        return PaginationInfo(limit=self.limit, offset=self.offset, total=total)


def get_pagination(
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of items to skip",
    ),
) -> Pagination:
    """Standard pagination dependency."""
    return Pagination(limit=limit, offset=offset)
