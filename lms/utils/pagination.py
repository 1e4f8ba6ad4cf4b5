"""
Pagination query parameters shared by list endpoints
"""
from dataclasses import dataclass
from fastapi import Query

from lms.config import settings


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1)
) -> Pagination:
    """Clamp the page size instead of rejecting oversized requests"""
    return Pagination(page=page, limit=min(limit, settings.MAX_PAGE_SIZE))
