"""Page/limit pagination for the admin list endpoints."""

import math
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PaginationParams:
    """A 1-indexed page request.

    Out-of-range values are clamped rather than rejected: ``page`` to at
    least 1 and ``limit`` into ``[1, max_limit]``.
    """

    page: int = 1
    limit: int = DEFAULT_LIMIT
    max_limit: int = MAX_LIMIT

    def __post_init__(self):
        self.page = max(self.page, 1)
        self.limit = min(max(self.limit, 1), self.max_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query_params(
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        max_limit: int = MAX_LIMIT,
    ) -> "PaginationParams":
        """Build params from optional query values, falling back to defaults."""
        return cls(page=page or 1, limit=limit or DEFAULT_LIMIT, max_limit=max_limit)


@dataclass
class PaginatedResult(Generic[T]):
    """One page of rows plus the total row count."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def pagination_dict(self) -> dict[str, Any]:
        """Page metadata as the admin console reads it."""
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def paginate_query(session: Session, query: Select, params: PaginationParams) -> PaginatedResult:
    """Run ``query`` for one page and count all of its rows.

    ``query`` should already be ordered; the ordering is dropped for the count.
    """
    total = session.execute(
        select(func.count()).select_from(query.order_by(None).subquery())
    ).scalar_one()
    rows = session.execute(query.limit(params.limit).offset(params.offset)).scalars().all()
    return PaginatedResult(items=list(rows), total=total, page=params.page, limit=params.limit)
