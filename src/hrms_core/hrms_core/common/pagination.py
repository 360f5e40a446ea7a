from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from ..core.constants import DEFAULT_LIMIT, DEFAULT_PAGE
from ..core.exceptions import InvalidPagination

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def of(cls, page: Optional[int] = None, limit: Optional[int] = None) -> "PageRequest":
        page = DEFAULT_PAGE if page is None else int(page)
        limit = DEFAULT_LIMIT if limit is None else int(limit)
        if page < 1:
            raise InvalidPagination("page must be >= 1")
        if limit < 1:
            raise InvalidPagination("limit must be > 0")
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_pages", math.ceil(self.total / self.limit) if self.limit else 0)

    def pagination(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }
