from dataclasses import dataclass
from math import ceil
from typing import Callable, List, Sequence, TypeVar

from counterdesk.core.errors import ValidationError
from counterdesk.v1_0.entities import PageDTO

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class PageRequest:
    """1-based page number and page size, validated on construction."""
    page: int
    limit: int

    def __post_init__(self) -> None:
        if not isinstance(self.page, int) or self.page < 1:
            raise ValidationError("page must be >= 1", field="page", value=self.page)
        if not isinstance(self.limit, int) or self.limit < 1:
            raise ValidationError("limit must be >= 1", field="limit", value=self.limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def total_pages(total: int, limit: int) -> int:
    return ceil(total / limit) if total > 0 else 0


def build_page(rows: Sequence[T], total: int, req: PageRequest, mapper: Callable[[T], R]) -> PageDTO[R]:
    items: List[R] = [mapper(r) for r in rows]
    pages = total_pages(total, req.limit)
    return PageDTO(
        items=items,
        page=req.page,
        limit=req.limit,
        total=total,
        total_pages=pages,
        has_next=req.page < pages,
        has_prev=req.page > 1,
    )
