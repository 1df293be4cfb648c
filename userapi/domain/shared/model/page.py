"""Page of results for offset pagination."""

from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


def total_pages_for(total: int, page_size: int) -> int:
    """ceil(total / page_size) in integer arithmetic. Zero rows means zero pages."""
    return -(-total // page_size)


def offset_for(page: int, page_size: int) -> int:
    """Row offset of a 1-based page."""
    return (page - 1) * page_size


class Page(BaseModel, Generic[T]):
    """One page of an ordered listing.

    Page bounds are informational: a page past ``total_pages`` is valid and
    simply carries no items.
    """

    model_config = ConfigDict(frozen=True)

    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, items: Sequence[T], total: int, page: int, page_size: int) -> "Page[T]":
        return cls(
            items=list(items),
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages_for(total, page_size),
        )
