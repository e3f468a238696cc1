from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing together with the page count for the filter."""

    items: list[T]
    page: int
    size: int
    total_pages: int
