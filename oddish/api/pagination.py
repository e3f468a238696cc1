"""FastAPI helpers for paged listing endpoints.

Usage::

    @router.get("/users", response_model=Page[User])
    async def list_users(params: PageParams = Depends()) -> Page[User]:
        return await paginate(UserRepository.from_db(db), params)
"""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

from fastapi import HTTPException, Query

from oddish.core.config import settings
from oddish.core.pagination import normalize_page
from oddish.models.common import Page
from oddish.repositories.base import BaseRepository, Sort

T = TypeVar("T")


class PageParams:
    """Query parameters ``page`` and ``size`` for a listing endpoint.

    ``page`` is not range-checked: values below 1 are served as page 1 and a
    page past the end comes back empty.
    """

    def __init__(
        self,
        page: int = Query(1, description="1-based page number"),
        size: int = Query(
            settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Documents per page",
        ),
    ) -> None:
        self.page = page
        self.size = size


async def paginate(
    repo: BaseRepository[T],
    params: PageParams,
    filter: Mapping[str, Any] | None = None,
    sort: Sort | None = None,
) -> Page[T]:
    """Fetch the page described by *params* from *repo*.

    Driver errors become a 500 response.  The repository has already
    logged them where they were raised.
    """
    try:
        items, pages = await repo.find_page(filter, params.page, params.size, sort)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return Page(
        items=items,
        page=normalize_page(params.page),
        size=params.size,
        total_pages=pages,
    )
