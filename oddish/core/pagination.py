"""Page arithmetic shared by repositories and the FastAPI helpers.

The page count is derived from a live ``count_documents`` on every
request; nothing here caches it.
"""

from __future__ import annotations


def _check_size(size: int) -> None:
    if size <= 0:
        raise ValueError(f"page size must be positive, got {size}")


def total_pages(count: int, size: int) -> int:
    """Return ``ceil(count / size)``, never less than 1.

    An empty result still has one (empty) page.
    """
    _check_size(size)
    pages, remainder = divmod(count, size)
    if remainder > 0:
        pages += 1
    return max(pages, 1)


def normalize_page(page: int) -> int:
    """Clamp page numbers below 1 up to 1.  There is no upper clamp."""
    return page if page >= 1 else 1


def page_skip(page: int, size: int) -> int:
    """Number of documents to skip to reach *page* (1-based)."""
    _check_size(size)
    return (normalize_page(page) - 1) * size
