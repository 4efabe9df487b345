"""Paginated seed planning for search-driven gather jobs."""

from __future__ import annotations

import math
from urllib.parse import quote

from .constants import (
    DEFAULT_MAX_SEARCH_PAGES,
    DEFAULT_SEARCH_PAGE_SIZE,
    SEARCH_ENDPOINT,
    SEARCH_RESULTS_PER_LIMIT_STEP,
)
from .errors import JobFatalError


def build_query(topic: str | None, keywords: str | None) -> str:
    """Join topic and keyword text into one whitespace-collapsed query."""

    return " ".join(f"{topic or ''} {keywords or ''}".split())


def search_page_count(limit: int, *, max_pages: int = DEFAULT_MAX_SEARCH_PAGES) -> int:
    """Number of result pages to fetch: `min(max_pages, ceil(limit / 5))`."""

    if limit <= 0:
        return 0
    return min(max_pages, math.ceil(limit / SEARCH_RESULTS_PER_LIMIT_STEP))


def plan_search_urls(
    topic: str | None,
    keywords: str | None,
    limit: int,
    *,
    page_size: int = DEFAULT_SEARCH_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_SEARCH_PAGES,
) -> list[str]:
    """Build the paginated search-result URLs that seed a gather job."""

    query = build_query(topic, keywords)
    if not query:
        raise JobFatalError("Cannot build a search query without a topic or keywords")

    pages = search_page_count(limit, max_pages=max_pages)
    if pages <= 0:
        raise JobFatalError(f"No search pages planned for limit={limit}")

    encoded = quote(query, safe="")
    return [f"{SEARCH_ENDPOINT}?q={encoded}&s={page * page_size}" for page in range(pages)]


__all__ = ["build_query", "plan_search_urls", "search_page_count"]
