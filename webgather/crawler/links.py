"""Outbound link discovery for site pages and search-result pages."""

from __future__ import annotations

from urllib.parse import parse_qs, urljoin, urlsplit

from bs4 import BeautifulSoup

from .constants import (
    SEARCH_PROVIDER_HOST,
    SEARCH_PROVIDER_ORIGIN,
    SEARCH_REDIRECT_PATH_PREFIX,
    SEARCH_REDIRECT_TARGET_PARAM,
    SEARCH_RESULT_SELECTORS,
)
from .url import host_from_url, is_http_url, is_same_host, resolve_url


def _is_provider_host(url: str) -> bool:
    host = host_from_url(url)
    return host == SEARCH_PROVIDER_HOST or host.endswith("." + SEARCH_PROVIDER_HOST)


def site_links(
    soup: BeautifulSoup,
    *,
    base_url: str,
    scope_url: str | None = None,
) -> list[str]:
    """Resolve every anchor on a page into absolute, normalized candidates.

    Non-navigational hrefs (fragments, `mailto:`, `javascript:`) are dropped.
    With `scope_url`, links leaving that URL's host are dropped too.
    Order follows the document; repeats are removed.
    """

    out: list[str] = []
    seen: set[str] = set()

    for element in soup.find_all("a"):
        resolved = resolve_url(base_url, element.get("href"))
        if not resolved or resolved in seen:
            continue
        if scope_url and not is_same_host(resolved, scope_url):
            continue
        seen.add(resolved)
        out.append(resolved)

    return out


def unwrap_redirect(link: str) -> str | None:
    """Return the real destination behind a provider redirect link.

    Links that are not redirect wrappers come back unchanged. A wrapper
    without a destination parameter, or a link `urllib` cannot parse, is
    unresolvable and yields `None`.
    """

    try:
        absolute = urljoin(SEARCH_PROVIDER_ORIGIN + "/", link.strip())
        parsed = urlsplit(absolute)
    except ValueError:
        return None

    if not (_is_provider_host(absolute) and parsed.path.startswith(SEARCH_REDIRECT_PATH_PREFIX)):
        return link.strip()

    targets = parse_qs(parsed.query).get(SEARCH_REDIRECT_TARGET_PARAM)
    if not targets or not targets[0].strip():
        return None
    return targets[0].strip()


def search_result_links(soup: BeautifulSoup) -> list[str]:
    """Mine result anchors from a search-results page.

    Redirect wrappers are unwrapped; only absolute http(s) targets that do not
    point back at the search provider are kept.
    """

    hrefs: list[str] = []
    for selector in SEARCH_RESULT_SELECTORS:
        for element in soup.select(selector):
            href = element.get("href")
            if href:
                hrefs.append(str(href))

    out: list[str] = []
    seen: set[str] = set()
    for href in hrefs:
        if href in seen:
            continue
        seen.add(href)

        target = unwrap_redirect(href)
        if target is None:
            continue
        if not is_http_url(target) or _is_provider_host(target):
            continue
        if target in out:
            continue
        out.append(target)

    return out


__all__ = ["search_result_links", "site_links", "unwrap_redirect"]
