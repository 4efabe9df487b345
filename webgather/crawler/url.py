"""URL canonicalization for frontier dedup, plus href resolution."""

from __future__ import annotations

import posixpath
from urllib.parse import SplitResult, parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


HTTP_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}

# hrefs that never lead to a fetchable page.
NON_NAVIGATIONAL_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")

TRACKING_PARAM_PREFIX = "utm_"
TRACKING_PARAMS = frozenset(
    {"fbclid", "gclid", "igshid", "mc_cid", "mc_eid", "mkt_tok", "ref_src"}
)


def _split(url: str) -> SplitResult | None:
    """`urlsplit`, or `None` for URLs it rejects (e.g. a broken IPv6 host)."""

    try:
        return urlsplit(url)
    except ValueError:
        return None


def host_from_url(url: str) -> str:
    """Lowercased host with any leading `www.` removed; empty when absent."""

    parts = _split(url)
    host = ((parts.hostname if parts else None) or "").strip(".").lower()
    return host[4:] if host.startswith("www.") else host


def is_http_url(url: str) -> bool:
    parts = _split(url)
    return parts is not None and parts.scheme.lower() in HTTP_SCHEMES and bool(parts.netloc)


def is_same_host(url: str, other: str) -> bool:
    host = host_from_url(url)
    return bool(host) and host == host_from_url(other)


def _is_tracking_param(name: str) -> bool:
    lowered = name.strip().lower()
    return lowered.startswith(TRACKING_PARAM_PREFIX) or lowered in TRACKING_PARAMS


def _canonical_netloc(parts: SplitResult, scheme: str) -> str | None:
    host = (parts.hostname or "").lower()
    if not host:
        return None
    try:
        port = parts.port
    except ValueError:
        return None

    netloc = host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"

    userinfo, _, _ = parts.netloc.rpartition("@")
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return netloc


def _canonical_path(path: str) -> str:
    # A single leading slash keeps normpath from preserving a "//" prefix.
    return posixpath.normpath("/" + path.lstrip("/"))


def _canonical_query(query: str) -> str:
    pairs = [
        (name, value)
        for name, value in parse_qsl(query, keep_blank_values=True)
        if not _is_tracking_param(name)
    ]
    return urlencode(sorted(pairs))


def normalize_url(url: str | None) -> str | None:
    """Canonical form of an absolute http(s) URL, or `None` if it has none.

    Scheme and host are lowercased and default ports dropped. Dot segments,
    repeated and trailing slashes, fragments, and tracking parameters are
    removed. The remaining query parameters are sorted.
    """

    raw = (url or "").strip()
    if not raw:
        return None

    parts = _split(raw)
    if parts is None:
        return None

    scheme = parts.scheme.lower()
    if scheme not in HTTP_SCHEMES:
        return None

    netloc = _canonical_netloc(parts, scheme)
    if netloc is None:
        return None

    return urlunsplit(
        (scheme, netloc, _canonical_path(parts.path), _canonical_query(parts.query), "")
    )


def resolve_url(base_url: str, href: str | None) -> str | None:
    """Resolve an href found on `base_url` into a canonical absolute URL."""

    if href is None:
        return None

    candidate = str(href).strip()
    if not candidate or candidate.lower().startswith(NON_NAVIGATIONAL_PREFIXES):
        return None

    try:
        joined = urljoin(base_url, candidate)
    except ValueError:
        return None
    return normalize_url(joined)


__all__ = [
    "HTTP_SCHEMES",
    "NON_NAVIGATIONAL_PREFIXES",
    "TRACKING_PARAMS",
    "host_from_url",
    "is_http_url",
    "is_same_host",
    "normalize_url",
    "resolve_url",
]
