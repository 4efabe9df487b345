"""Typed engine and job configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_LIMIT,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_SEARCH_PAGES,
    DEFAULT_RATE_LIMIT_SECONDS,
    DEFAULT_RESPECT_ROBOTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_SAME_HOST_ONLY,
    DEFAULT_SEARCH_PAGE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    GATHER_REQUEST_MULTIPLIER,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .errors import InvalidConfig
from .relevance import parse_keywords
from .types import JobMode, JSONDict, SelectorKind
from .url import normalize_url


LOGGER = logging.getLogger(__name__)

# Substring aliases accepted in selector requests, checked in order.
SELECTOR_ALIASES: tuple[tuple[str, SelectorKind], ...] = (
    ("heading", SelectorKind.HEADINGS),
    ("paragraph", SelectorKind.TEXT),
    ("text", SelectorKind.TEXT),
    ("meta", SelectorKind.META),
    ("image", SelectorKind.IMAGES),
    ("img", SelectorKind.IMAGES),
    ("link", SelectorKind.LINKS),
    ("url", SelectorKind.LINKS),
)


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def parse_limit(value: Any, default: int = DEFAULT_LIMIT) -> int:
    """Parse a requested limit, falling back to `default` when unusable."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, float):
        parsed = int(value) if value.is_integer() else None
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed <= 0:
        return default
    return parsed


def normalize_selectors(value: str | Iterable[str] | None) -> frozenset[SelectorKind]:
    """Map requested selector names onto extractor kinds.

    Accepts a list or a comma-separated string. Names are case-folded and
    trimmed, then matched by alias (`heading`, `paragraph`, `image`, `url`, ...).
    """

    if value is None:
        return frozenset()

    if isinstance(value, str):
        raw_items: Iterable[str] = value.split(",")
    else:
        raw_items = (str(item) for item in value)

    kinds: set[SelectorKind] = set()
    for item in raw_items:
        name = item.strip().lower()
        if not name:
            continue
        matched = [kind for alias, kind in SELECTOR_ALIASES if alias in name]
        if not matched:
            LOGGER.warning("Ignoring unknown selector %r", item)
            continue
        kinds.update(matched)
    return frozenset(kinds)


def _coerce_keyword_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return ", ".join(str(item).strip() for item in value if str(item).strip())


@dataclass(frozen=True, slots=True)
class JobConfig:
    """One validated job request (site crawl or search-driven gather)."""

    mode: JobMode
    limit: int = DEFAULT_LIMIT
    url: str | None = None
    topic: str = ""
    keyword_text: str = ""
    selectors: frozenset[SelectorKind] = frozenset()

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise InvalidConfig("limit must be a positive integer")

        if self.mode == JobMode.SITE:
            if not self.url or not self.url.strip():
                raise InvalidConfig("Site jobs require a URL")
            if normalize_url(self.url) is None:
                raise InvalidConfig(f"Unsupported or malformed URL: {self.url!r}")
        elif not self.topic.strip() and not self.keyword_text.strip():
            raise InvalidConfig("No topic or keywords provided for search.")

    @property
    def keywords(self) -> list[str]:
        """Lowercase filter terms parsed from `keyword_text`."""

        return parse_keywords(self.keyword_text)

    @property
    def max_requests(self) -> int:
        """Total frontier items this job may dequeue."""

        if self.mode == JobMode.GATHER:
            return self.limit * GATHER_REQUEST_MULTIPLIER
        return self.limit

    def wants(self, kind: SelectorKind) -> bool:
        return kind in self.selectors

    @classmethod
    def from_request(
        cls,
        payload: Mapping[str, Any],
        *,
        default_limit: int = DEFAULT_LIMIT,
    ) -> "JobConfig":
        """Build a job config from an API-style request mapping.

        `mode` defaults to `site` when a URL is present and `gather` otherwise.
        """

        raw_mode = payload.get("mode") or payload.get("type")
        if raw_mode is None:
            raw_mode = JobMode.SITE.value if payload.get("url") else JobMode.GATHER.value
        try:
            mode = JobMode(str(raw_mode).strip().lower())
        except ValueError as exc:
            raise InvalidConfig(f"Unknown job mode: {raw_mode!r}") from exc

        url = payload.get("url")
        return cls(
            mode=mode,
            limit=parse_limit(payload.get("limit"), default_limit),
            url=str(url).strip() if url is not None else None,
            topic=str(payload.get("topic") or "").strip(),
            keyword_text=_coerce_keyword_text(payload.get("keywords")),
            selectors=normalize_selectors(payload.get("selectors")),
        )

    def to_dict(self) -> JSONDict:
        return {
            "mode": self.mode.value,
            "limit": self.limit,
            "url": self.url,
            "topic": self.topic,
            "keywords": self.keyword_text,
            "selectors": sorted(kind.value for kind in self.selectors),
        }


@dataclass(slots=True)
class EngineConfig:
    """Process-wide settings for fetch policy and worker pools."""

    concurrency: int = DEFAULT_CONCURRENCY
    default_limit: int = DEFAULT_LIMIT

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    rate_limit_seconds: float = DEFAULT_RATE_LIMIT_SECONDS
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))
    respect_robots: bool = DEFAULT_RESPECT_ROBOTS

    same_host_only: bool = DEFAULT_SAME_HOST_ONLY
    search_page_size: int = DEFAULT_SEARCH_PAGE_SIZE
    max_search_pages: int = DEFAULT_MAX_SEARCH_PAGES

    def __post_init__(self) -> None:
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.default_limit <= 0:
            raise ValueError("default_limit must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.rate_limit_seconds < 0:
            raise ValueError("rate_limit_seconds must be >= 0")
        if self.max_body_bytes <= 0:
            raise ValueError("max_body_bytes must be > 0")
        if self.search_page_size <= 0:
            raise ValueError("search_page_size must be > 0")
        if self.max_search_pages <= 0:
            raise ValueError("max_search_pages must be > 0")

    def headers_for(self, url: str) -> dict[str, str]:
        """Return request headers for a URL."""

        merged: dict[str, str] = dict(self.default_headers)
        merged.setdefault("User-Agent", self.user_agent)
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for logs and reproducibility."""

        return {
            "concurrency": self.concurrency,
            "default_limit": self.default_limit,
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "rate_limit_seconds": self.rate_limit_seconds,
            "max_body_bytes": self.max_body_bytes,
            "user_agent": self.user_agent,
            "default_headers": dict(self.default_headers),
            "respect_robots": self.respect_robots,
            "same_host_only": self.same_host_only,
            "search_page_size": self.search_page_size,
            "max_search_pages": self.max_search_pages,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EngineConfig":
        """Build config from a parsed dictionary; missing keys use defaults."""

        return cls(
            concurrency=_as_int(payload.get("concurrency", DEFAULT_CONCURRENCY), "concurrency"),
            default_limit=_as_int(payload.get("default_limit", DEFAULT_LIMIT), "default_limit"),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            retries=_as_int(payload.get("retries", DEFAULT_RETRIES), "retries"),
            retry_backoff_seconds=_as_float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS),
                "retry_backoff_seconds",
            ),
            rate_limit_seconds=_as_float(
                payload.get("rate_limit_seconds", DEFAULT_RATE_LIMIT_SECONDS),
                "rate_limit_seconds",
            ),
            max_body_bytes=_as_int(
                payload.get("max_body_bytes", DEFAULT_MAX_BODY_BYTES),
                "max_body_bytes",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            respect_robots=_as_bool(
                payload.get("respect_robots", DEFAULT_RESPECT_ROBOTS),
                "respect_robots",
            ),
            same_host_only=_as_bool(
                payload.get("same_host_only", DEFAULT_SAME_HOST_ONLY),
                "same_host_only",
            ),
            search_page_size=_as_int(
                payload.get("search_page_size", DEFAULT_SEARCH_PAGE_SIZE),
                "search_page_size",
            ),
            max_search_pages=_as_int(
                payload.get("max_search_pages", DEFAULT_MAX_SEARCH_PAGES),
                "max_search_pages",
            ),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> EngineConfig:
    """Load EngineConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return EngineConfig.from_dict(payload)


def save_config(config: EngineConfig, path: str | Path) -> None:
    """Save EngineConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "EngineConfig",
    "JobConfig",
    "SELECTOR_ALIASES",
    "load_config",
    "normalize_selectors",
    "parse_limit",
    "save_config",
]
