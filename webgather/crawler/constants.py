"""Default values shared by config, fetcher, planner, and worker pool."""

from __future__ import annotations


DEFAULT_LIMIT = 50
DEFAULT_CONCURRENCY = 4

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRIES = 0
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_RATE_LIMIT_SECONDS = 0.0
DEFAULT_RESPECT_ROBOTS = False
DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024
DEFAULT_SAME_HOST_ONLY = False

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
}

# Gather jobs fetch mostly intermediate search-result pages.
GATHER_REQUEST_MULTIPLIER = 5

SEARCH_PROVIDER_ORIGIN = "https://duckduckgo.com"
SEARCH_PROVIDER_HOST = "duckduckgo.com"
SEARCH_ENDPOINT = f"{SEARCH_PROVIDER_ORIGIN}/html/"
SEARCH_REDIRECT_PATH_PREFIX = "/l/"
SEARCH_REDIRECT_TARGET_PARAM = "uddg"
SEARCH_RESULT_SELECTORS = (".result__a", ".result__title a")
DEFAULT_SEARCH_PAGE_SIZE = 30
DEFAULT_MAX_SEARCH_PAGES = 5
SEARCH_RESULTS_PER_LIMIT_STEP = 5

GATHER_MIN_TEXT_CHARS = 20
GATHER_MAX_TEXT_ITEMS = 10
GATHER_MAX_IMAGES = 10
GATHER_MAX_LINKS = 20

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")


__all__ = [
    "DEFAULT_CONCURRENCY",
    "DEFAULT_HTTP_HEADERS",
    "DEFAULT_LIMIT",
    "DEFAULT_MAX_BODY_BYTES",
    "DEFAULT_MAX_SEARCH_PAGES",
    "DEFAULT_RATE_LIMIT_SECONDS",
    "DEFAULT_RESPECT_ROBOTS",
    "DEFAULT_RETRIES",
    "DEFAULT_RETRY_BACKOFF_SECONDS",
    "DEFAULT_SAME_HOST_ONLY",
    "DEFAULT_SEARCH_PAGE_SIZE",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "GATHER_MAX_IMAGES",
    "GATHER_MAX_LINKS",
    "GATHER_MAX_TEXT_ITEMS",
    "GATHER_MIN_TEXT_CHARS",
    "GATHER_REQUEST_MULTIPLIER",
    "JSON_INDENT",
    "SEARCH_ENDPOINT",
    "SEARCH_PROVIDER_HOST",
    "SEARCH_PROVIDER_ORIGIN",
    "SEARCH_REDIRECT_PATH_PREFIX",
    "SEARCH_REDIRECT_TARGET_PARAM",
    "SEARCH_RESULT_SELECTORS",
    "SEARCH_RESULTS_PER_LIMIT_STEP",
    "SUPPORTED_CONFIG_SUFFIXES",
]
