"""HTTP fetching on `requests` with timeout, retry, and politeness policies."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import requests

from .config import EngineConfig
from .types import FetchResult
from .url import host_from_url, normalize_url


LOGGER = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
ROBOTS_TIMEOUT_SECONDS = 10.0

# Error prefixes that another attempt cannot fix.
PERMANENT_ERRORS = ("BodyTooLarge", "TooManyRedirects", "InvalidURL", "FetcherClosed")
RETRYABLE_STATUS_CODES = frozenset({408, 429})


class PageFetcher(Protocol):
    """Capability the worker pool needs: one URL in, one `FetchResult` out."""

    def fetch(self, url: str) -> FetchResult: ...

    def close(self) -> None: ...


def _failed(
    url: str,
    error: str,
    *,
    final_url: str | None = None,
    status_code: int | None = None,
    content_type: str | None = None,
    elapsed_ms: int | None = None,
    attempts: int = 1,
) -> FetchResult:
    return FetchResult(
        requested_url=url,
        final_url=final_url,
        status_code=status_code,
        content_type=content_type,
        body=None,
        elapsed_ms=elapsed_ms,
        attempts=attempts,
        error=error,
    )


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retries with a linearly growing pause between attempts."""

    retries: int = 0
    backoff_seconds: float = 0.0

    @property
    def attempts(self) -> int:
        return max(1, self.retries + 1)

    def should_retry(self, result: FetchResult) -> bool:
        if result.error is not None:
            return not result.error.startswith(PERMANENT_ERRORS)
        if result.status_code is None:
            return True
        return result.status_code in RETRYABLE_STATUS_CODES or result.status_code >= 500

    def pause(self, attempt: int) -> None:
        if self.backoff_seconds > 0:
            time.sleep(self.backoff_seconds * attempt)


class _HostThrottle:
    """Spaces out request starts to the same host by `interval` seconds."""

    def __init__(self, interval: float) -> None:
        self.interval = max(0.0, interval)
        self._lock = threading.Lock()
        self._next_slot: dict[str, float] = {}

    def wait(self, url: str) -> None:
        if self.interval <= 0:
            return

        host = host_from_url(url)
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot.get(host, 0.0))
            self._next_slot[host] = slot + self.interval

        delay = slot - now
        if delay > 0:
            time.sleep(delay)


class _RobotsRules:
    """Per-origin robots.txt cache. Unreadable files allow everything."""

    def __init__(self, user_agent: str, timeout: float) -> None:
        self.user_agent = user_agent or "*"
        self.timeout = timeout
        self._lock = threading.Lock()
        self._parsers: dict[str, RobotFileParser | None] = {}

    def allows(self, url: str) -> bool:
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"

        with self._lock:
            known = origin in self._parsers
            parser = self._parsers.get(origin)
        if not known:
            parser = self._load(origin)
            with self._lock:
                self._parsers[origin] = parser

        return parser is None or parser.can_fetch(self.user_agent, url)

    def _load(self, origin: str) -> RobotFileParser | None:
        robots_url = f"{origin}/robots.txt"
        try:
            response = requests.get(
                robots_url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            LOGGER.debug("robots.txt unavailable at %s: %s", robots_url, exc)
            return None

        if response.status_code >= 400:
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        return parser


class Fetcher:
    """Fetch URLs with `requests`.

    One `requests.Session` is kept per worker thread. Failures are returned
    as `FetchResult.error` rather than raised, so one bad host never stops a
    worker.
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self.retry_policy = RetryPolicy(config.retries, max(0.0, config.retry_backoff_seconds))

        self._throttle = _HostThrottle(config.rate_limit_seconds)
        self._robots = (
            _RobotsRules(config.user_agent, min(ROBOTS_TIMEOUT_SECONDS, config.timeout_seconds))
            if config.respect_robots
            else None
        )

        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._closed = threading.Event()
        self._sessions_lock = threading.Lock()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def fetch(self, url: str) -> FetchResult:
        """Fetch one URL, retrying transient failures per the retry policy."""

        target = normalize_url(url)
        if target is None:
            return _failed(url, "InvalidURL: invalid or unsupported URL")

        if self._robots is not None and not self.closed and not self._robots.allows(target):
            return _failed(target, "RobotsDisallowed: blocked by robots.txt")

        result = _failed(target, "FetcherClosed: fetcher is closed")
        for attempt in range(1, self.retry_policy.attempts + 1):
            if self.closed:
                return _failed(target, "FetcherClosed: fetcher is closed", attempts=attempt)

            result = self._request(target)
            result.attempts = attempt
            if not self.retry_policy.should_retry(result):
                break
            if attempt < self.retry_policy.attempts:
                LOGGER.debug("Retrying %s after: %s", target, result.failure_reason)
                self.retry_policy.pause(attempt)

        return result

    def close(self) -> None:
        """Close all per-thread sessions; later fetches fail fast."""

        self._closed.set()
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _request(self, url: str) -> FetchResult:
        self._throttle.wait(url)
        started = time.perf_counter()

        def elapsed() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            with self._session().get(
                url,
                headers=self.config.headers_for(url),
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
                stream=True,
            ) as response:
                meta = {
                    "final_url": response.url or url,
                    "status_code": response.status_code,
                    "content_type": response.headers.get("Content-Type"),
                }
                body = self._read_capped(response)
                if body is None:
                    return _failed(
                        url,
                        f"BodyTooLarge: exceeds {self.config.max_body_bytes} bytes",
                        elapsed_ms=elapsed(),
                        **meta,
                    )
                return FetchResult(requested_url=url, body=body, elapsed_ms=elapsed(), **meta)
        except requests.RequestException as exc:
            return _failed(url, f"{exc.__class__.__name__}: {exc}", elapsed_ms=elapsed())

    def _read_capped(self, response: requests.Response) -> bytes | None:
        """Read the body in chunks; `None` once it grows past `max_body_bytes`."""

        buffer = bytearray()
        for chunk in response.iter_content(chunk_size=READ_CHUNK_BYTES):
            buffer.extend(chunk)
            if len(buffer) > self.config.max_body_bytes:
                return None
        return bytes(buffer)


__all__ = ["Fetcher", "PageFetcher", "RetryPolicy"]
