"""Thread-safe per-job frontier queue with dedup and request budget."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .types import FrontierItem, FrontierLabel
from .url import normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID_URL = "skipped_invalid_url"
    SKIPPED_SEEN = "skipped_seen"
    SKIPPED_CLOSED = "skipped_closed"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    normalized_url: str | None = None
    item: FrontierItem | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """FIFO frontier shared by one job's workers.

    - `push`, `pop` and `task_done` are atomic with respect to each other.
    - URLs are marked seen at enqueue time, keyed by normalized URL.
    - At most `max_requests` items are ever handed out by `pop`.
    - `pop` returns `None` once the frontier is closed, the budget is spent,
      or the queue is empty with no item still being processed.
    """

    def __init__(self, max_requests: int) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")

        self.max_requests = max_requests

        self._queue: deque[FrontierItem] = deque()
        self._cond = threading.Condition(threading.Lock())

        self._seen_urls: set[str] = set()
        self._outstanding = 0
        self._closed = False

        self._enqueued_count = 0
        self._dequeued_count = 0
        self._skipped_seen_count = 0
        self._skipped_invalid_count = 0
        self._skipped_closed_count = 0

    def seed(
        self,
        urls: Iterable[str],
        *,
        label: FrontierLabel = FrontierLabel.CONTENT,
    ) -> list[EnqueueResult]:
        """Insert initial URLs, dropping invalid ones and duplicates."""

        return [self.push(url, label=label) for url in urls]

    def push(
        self,
        url: str,
        *,
        label: FrontierLabel = FrontierLabel.CONTENT,
        referrer: str | None = None,
    ) -> EnqueueResult:
        """Attempt to enqueue one URL."""

        normalized = normalize_url(url)

        with self._cond:
            if not normalized:
                self._skipped_invalid_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_INVALID_URL)

            if self._closed:
                self._skipped_closed_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_CLOSED, normalized_url=normalized)

            if normalized in self._seen_urls:
                self._skipped_seen_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_SEEN, normalized_url=normalized)

            self._seen_urls.add(normalized)
            item = FrontierItem(url=normalized, label=label, referrer=referrer)
            self._queue.append(item)
            self._enqueued_count += 1
            self._cond.notify()

        return EnqueueResult(EnqueueStatus.ENQUEUED, normalized_url=normalized, item=item)

    def push_many(
        self,
        urls: Iterable[str],
        *,
        label: FrontierLabel = FrontierLabel.CONTENT,
        referrer: str | None = None,
    ) -> list[EnqueueResult]:
        """Attempt to enqueue multiple URLs, preserving input order."""

        return [self.push(url, label=label, referrer=referrer) for url in urls]

    def pop(self, timeout: float | None = None) -> FrontierItem | None:
        """Take the next item for a worker, blocking while others may add work.

        Every returned item must be acknowledged with `task_done`. With a
        timeout, `None` is also returned when nothing arrived in time; callers
        tell the two apart with `exhausted`.
        """

        with self._cond:
            while True:
                if self._exhausted_locked():
                    self._cond.notify_all()
                    return None

                if self._queue:
                    item = self._queue.popleft()
                    self._outstanding += 1
                    self._dequeued_count += 1
                    return item

                if not self._cond.wait(timeout=timeout):
                    return None

    def task_done(self) -> None:
        """Mark one popped item as finished."""

        with self._cond:
            if self._outstanding <= 0:
                raise ValueError("task_done() called more times than pop()")
            self._outstanding -= 1
            self._cond.notify_all()

    def close(self) -> None:
        """Close frontier to future enqueue attempts and wake idle workers."""

        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def exhausted(self) -> bool:
        """Whether `pop` can never hand out another item."""

        with self._cond:
            return self._exhausted_locked()

    def _exhausted_locked(self) -> bool:
        if self._closed:
            return True
        if self._dequeued_count >= self.max_requests:
            return True
        return not self._queue and self._outstanding == 0

    def qsize(self) -> int:
        with self._cond:
            return len(self._queue)

    def seen_urls(self) -> set[str]:
        """Return snapshot of URLs ever accepted into this frontier."""

        with self._cond:
            return set(self._seen_urls)

    def snapshot(self) -> dict[str, int | bool]:
        """Return frontier counters for logs/stats reporting."""

        with self._cond:
            return {
                "closed": self._closed,
                "queue_size": len(self._queue),
                "outstanding": self._outstanding,
                "seen_urls": len(self._seen_urls),
                "max_requests": self.max_requests,
                "enqueued": self._enqueued_count,
                "dequeued": self._dequeued_count,
                "skipped_seen": self._skipped_seen_count,
                "skipped_invalid": self._skipped_invalid_count,
                "skipped_closed": self._skipped_closed_count,
            }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
