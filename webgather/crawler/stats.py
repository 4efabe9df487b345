"""Thread-safe per-job statistics aggregation."""

from __future__ import annotations

import threading
import time
from collections import Counter
from typing import Any, Iterable, Mapping

from .frontier import EnqueueResult, EnqueueStatus
from .types import FetchResult, utc_now_iso


class StatsCollector:
    """Counters for one job, shared by its worker threads.

    The summary produced by `to_json` is attached to the job's terminal event.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

        self.started_at = utc_now_iso()
        self.finished_at: str | None = None
        self._started = time.monotonic()
        self._finished: float | None = None

        self._enqueue: Counter[str] = Counter()
        self._fetch: Counter[str] = Counter()
        self._status_codes: Counter[str] = Counter()
        self._error_types: Counter[str] = Counter()
        self._parse: Counter[str] = Counter()
        self._records: Counter[str] = Counter()
        self._custom: Counter[str] = Counter()
        self._frontier_snapshot: dict[str, int | bool] = {}

    def record_enqueue(self, outcome: EnqueueResult | EnqueueStatus) -> None:
        status = outcome.status if isinstance(outcome, EnqueueResult) else outcome
        with self._lock:
            self._enqueue[status.value] += 1

    def record_enqueue_many(self, outcomes: Iterable[EnqueueResult]) -> None:
        statuses = Counter(outcome.status.value for outcome in outcomes)
        with self._lock:
            self._enqueue.update(statuses)

    def record_frontier_snapshot(self, snapshot: Mapping[str, int | bool]) -> None:
        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def record_fetch(self, result: FetchResult) -> None:
        with self._lock:
            self._fetch["ok" if result.ok else "error"] += 1
            self._fetch["elapsed_ms"] += result.elapsed_ms or 0
            self._fetch["bytes"] += result.content_length or 0
            if result.status_code is not None:
                self._status_codes[str(result.status_code)] += 1
            if result.error:
                self._error_types[result.error.partition(":")[0].strip() or "Unknown"] += 1

    def record_parse(self, ok: bool) -> None:
        with self._lock:
            self._parse["ok" if ok else "error"] += 1

    def record_emitted(self) -> None:
        with self._lock:
            self._records["emitted"] += 1

    def record_rejected(self) -> None:
        """A page failed the keyword filter."""

        with self._lock:
            self._records["rejected"] += 1

    def record_over_limit(self) -> None:
        """An accepted page arrived after the limit was reached."""

        with self._lock:
            self._records["over_limit"] += 1

    def record_handler_error(self) -> None:
        with self._lock:
            self._records["handler_errors"] += 1

    def increment(self, name: str, value: int = 1) -> None:
        if not name or not value:
            return
        with self._lock:
            self._custom[name] += value

    def finish(self) -> None:
        with self._lock:
            if self._finished is None:
                self._finished = time.monotonic()
                self.finished_at = utc_now_iso()

    def to_json(self) -> dict[str, Any]:
        with self._lock:
            end = self._finished if self._finished is not None else time.monotonic()
            fetched = self._fetch["ok"] + self._fetch["error"]
            return {
                "started_at": self.started_at,
                "finished_at": self.finished_at,
                "duration_seconds": round(max(0.0, end - self._started), 3),
                "frontier": {
                    "status_counts": dict(self._enqueue),
                    "snapshot": dict(self._frontier_snapshot),
                },
                "fetch": {
                    "ok": self._fetch["ok"],
                    "error": self._fetch["error"],
                    "status_code_counts": dict(self._status_codes),
                    "error_type_counts": dict(self._error_types),
                    "elapsed_ms_avg": self._fetch["elapsed_ms"] / fetched if fetched else 0.0,
                    "bytes_total": self._fetch["bytes"],
                },
                "parse": {"ok": self._parse["ok"], "error": self._parse["error"]},
                "records": {
                    "emitted": self._records["emitted"],
                    "rejected": self._records["rejected"],
                    "over_limit": self._records["over_limit"],
                },
                "handler_errors": self._records["handler_errors"],
                "custom_counters": dict(self._custom),
            }


__all__ = ["StatsCollector"]
