"""Per-job state: lifecycle, emission counter, frontier, and listeners."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .config import JobConfig
from .frontier import Frontier
from .stats import StatsCollector
from .types import ExtractedRecord, JobEvent, JobStatus


LOGGER = logging.getLogger(__name__)

JobListener = Callable[[JobEvent], None]


class Job:
    """One crawl or gather run.

    The status, the emitted counter, and listener delivery share one
    reentrant lock, so a record can never be delivered after `request_stop`
    returns and exactly one terminal event is ever delivered.

    Listeners are called synchronously with that lock held, so a slow listener
    stalls every worker of the job. Listeners should hand events off quickly;
    `JobEventStream` only enqueues, for consumers that do real work.
    """

    def __init__(self, job_id: str, config: JobConfig) -> None:
        self.id = job_id
        self.config = config

        self.frontier = Frontier(config.max_requests)
        self.stats = StatsCollector()

        self._lock = threading.RLock()
        self._status = JobStatus.RUNNING
        self._emitted_count = 0
        self._terminal_sent = False
        self._listeners: list[JobListener] = []

        self.error: str | None = None
        self.thread: threading.Thread | None = None

    def __repr__(self) -> str:
        return (
            f"Job(id={self.id!r}, mode={self.config.mode.value!r}, "
            f"status={self.status.value!r}, emitted={self.emitted_count})"
        )

    @property
    def status(self) -> JobStatus:
        with self._lock:
            return self._status

    @property
    def running(self) -> bool:
        with self._lock:
            return self._status == JobStatus.RUNNING

    @property
    def emitted_count(self) -> int:
        with self._lock:
            return self._emitted_count

    @property
    def limit_reached(self) -> bool:
        with self._lock:
            return self._emitted_count >= self.config.limit

    def add_listener(self, listener: JobListener) -> bool:
        """Attach a listener; refused once the terminal event has gone out."""

        with self._lock:
            if self._terminal_sent:
                return False
            self._listeners.append(listener)
            return True

    def request_stop(self) -> bool:
        """Move a running job to STOPPED and close its frontier."""

        with self._lock:
            if self._status != JobStatus.RUNNING:
                return False
            self._status = JobStatus.STOPPED
        self.frontier.close()
        return True

    def try_emit(self, record: ExtractedRecord) -> bool:
        """Deliver a record if the job is running and under its limit.

        Reaching the limit closes the frontier so the pool drains.
        """

        with self._lock:
            if self._status != JobStatus.RUNNING:
                return False
            if self._emitted_count >= self.config.limit:
                return False

            self._emitted_count += 1
            self._deliver(JobEvent.for_record(self.id, record))
            limit_reached = self._emitted_count >= self.config.limit

        if limit_reached:
            self.frontier.close()
        return True

    def complete(self) -> JobEvent | None:
        """Send the completion event. A stopped job keeps its STOPPED status."""

        with self._lock:
            if self._terminal_sent:
                return None
            if self._status == JobStatus.RUNNING:
                self._status = JobStatus.COMPLETED
            return self._finish(JobEvent.complete(self.id, self._status, self._summary()))

    def fail(self, message: str) -> JobEvent | None:
        """Send the error event; a running job becomes FAILED."""

        with self._lock:
            if self._terminal_sent:
                return None
            if self._status == JobStatus.RUNNING:
                self._status = JobStatus.FAILED
            self.error = message
        self.frontier.close()

        with self._lock:
            return self._finish(
                JobEvent.error(self.id, message, self._summary(), status=self._status)
            )

    def _summary(self) -> dict:
        self.stats.record_frontier_snapshot(self.frontier.snapshot())
        self.stats.finish()
        return self.stats.to_json()

    def _finish(self, event: JobEvent) -> JobEvent:
        self._terminal_sent = True
        self._deliver(event)
        self._listeners.clear()
        return event

    def _deliver(self, event: JobEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                LOGGER.exception(
                    "[Job %s] Listener %r failed on %s event",
                    self.id,
                    listener,
                    event.kind.value,
                )


__all__ = ["Job", "JobListener"]
