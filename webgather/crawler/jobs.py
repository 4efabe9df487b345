"""Job registry, lifecycle management, and the per-job event surface."""

from __future__ import annotations

import logging
import queue
import threading
import time
import uuid
from typing import Any, Callable, Iterator, Mapping

from .config import EngineConfig, JobConfig
from .errors import JobFatalError
from .fetcher import Fetcher, PageFetcher
from .job import Job, JobListener
from .parsers import HTMLParser
from .pool import WorkerPool
from .search import plan_search_urls
from .types import EventKind, ExtractedRecord, FrontierLabel, JobEvent, JobMode, JobStatus


LOGGER = logging.getLogger(__name__)

FetcherFactory = Callable[[EngineConfig], PageFetcher]


class JobEventStream:
    """Listener that buffers a job's events for a single consumer.

    Iterating yields events in delivery order and stops after the terminal
    `complete` or `error` event. Delivery is a non-blocking `put`, so a slow
    consumer never holds up the job's workers.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[JobEvent] = queue.Queue()

    def __call__(self, event: JobEvent) -> None:
        self._queue.put(event)

    def get(self, timeout: float | None = None) -> JobEvent:
        """Return the next event; raises `queue.Empty` on timeout."""

        return self._queue.get(timeout=timeout)

    def __iter__(self) -> Iterator[JobEvent]:
        while True:
            event = self._queue.get()
            yield event
            if event.terminal:
                return

    def collect(self, timeout: float | None = None) -> list[JobEvent]:
        """Gather every event up to and including the terminal one.

        Raises `TimeoutError` when the terminal event does not arrive in time.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        events: list[JobEvent] = []
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                event = self._queue.get(timeout=remaining)
            except queue.Empty as exc:
                raise TimeoutError(
                    f"No terminal event after {len(events)} events within {timeout}s"
                ) from exc
            events.append(event)
            if event.terminal:
                return events


class RecordCallbacks:
    """Adapter from `on_record` / `on_complete` / `on_error` callables to a listener."""

    def __init__(
        self,
        *,
        on_record: Callable[[ExtractedRecord], None] | None = None,
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self.on_record = on_record
        self.on_complete = on_complete
        self.on_error = on_error

    def __call__(self, event: JobEvent) -> None:
        if event.kind == EventKind.RECORD and self.on_record and event.record is not None:
            self.on_record(event.record)
        elif event.kind == EventKind.COMPLETE and self.on_complete:
            self.on_complete()
        elif event.kind == EventKind.ERROR and self.on_error:
            self.on_error(event.message or "")


class JobManager:
    """Owns the job registry; the only writer of the id -> Job mapping.

    Construct one per process and hand it to every entry point. Each started
    job runs its worker pool on a background thread with its own fetcher,
    and is evicted from the registry right after its terminal event.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        fetcher_factory: FetcherFactory | None = None,
        parser: HTMLParser | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._fetcher_factory: FetcherFactory = fetcher_factory or Fetcher
        self._parser = parser or HTMLParser()

        self._lock = threading.Lock()
        self._jobs: dict[str, Job] = {}

    def start_job(
        self,
        config: JobConfig | Mapping[str, Any],
        *,
        listener: JobListener | None = None,
    ) -> str:
        """Validate, register, and launch a job; return its id.

        Raises `InvalidConfig` before anything is registered.
        """

        if isinstance(config, JobConfig):
            job_config = config
        else:
            job_config = JobConfig.from_request(config, default_limit=self.config.default_limit)

        job = Job(uuid.uuid4().hex, job_config)
        if listener is not None:
            job.add_listener(listener)

        job.thread = threading.Thread(
            target=self._run_job,
            args=(job,),
            name=f"job-{job.id[:8]}",
            daemon=True,
        )

        with self._lock:
            self._jobs[job.id] = job

        LOGGER.info(
            "[Job %s] Starting %s job: limit=%d, max_requests=%d, selectors=%s",
            job.id,
            job_config.mode.value,
            job_config.limit,
            job_config.max_requests,
            sorted(kind.value for kind in job_config.selectors),
        )
        job.thread.start()
        return job.id

    def stop_job(self, job_id: str) -> bool:
        """Request a cooperative stop. Unknown or finished jobs are a no-op."""

        job = self._get(job_id)
        if job is None:
            return False

        stopped = job.request_stop()
        if stopped:
            LOGGER.info("[Job %s] Stop requested", job_id)
        return stopped

    def subscribe(self, job_id: str, listener: JobListener) -> bool:
        """Attach a listener to a registered job."""

        job = self._get(job_id)
        if job is None:
            return False
        return job.add_listener(listener)

    def get_status(self, job_id: str) -> JobStatus | None:
        job = self._get(job_id)
        return None if job is None else job.status

    def active_jobs(self) -> dict[str, JobStatus]:
        with self._lock:
            jobs = list(self._jobs.values())
        return {job.id: job.status for job in jobs}

    def wait(self, job_id: str, timeout: float | None = None) -> bool:
        """Block until a job's thread has exited; True when it is gone."""

        job = self._get(job_id)
        if job is None or job.thread is None:
            return True
        job.thread.join(timeout)
        return not job.thread.is_alive()

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop every running job and wait for their threads."""

        with self._lock:
            jobs = list(self._jobs.values())

        for job in jobs:
            job.request_stop()
        for job in jobs:
            if job.thread is not None:
                job.thread.join(timeout)

    def _get(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def _evict(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def _seed(self, job: Job) -> None:
        config = job.config
        if config.mode == JobMode.SITE:
            results = job.frontier.seed([config.url or ""], label=FrontierLabel.CONTENT)
        else:
            urls = plan_search_urls(
                config.topic,
                config.keyword_text,
                config.limit,
                page_size=self.config.search_page_size,
                max_pages=self.config.max_search_pages,
            )
            LOGGER.info("[Job %s] Search URLs: %s", job.id, urls)
            results = job.frontier.seed(urls, label=FrontierLabel.SEARCH)

        job.stats.record_enqueue_many(results)
        if not any(result.accepted for result in results):
            raise JobFatalError("No valid seed URL could be enqueued")

    def _run_job(self, job: Job) -> None:
        fetcher: PageFetcher | None = None
        try:
            self._seed(job)
            fetcher = self._fetcher_factory(self.config)
            WorkerPool(
                job,
                fetcher=fetcher,
                parser=self._parser,
                concurrency=self.config.concurrency,
                same_host_only=self.config.same_host_only,
            ).run()
        except JobFatalError as exc:
            LOGGER.error("[Job %s] Failed: %s", job.id, exc)
            job.fail(str(exc))
        except Exception as exc:
            LOGGER.exception("[Job %s] Crashed", job.id)
            job.fail(f"{exc.__class__.__name__}: {exc}")
        else:
            job.complete()
            LOGGER.info(
                "[Job %s] Finished with status=%s, emitted=%d",
                job.id,
                job.status.value,
                job.emitted_count,
            )
        finally:
            if fetcher is not None:
                fetcher.close()
            self._evict(job.id)


__all__ = [
    "FetcherFactory",
    "JobEventStream",
    "JobManager",
    "RecordCallbacks",
]
