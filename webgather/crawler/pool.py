"""Bounded-concurrency fetch/extract loop over one job's frontier."""

from __future__ import annotations

import logging
import threading

from .errors import FetchError, ParseError
from .extract import ExtractionPipeline
from .fetcher import PageFetcher
from .frontier import Frontier
from .job import Job
from .links import search_result_links, site_links
from .parsers import HTMLDocument, HTMLParser
from .relevance import KeywordFilter
from .types import FetchResult, FrontierItem, FrontierLabel, JobMode


LOGGER = logging.getLogger(__name__)


class WorkerPool:
    """Run `concurrency` worker threads until the job's frontier is exhausted.

    Workers exit when the frontier is closed (stop or limit reached), its
    request budget is spent, or no queued or in-flight work remains. A stop
    is observed before each fetch; in-flight fetches finish on their own
    timeout and their pages are discarded.
    """

    def __init__(
        self,
        job: Job,
        *,
        fetcher: PageFetcher,
        parser: HTMLParser | None = None,
        concurrency: int = 4,
        same_host_only: bool = False,
        poll_interval: float = 0.5,
    ) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be > 0")

        self.job = job
        self.fetcher = fetcher
        self.parser = parser or HTMLParser()
        self.concurrency = concurrency
        self.same_host_only = same_host_only
        self.poll_interval = poll_interval

        config = job.config
        self.pipeline = ExtractionPipeline(config.selectors, mode=config.mode)
        self.keyword_filter = KeywordFilter.from_keywords(
            config.keywords,
            include_title=config.mode == JobMode.GATHER,
        )

    @property
    def frontier(self) -> Frontier:
        return self.job.frontier

    def run(self) -> None:
        """Start the workers and block until every one of them has exited."""

        workers = [
            threading.Thread(
                target=self._worker,
                name=f"job-{self.job.id[:8]}-worker-{idx}",
                daemon=True,
            )
            for idx in range(self.concurrency)
        ]

        for worker in workers:
            worker.start()

        for worker in workers:
            worker.join()

        self.job.stats.record_frontier_snapshot(self.frontier.snapshot())

    def _worker(self) -> None:
        while True:
            item = self.frontier.pop(timeout=self.poll_interval)
            if item is None:
                if self.frontier.exhausted:
                    return
                continue

            try:
                self._handle_item(item)
            except Exception:
                self.job.stats.record_handler_error()
                LOGGER.exception("[Job %s] Failed while handling %s", self.job.id, item.url)
            finally:
                self.frontier.task_done()

    def _handle_item(self, item: FrontierItem) -> None:
        if not self.job.running:
            return

        mode = self.job.config.mode
        if mode == JobMode.GATHER and item.label == FrontierLabel.CONTENT and self.job.limit_reached:
            return

        try:
            fetch_result = self._fetch(item)
        except FetchError as exc:
            LOGGER.debug("[Job %s] Skipping %s", self.job.id, exc)
            return

        if not self.job.running:
            return

        document = self._parse(item, fetch_result)
        if document is None:
            return

        if mode == JobMode.SITE:
            self._handle_site_page(item, document, fetch_result)
        elif item.label == FrontierLabel.SEARCH:
            self._handle_search_page(item, document)
        else:
            self._handle_gathered_page(document)

    def _fetch(self, item: FrontierItem) -> FetchResult:
        fetch_result = self.fetcher.fetch(item.url)
        self.job.stats.record_fetch(fetch_result)
        if not fetch_result.ok:
            raise FetchError(item.url, fetch_result.failure_reason)
        return fetch_result

    def _parse(self, item: FrontierItem, fetch_result: FetchResult) -> HTMLDocument | None:
        try:
            document = self.parser.parse_fetch_result(fetch_result, url=item.url)
        except ParseError as exc:
            self.job.stats.record_parse(False)
            LOGGER.debug("[Job %s] Parse failed for %s: %s", self.job.id, item.url, exc)
            return None
        self.job.stats.record_parse(True)
        return document

    def _handle_site_page(
        self,
        item: FrontierItem,
        document: HTMLDocument,
        fetch_result: FetchResult,
    ) -> None:
        record = self.pipeline.run(document)
        accepted = self.keyword_filter.accepts(document.body_text)

        # Traversal continues through pages that fail the keyword filter.
        links = site_links(
            document.soup,
            base_url=fetch_result.final_url or item.url,
            scope_url=self.job.config.url if self.same_host_only else None,
        )
        if links:
            results = self.frontier.push_many(links, label=FrontierLabel.CONTENT, referrer=item.url)
            self.job.stats.record_enqueue_many(results)

        if accepted:
            self._emit(record)
        else:
            self.job.stats.record_rejected()

    def _handle_search_page(self, item: FrontierItem, document: HTMLDocument) -> None:
        links = search_result_links(document.soup)
        self.job.stats.increment("search_result_links", len(links))
        LOGGER.info("[Job %s] Found %d result links on %s", self.job.id, len(links), item.url)
        if not links:
            return

        results = self.frontier.push_many(links, label=FrontierLabel.CONTENT, referrer=item.url)
        self.job.stats.record_enqueue_many(results)

    def _handle_gathered_page(self, document: HTMLDocument) -> None:
        if not self.keyword_filter.accepts(document.body_text, document.title):
            self.job.stats.record_rejected()
            return

        LOGGER.info("[Job %s] Found match: %s", self.job.id, document.url)
        self._emit(self.pipeline.run(document))

    def _emit(self, record) -> None:
        if self.job.try_emit(record):
            self.job.stats.record_emitted()
        else:
            self.job.stats.record_over_limit()


__all__ = ["WorkerPool"]
