"""Shared fixtures: an in-memory fetcher that serves canned HTML."""

import threading

import pytest

from webgather.crawler import EngineConfig, FetchResult, JobManager, normalize_url


class FakeFetcher:
    """Serves pages from a dict keyed by normalized URL; records every fetch."""

    def __init__(self, pages=None, *, delay=None):
        self.pages = {normalize_url(url): value for url, value in (pages or {}).items()}
        self.delay = delay
        self.fetched = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.fetched.append(url)
        if self.delay is not None:
            self.delay.wait(timeout=5)

        page = self.pages.get(normalize_url(url))
        if page is None:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=404,
                content_type="text/html",
                body=b"",
            )
        if isinstance(page, FetchResult):
            return page
        return FetchResult(
            requested_url=url,
            final_url=url,
            status_code=200,
            content_type="text/html; charset=utf-8",
            body=page.encode("utf-8"),
        )

    def close(self):
        self.closed = True


def html_page(body, title="Test page", head=""):
    return f"<html><head><title>{title}</title>{head}</head><body>{body}</body></html>"


@pytest.fixture
def page():
    """Render a minimal HTML document around a body fragment."""

    return html_page


@pytest.fixture
def fake_fetcher():
    """Build a standalone FakeFetcher."""

    return FakeFetcher


@pytest.fixture
def make_manager():
    """Build a JobManager whose jobs all share one FakeFetcher."""

    managers = []

    def factory(pages=None, *, delay=None, **engine_kwargs):
        fetcher = FakeFetcher(pages, delay=delay)
        engine_kwargs.setdefault("concurrency", 2)
        manager = JobManager(EngineConfig(**engine_kwargs), fetcher_factory=lambda config: fetcher)
        managers.append(manager)
        return manager, fetcher

    yield factory

    for manager in managers:
        manager.shutdown(timeout=5)
