"""Tests for the requests-backed fetcher, with `Session.get` patched out."""

import requests

from webgather.crawler.config import EngineConfig
from webgather.crawler.fetcher import Fetcher, RetryPolicy
from webgather.crawler.types import FetchResult


class FakeResponse:
    def __init__(self, url, status_code=200, body=b"<p>ok</p>", content_type="text/html"):
        self.url = url
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}
        self._body = body

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def patch_get(monkeypatch, responses):
    """Serve queued responses (or raise queued exceptions) from Session.get."""

    calls = []

    def fake_get(session, url, **kwargs):
        calls.append((url, kwargs))
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(requests.Session, "get", fake_get)
    return calls


class TestFetcher:
    def test_successful_fetch(self, monkeypatch):
        calls = patch_get(monkeypatch, [FakeResponse("https://a.test/final")])

        with Fetcher(EngineConfig()) as fetcher:
            result = fetcher.fetch("https://A.test/#x")

        assert result.ok
        assert result.requested_url == "https://a.test/"
        assert result.final_url == "https://a.test/final"
        assert result.body == b"<p>ok</p>"
        assert result.attempts == 1
        url, kwargs = calls[0]
        assert url == "https://a.test/"
        assert kwargs["timeout"] == 30.0
        assert "User-Agent" in kwargs["headers"]

    def test_invalid_url_is_not_requested(self, monkeypatch):
        calls = patch_get(monkeypatch, [])
        result = Fetcher(EngineConfig()).fetch("ftp://a.test/")
        assert not result.ok
        assert result.error.startswith("InvalidURL")
        assert calls == []

    def test_retries_server_errors(self, monkeypatch):
        calls = patch_get(
            monkeypatch,
            [FakeResponse("https://a.test/", status_code=503), FakeResponse("https://a.test/")],
        )
        fetcher = Fetcher(EngineConfig(retries=2, retry_backoff_seconds=0))

        result = fetcher.fetch("https://a.test/")

        assert result.ok
        assert result.attempts == 2
        assert len(calls) == 2

    def test_client_errors_are_not_retried(self, monkeypatch):
        calls = patch_get(monkeypatch, [FakeResponse("https://a.test/", status_code=404)])
        result = Fetcher(EngineConfig(retries=3, retry_backoff_seconds=0)).fetch("https://a.test/")
        assert not result.ok
        assert result.failure_reason == "HTTP status 404"
        assert len(calls) == 1

    def test_connection_errors_become_results(self, monkeypatch):
        patch_get(monkeypatch, [requests.ConnectionError("refused")])
        result = Fetcher(EngineConfig()).fetch("https://a.test/")
        assert not result.ok
        assert result.error.startswith("ConnectionError")

    def test_body_cap(self, monkeypatch):
        patch_get(monkeypatch, [FakeResponse("https://a.test/", body=b"x" * 100)])
        result = Fetcher(EngineConfig(max_body_bytes=10, retries=2)).fetch("https://a.test/")
        assert result.body is None
        assert result.error.startswith("BodyTooLarge")
        assert result.attempts == 1

    def test_closed_fetcher_fails_fast(self, monkeypatch):
        calls = patch_get(monkeypatch, [])
        fetcher = Fetcher(EngineConfig())
        fetcher.close()
        assert fetcher.fetch("https://a.test/").error.startswith("FetcherClosed")
        assert calls == []


class TestRetryPolicy:
    def _result(self, status_code=None, error=None):
        return FetchResult("https://a.test/", None, status_code, None, None, error=error)

    def test_attempts_include_first_try(self):
        assert RetryPolicy().attempts == 1
        assert RetryPolicy(retries=2).attempts == 3

    def test_classification(self):
        policy = RetryPolicy(retries=1)
        assert policy.should_retry(self._result(503))
        assert policy.should_retry(self._result(429))
        assert policy.should_retry(self._result(error="ReadTimeout: slow"))
        assert not policy.should_retry(self._result(404))
        assert not policy.should_retry(self._result(200))
        assert not policy.should_retry(self._result(error="BodyTooLarge: big"))
