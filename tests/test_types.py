"""Tests for shared record and event types."""

import pytest

from webgather.crawler.types import (
    ContentKind,
    EventKind,
    ExtractedRecord,
    FetchResult,
    ImageRef,
    JobEvent,
    JobStatus,
    MetaInfo,
    SourceType,
    infer_content_kind,
)


@pytest.mark.parametrize(
    "content_type,expected",
    [
        ("text/html; charset=utf-8", ContentKind.HTML),
        ("application/xhtml+xml", ContentKind.HTML),
        ("text/plain", ContentKind.TEXT),
        ("application/pdf", ContentKind.BINARY),
        (None, ContentKind.UNKNOWN),
    ],
)
def test_infer_content_kind(content_type, expected):
    assert infer_content_kind(content_type) == expected


def test_fetch_result_ok_requires_2xx_and_body():
    ok = FetchResult("https://a.test/", "https://a.test/", 200, "text/html", b"abc")
    redirect = FetchResult("https://a.test/", None, 301, "text/html", b"")
    errored = FetchResult("https://a.test/", None, None, None, None, error="Timeout: slow")

    assert ok.ok and ok.content_length == 3
    assert not redirect.ok
    assert redirect.failure_reason == "HTTP status 301"
    assert errored.failure_reason == "Timeout: slow"


def test_record_json_omits_unrequested_fields():
    record = ExtractedRecord(
        url="https://a.test/",
        title="A",
        source_type=SourceType.PAGE,
        meta=MetaInfo(description="d"),
        images=[ImageRef(src="https://a.test/i.png")],
    )
    payload = record.to_json()

    assert payload["meta"] == {"description": "d"}
    assert payload["images"] == [{"src": "https://a.test/i.png"}]
    assert "text" not in payload and "links" not in payload


def test_events():
    record = ExtractedRecord(url="https://a.test/", title="", source_type=SourceType.GATHERED)

    record_event = JobEvent.for_record("j", record)
    complete = JobEvent.complete("j", JobStatus.COMPLETED, {"records": {"emitted": 1}})
    error = JobEvent.error("j", "boom")

    assert not record_event.terminal
    assert complete.terminal and error.terminal
    assert record_event.to_json()["record"]["type"] == "gathered"
    assert complete.to_json()["status"] == "completed"
    assert error.to_json()["message"] == "boom"
    assert error.status == JobStatus.FAILED
    assert error.kind == EventKind.ERROR
    assert JobStatus.STOPPED.terminal and not JobStatus.RUNNING.terminal
