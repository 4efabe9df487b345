"""Core type definitions for jobs, records, frontier items, and events.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ContentKind(str, Enum):
    """Coarse content categories inferred from fetch responses."""

    HTML = "html"
    TEXT = "text"
    BINARY = "binary"
    UNKNOWN = "unknown"


class JobMode(str, Enum):
    """How a job discovers pages."""

    SITE = "site"
    GATHER = "gather"


class JobStatus(str, Enum):
    """Job lifecycle states. Only RUNNING is non-terminal."""

    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not JobStatus.RUNNING


class SelectorKind(str, Enum):
    """Extractor kinds a job can request."""

    TEXT = "text"
    HEADINGS = "headings"
    META = "meta"
    IMAGES = "images"
    LINKS = "links"


class FrontierLabel(str, Enum):
    """Distinguishes search-result pages (link-mined) from content pages."""

    SEARCH = "search"
    CONTENT = "content"


class SourceType(str, Enum):
    PAGE = "page"
    GATHERED = "gathered"


class EventKind(str, Enum):
    RECORD = "record"
    COMPLETE = "complete"
    ERROR = "error"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for records and events."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def infer_content_kind(content_type: str | None) -> ContentKind:
    """Infer coarse content kind from an HTTP content type header."""

    normalized = (content_type or "").split(";", maxsplit=1)[0].strip().lower()

    if normalized in {"text/html", "application/xhtml+xml"}:
        return ContentKind.HTML
    if normalized.startswith("text/"):
        return ContentKind.TEXT
    if normalized:
        return ContentKind.BINARY
    return ContentKind.UNKNOWN


@dataclass(frozen=True, slots=True)
class FrontierItem:
    """A URL waiting in a job's frontier."""

    url: str
    label: FrontierLabel = FrontierLabel.CONTENT
    referrer: str | None = None
    discovered_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    attempts: int = 1
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)

    @property
    def failure_reason(self) -> str:
        if self.error:
            return self.error
        if self.status_code is not None:
            return f"HTTP status {self.status_code}"
        return "Unknown fetch failure"


@dataclass(frozen=True, slots=True)
class MetaInfo:
    description: str | None = None
    keywords: str | None = None

    def to_json(self) -> JSONDict:
        payload: JSONDict = {}
        if self.description is not None:
            payload["description"] = self.description
        if self.keywords is not None:
            payload["keywords"] = self.keywords
        return payload


@dataclass(frozen=True, slots=True)
class ImageRef:
    src: str
    alt: str | None = None

    def to_json(self) -> JSONDict:
        payload: JSONDict = {"src": self.src}
        if self.alt is not None:
            payload["alt"] = self.alt
        return payload


@dataclass(slots=True)
class ExtractedRecord:
    """One page's extraction result.

    Selector fields stay `None` unless their kind was requested for the job,
    so `to_json` only carries what was asked for.
    """

    url: str
    title: str
    source_type: SourceType
    timestamp: str = field(default_factory=utc_now_iso)
    headings: list[str] | None = None
    text: list[str] | None = None
    meta: MetaInfo | None = None
    images: list[ImageRef] | None = None
    links: list[str] | None = None

    def to_json(self) -> JSONDict:
        payload: JSONDict = {
            "url": self.url,
            "title": self.title,
            "type": self.source_type.value,
            "timestamp": self.timestamp,
        }
        if self.headings is not None:
            payload["headings"] = list(self.headings)
        if self.text is not None:
            payload["text"] = list(self.text)
        if self.meta is not None:
            payload["meta"] = self.meta.to_json()
        if self.images is not None:
            payload["images"] = [image.to_json() for image in self.images]
        if self.links is not None:
            payload["links"] = list(self.links)
        return payload


@dataclass(frozen=True, slots=True)
class JobEvent:
    """One message pushed to a job's subscribers."""

    job_id: str
    kind: EventKind
    record: ExtractedRecord | None = None
    message: str | None = None
    status: JobStatus | None = None
    stats: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def terminal(self) -> bool:
        return self.kind in {EventKind.COMPLETE, EventKind.ERROR}

    @classmethod
    def for_record(cls, job_id: str, record: ExtractedRecord) -> "JobEvent":
        return cls(job_id=job_id, kind=EventKind.RECORD, record=record)

    @classmethod
    def complete(
        cls,
        job_id: str,
        status: JobStatus,
        stats: dict[str, Any] | None = None,
    ) -> "JobEvent":
        return cls(
            job_id=job_id,
            kind=EventKind.COMPLETE,
            status=status,
            stats=dict(stats or {}),
        )

    @classmethod
    def error(
        cls,
        job_id: str,
        message: str,
        stats: dict[str, Any] | None = None,
        status: JobStatus = JobStatus.FAILED,
    ) -> "JobEvent":
        return cls(
            job_id=job_id,
            kind=EventKind.ERROR,
            message=message,
            status=status,
            stats=dict(stats or {}),
        )

    def to_json(self) -> JSONDict:
        payload: JSONDict = {
            "job_id": self.job_id,
            "kind": self.kind.value,
            "created_at": self.created_at,
        }
        if self.record is not None:
            payload["record"] = self.record.to_json()
        if self.message is not None:
            payload["message"] = self.message
        if self.status is not None:
            payload["status"] = self.status.value
        if self.stats:
            payload["stats"] = self.stats
        return payload


__all__ = [
    "ContentKind",
    "EventKind",
    "ExtractedRecord",
    "FetchResult",
    "FrontierItem",
    "FrontierLabel",
    "ImageRef",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "JobEvent",
    "JobMode",
    "JobStatus",
    "MetaInfo",
    "SelectorKind",
    "SourceType",
    "infer_content_kind",
    "utc_now_iso",
]
