"""Exception taxonomy for job start, per-URL processing, and job failure."""

from __future__ import annotations


class WebGatherError(Exception):
    """Base class for all errors raised by the crawler package."""


class InvalidConfig(WebGatherError, ValueError):
    """Job request is missing its required seed input or is malformed.

    Raised synchronously by job start; no job is registered.
    """


class JobFatalError(WebGatherError):
    """Unrecoverable job failure surfaced through the job's error event."""


class FetchError(WebGatherError):
    """One URL could not be downloaded. Local to that URL."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class ParseError(WebGatherError):
    """A fetched body could not be turned into a queryable document."""


__all__ = [
    "FetchError",
    "InvalidConfig",
    "JobFatalError",
    "ParseError",
    "WebGatherError",
]
