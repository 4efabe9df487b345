"""Crawler package: config, shared types, and job engine components."""

from .config import (
    EngineConfig,
    JobConfig,
    load_config,
    normalize_selectors,
    parse_limit,
    save_config,
)
from .errors import FetchError, InvalidConfig, JobFatalError, ParseError, WebGatherError
from .extract import EXTRACTORS, ExtractionPipeline
from .fetcher import Fetcher, PageFetcher
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .job import Job, JobListener
from .jobs import JobEventStream, JobManager, RecordCallbacks
from .links import search_result_links, site_links, unwrap_redirect
from .parsers import HTMLDocument, HTMLParser, HTMLParserConfig
from .pool import WorkerPool
from .relevance import KeywordFilter, parse_keywords
from .search import build_query, plan_search_urls, search_page_count
from .stats import StatsCollector
from .types import (
    ContentKind,
    EventKind,
    ExtractedRecord,
    FetchResult,
    FrontierItem,
    FrontierLabel,
    ImageRef,
    JobEvent,
    JobMode,
    JobStatus,
    MetaInfo,
    SelectorKind,
    SourceType,
    infer_content_kind,
    utc_now_iso,
)
from .url import host_from_url, is_http_url, is_same_host, normalize_url, resolve_url

__all__ = [
    "ContentKind",
    "EXTRACTORS",
    "EngineConfig",
    "EnqueueResult",
    "EnqueueStatus",
    "EventKind",
    "ExtractedRecord",
    "ExtractionPipeline",
    "FetchError",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "FrontierItem",
    "FrontierLabel",
    "HTMLDocument",
    "HTMLParser",
    "HTMLParserConfig",
    "ImageRef",
    "InvalidConfig",
    "Job",
    "JobConfig",
    "JobEvent",
    "JobEventStream",
    "JobFatalError",
    "JobListener",
    "JobManager",
    "JobMode",
    "JobStatus",
    "KeywordFilter",
    "MetaInfo",
    "PageFetcher",
    "ParseError",
    "RecordCallbacks",
    "SelectorKind",
    "SourceType",
    "StatsCollector",
    "WebGatherError",
    "WorkerPool",
    "build_query",
    "host_from_url",
    "infer_content_kind",
    "is_http_url",
    "is_same_host",
    "load_config",
    "normalize_selectors",
    "normalize_url",
    "parse_keywords",
    "parse_limit",
    "plan_search_urls",
    "resolve_url",
    "save_config",
    "search_page_count",
    "search_result_links",
    "site_links",
    "unwrap_redirect",
    "utc_now_iso",
]
