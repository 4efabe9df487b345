"""CLI entrypoint: run one site or gather job and print records as JSON lines."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from tqdm import tqdm

from webgather.crawler import (
    EngineConfig,
    EventKind,
    InvalidConfig,
    JobEventStream,
    JobManager,
    JobMode,
    JobStatus,
    load_config,
    parse_limit,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a site or gather search results into structured records.",
    )
    subparsers = parser.add_subparsers(dest="mode", required=True)

    site = subparsers.add_parser(JobMode.SITE.value, help="Crawl outward from a seed URL.")
    site.add_argument("url", type=str, help="Seed URL.")

    gather = subparsers.add_parser(JobMode.GATHER.value, help="Harvest pages from search results.")
    gather.add_argument("--topic", type=str, default="", help="Search topic.")

    for sub in (site, gather):
        sub.add_argument(
            "--selectors",
            type=str,
            default="text,headings",
            help="Comma-separated extractors: text, headings, meta, images, links.",
        )
        sub.add_argument(
            "--keywords",
            type=str,
            default="",
            help="Comma-separated keywords; a page is kept when any one matches.",
        )
        sub.add_argument("--limit", type=str, default=None)
        sub.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Path to JSON/YAML engine config.",
        )
        sub.add_argument("--concurrency", type=int, default=None)
        sub.add_argument("--timeout_seconds", type=float, default=None)
        sub.add_argument("--retries", type=int, default=None)
        sub.add_argument("--rate_limit_seconds", type=float, default=None)
        sub.add_argument(
            "--same_host_only",
            action="store_true",
            help="Site mode: only follow links on the seed URL's host.",
        )
        sub.add_argument(
            "--progress",
            action="store_true",
            help="Show a progress bar on stderr.",
        )
        sub.add_argument("--log_file", type=Path, default=None)
        sub.add_argument(
            "--verbose",
            action="store_true",
            help="Enable verbose logging.",
        )

    return parser.parse_args(argv)


def build_engine_config(args: argparse.Namespace) -> EngineConfig:
    payload: dict[str, Any] = {}
    if args.config is not None:
        payload = load_config(args.config).to_dict()

    if args.concurrency is not None:
        payload["concurrency"] = args.concurrency
    if args.timeout_seconds is not None:
        payload["timeout_seconds"] = args.timeout_seconds
    if args.retries is not None:
        payload["retries"] = args.retries
    if args.rate_limit_seconds is not None:
        payload["rate_limit_seconds"] = args.rate_limit_seconds
    if args.same_host_only:
        payload["same_host_only"] = True

    return EngineConfig.from_dict(payload)


def build_job_request(args: argparse.Namespace) -> dict[str, Any]:
    request: dict[str, Any] = {
        "mode": args.mode,
        "keywords": args.keywords,
        "limit": args.limit,
        "selectors": args.selectors,
    }
    if args.mode == JobMode.SITE.value:
        request["url"] = args.url
    else:
        request["topic"] = args.topic
    return request


def setup_logging(verbose: bool, log_file: Path | None = None) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    # stdout carries records, so logs go to stderr.
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        engine_config = build_engine_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    manager = JobManager(engine_config)
    stream = JobEventStream()
    try:
        job_id = manager.start_job(build_job_request(args), listener=stream)
    except InvalidConfig as exc:
        logging.error("Invalid job: %s", exc)
        return 2

    progress = tqdm(
        total=parse_limit(args.limit, engine_config.default_limit),
        unit="record",
        disable=not args.progress,
        file=sys.stderr,
    )
    exit_code = 1
    try:
        for event in stream:
            if event.kind == EventKind.RECORD and event.record is not None:
                print(json.dumps(event.record.to_json(), ensure_ascii=False), flush=True)
                progress.update(1)
            elif event.kind == EventKind.COMPLETE:
                logging.info(
                    "Job %s %s: %s",
                    job_id,
                    event.status.value if event.status else JobStatus.COMPLETED.value,
                    json.dumps(event.stats.get("records", {}), sort_keys=True),
                )
                exit_code = 0
            elif event.kind == EventKind.ERROR:
                logging.error("Job %s failed: %s", job_id, event.message)
                exit_code = 1
    except KeyboardInterrupt:
        logging.error("Interrupted by user; stopping job %s", job_id)
        manager.shutdown(timeout=engine_config.timeout_seconds)
        return 130
    finally:
        progress.close()

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
