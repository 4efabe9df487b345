"""Configurable extraction pipeline producing `ExtractedRecord`s.

Each extractor is a pure function of the parsed soup and the job mode. Only
the kinds requested in a job's selector set are run, so every optional record
field is present exactly when its kind was asked for.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from bs4 import BeautifulSoup

from .constants import (
    GATHER_MAX_IMAGES,
    GATHER_MAX_LINKS,
    GATHER_MAX_TEXT_ITEMS,
    GATHER_MIN_TEXT_CHARS,
)
from .parsers import HTMLDocument
from .types import (
    ExtractedRecord,
    ImageRef,
    JobMode,
    MetaInfo,
    SelectorKind,
    SourceType,
)
from .url import is_http_url


T = TypeVar("T")
Extractor = Callable[[BeautifulSoup, JobMode], Any]


def _dedupe(values: Iterable[T], key: Callable[[T], Any] = lambda value: value) -> list[T]:
    out: list[T] = []
    seen: set[Any] = set()
    for value in values:
        marker = key(value)
        if marker in seen:
            continue
        seen.add(marker)
        out.append(value)
    return out


def _attr(element, name: str) -> str | None:
    value = element.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = " ".join(value)
    return str(value)


def extract_headings(soup: BeautifulSoup, mode: JobMode) -> list[str]:
    headings = (element.get_text().strip() for element in soup.find_all(["h1", "h2", "h3"]))
    return _dedupe(heading for heading in headings if heading)


def extract_text(soup: BeautifulSoup, mode: JobMode) -> list[str]:
    paragraphs = [element.get_text().strip() for element in soup.find_all("p")]
    paragraphs = [text for text in paragraphs if text]
    if mode == JobMode.GATHER:
        paragraphs = [text for text in paragraphs if len(text) >= GATHER_MIN_TEXT_CHARS]
        paragraphs = paragraphs[:GATHER_MAX_TEXT_ITEMS]
    return paragraphs


def extract_meta(soup: BeautifulSoup, mode: JobMode) -> MetaInfo:
    def content_of(name: str) -> str | None:
        element = soup.find("meta", attrs={"name": name})
        if element is None:
            return None
        return _attr(element, "content")

    return MetaInfo(description=content_of("description"), keywords=content_of("keywords"))


def extract_images(soup: BeautifulSoup, mode: JobMode) -> list[ImageRef]:
    images = []
    for element in soup.find_all("img"):
        src = _attr(element, "src")
        if not src:
            continue
        if mode == JobMode.GATHER and not is_http_url(src):
            continue
        images.append(ImageRef(src=src, alt=_attr(element, "alt")))

    images = _dedupe(images, key=lambda image: image.src)
    if mode == JobMode.GATHER:
        images = images[:GATHER_MAX_IMAGES]
    return images


def extract_links(soup: BeautifulSoup, mode: JobMode) -> list[str]:
    hrefs = (_attr(element, "href") for element in soup.find_all("a"))
    links = [href for href in hrefs if href]
    if mode == JobMode.GATHER:
        links = [href for href in links if is_http_url(href)]

    links = _dedupe(links)
    if mode == JobMode.GATHER:
        links = links[:GATHER_MAX_LINKS]
    return links


EXTRACTORS: dict[SelectorKind, Extractor] = {
    SelectorKind.HEADINGS: extract_headings,
    SelectorKind.TEXT: extract_text,
    SelectorKind.META: extract_meta,
    SelectorKind.IMAGES: extract_images,
    SelectorKind.LINKS: extract_links,
}


class ExtractionPipeline:
    """Run the requested extractors against a parsed document."""

    def __init__(
        self,
        selectors: Iterable[SelectorKind],
        *,
        mode: JobMode,
        extractors: dict[SelectorKind, Extractor] | None = None,
    ) -> None:
        self.selectors = frozenset(selectors)
        self.mode = mode
        self.extractors = dict(EXTRACTORS if extractors is None else extractors)

    @property
    def source_type(self) -> SourceType:
        return SourceType.GATHERED if self.mode == JobMode.GATHER else SourceType.PAGE

    def run(self, document: HTMLDocument) -> ExtractedRecord:
        record = ExtractedRecord(
            url=document.url,
            title=document.title,
            source_type=self.source_type,
        )

        # Fixed order keeps records stable regardless of selector set ordering.
        for kind in SelectorKind:
            if kind not in self.selectors:
                continue
            extractor = self.extractors.get(kind)
            if extractor is None:
                continue
            setattr(record, kind.value, extractor(document.soup, self.mode))

        return record


__all__ = [
    "EXTRACTORS",
    "ExtractionPipeline",
    "Extractor",
    "extract_headings",
    "extract_images",
    "extract_links",
    "extract_meta",
    "extract_text",
]
