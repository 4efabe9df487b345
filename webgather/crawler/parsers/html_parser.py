"""HTML parsing into a queryable BeautifulSoup document."""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup

from ..errors import ParseError
from ..types import ContentKind, FetchResult, infer_content_kind


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML parsing."""

    features: str = "lxml"


@dataclass(slots=True)
class HTMLDocument:
    """Parsed page plus the lookups every job needs."""

    url: str
    soup: BeautifulSoup

    @property
    def title(self) -> str:
        if self.soup.title is None:
            return ""
        return self.soup.title.get_text().strip()

    @property
    def body_text(self) -> str:
        """Full text of `<body>` (whole document when there is no body)."""

        node = self.soup.body or self.soup
        return node.get_text()


def charset_from_content_type(content_type: str | None) -> str | None:
    """The `charset` parameter of a Content-Type header, if any."""

    for param in (content_type or "").split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset":
            return value.strip().strip("\"'") or None
    return None


class HTMLParser:
    """Turn fetched bytes into an `HTMLDocument`, raising `ParseError`.

    Raw bytes go to BeautifulSoup undecoded. The header charset is tried
    first, then any `<meta charset>` in the document, then detection.
    """

    ACCEPTED_KINDS = frozenset({ContentKind.HTML, ContentKind.UNKNOWN})

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()

    def parse(
        self,
        *,
        url: str,
        html: str | bytes | None,
        content_type: str | None = None,
    ) -> HTMLDocument:
        kind = infer_content_kind(content_type)
        if kind not in self.ACCEPTED_KINDS:
            raise ParseError(f"Unsupported content type {content_type!r} for {url}")

        if not html or not html.strip():
            raise ParseError(f"Empty document body for {url}")

        try:
            if isinstance(html, bytes):
                soup = BeautifulSoup(
                    html,
                    self.config.features,
                    from_encoding=charset_from_content_type(content_type),
                )
            else:
                soup = BeautifulSoup(html, self.config.features)
        except Exception as exc:
            raise ParseError(f"{exc.__class__.__name__}: {exc}") from exc

        return HTMLDocument(url=url, soup=soup)

    def parse_fetch_result(self, fetch_result: FetchResult, *, url: str | None = None) -> HTMLDocument:
        """Parse a successful fetch, keyed by `url` (defaults to the requested URL)."""

        return self.parse(
            url=url or fetch_result.requested_url,
            html=fetch_result.body,
            content_type=fetch_result.content_type,
        )


__all__ = [
    "HTMLDocument",
    "HTMLParser",
    "HTMLParserConfig",
    "charset_from_content_type",
]
