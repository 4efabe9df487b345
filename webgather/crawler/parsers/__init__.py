"""Parser package exports."""

from .html_parser import HTMLDocument, HTMLParser, HTMLParserConfig

__all__ = [
    "HTMLDocument",
    "HTMLParser",
    "HTMLParserConfig",
]
