"""Keyword relevance filter gating record emission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


def parse_keywords(value: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated keyword string (or list) into filter terms.

    Terms are trimmed and lowercased; blanks and repeats are dropped while the
    first-seen order is kept.
    """

    if value is None:
        return []

    if isinstance(value, str):
        raw_items: Iterable[str] = value.split(",")
    else:
        raw_items = (str(item) for item in value)

    keywords: list[str] = []
    seen: set[str] = set()
    for item in raw_items:
        keyword = item.strip().lower()
        if not keyword or keyword in seen:
            continue
        seen.add(keyword)
        keywords.append(keyword)
    return keywords


@dataclass(frozen=True, slots=True)
class KeywordFilter:
    """OR-match of lowercase keywords against page text (and optionally title).

    An empty keyword list accepts every page.
    """

    keywords: tuple[str, ...] = ()
    include_title: bool = False

    @classmethod
    def from_keywords(
        cls,
        keywords: str | Iterable[str] | None,
        *,
        include_title: bool = False,
    ) -> "KeywordFilter":
        return cls(tuple(parse_keywords(keywords)), include_title=include_title)

    @property
    def accepts_all(self) -> bool:
        return not self.keywords

    def accepts(self, body_text: str, title: str | None = None) -> bool:
        if not self.keywords:
            return True

        haystacks = [(body_text or "").lower()]
        if self.include_title and title:
            haystacks.append(title.lower())

        return any(
            keyword in haystack
            for keyword in self.keywords
            for haystack in haystacks
        )


__all__ = ["KeywordFilter", "parse_keywords"]
