"""
Markup Side Channel
===================
Indexes emphasized and heading spans of the rendered markup (HTML as
produced by word-processor converters) so the line classifier can use
them as a tie-break signal for section detection.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_SPACE_RE = re.compile(r"\s+")

EMPHASIS_TAGS = ("strong", "b")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _normalize(value: str) -> str:
    return _SPACE_RE.sub(" ", value).strip()


@dataclass(frozen=True)
class MarkupIndex:
    """Normalized text of bold and heading spans."""

    emphasized: frozenset[str] = field(default_factory=frozenset)
    headings: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_markup(cls, markup: Optional[str]) -> MarkupIndex:
        if not markup or not markup.strip():
            return cls()

        soup = BeautifulSoup(markup, "html.parser")

        emphasized = {
            _normalize(tag.get_text(" ", strip=True))
            for tag in soup.find_all(EMPHASIS_TAGS)
        }
        headings = {
            _normalize(tag.get_text(" ", strip=True))
            for tag in soup.find_all(HEADING_TAGS)
        }
        emphasized.discard("")
        headings.discard("")

        logger.debug(
            f"Markup index: {len(emphasized)} emphasized spans, "
            f"{len(headings)} headings"
        )
        return cls(frozenset(emphasized), frozenset(headings))

    def is_emphasized(self, line: str) -> bool:
        return _normalize(line) in self.emphasized

    def is_heading(self, line: str) -> bool:
        return _normalize(line) in self.headings

    def __bool__(self) -> bool:
        return bool(self.emphasized or self.headings)
