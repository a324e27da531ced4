"""
Section Segmentation
====================
Groups questions into ordered sections.

A single "current section" accumulator is seeded with the default
"General Questions" placeholder. Section header lines flush the pending
questions and open a new section; empty intermediate sections survive
once at least one section has been emitted.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .line_classifier import SECTION_MARKER_PATTERN
from .models import MultilingualText, Question, Section

logger = logging.getLogger(__name__)

DEFAULT_SECTION_TITLE = MultilingualText(
    en="General Questions",
    sq="Pyetje të Përgjithshme",
    sr="Општа питања",
)

IMPORTED_SECTION_TITLE = MultilingualText(
    en="Imported Content",
    sq="Përmbajtje e Importuar",
    sr="Увезени садржај",
)

_MARKDOWN_PREFIX_RE = re.compile(r"^#{1,6}\s+")


def clean_section_title(line: str) -> str:
    """Normalize an explicit marker to "<Marker> <id>: <rest>"."""
    match = SECTION_MARKER_PATTERN.match(line)
    if match:
        marker, ident, rest = match.groups()
        return f"{marker} {ident}: {rest}".strip()
    if _MARKDOWN_PREFIX_RE.match(line):
        return _MARKDOWN_PREFIX_RE.sub("", line).strip()
    return line


class SectionSegmenter:
    """Accumulates questions and emits completed sections in order."""

    def __init__(self):
        self.sections: list[Section] = []
        self.pending: list[Question] = []
        self._title: MultilingualText = DEFAULT_SECTION_TITLE.model_copy()
        self._description: MultilingualText = MultilingualText()
        self._order_index = 0
        self._explicit = False

    @property
    def next_order_index(self) -> int:
        """Order index the next added question will receive."""
        return len(self.pending)

    def start_section(self, line: str) -> None:
        if self.pending or self.sections:
            self._flush()

        title = clean_section_title(line)
        self._title = MultilingualText.replicate(title)
        self._description = MultilingualText()
        self._order_index = len(self.sections)
        self._explicit = True
        logger.debug(f"Section {self._order_index}: {title}")

    def set_description(self, text: str) -> None:
        self._description = MultilingualText.replicate(text)

    def add(self, question: Question) -> None:
        self.pending.append(question)

    def finish(self) -> list[Section]:
        """
        Flush the final section. Questions still sitting in the seeded
        default section are left in ``pending`` for the caller.
        """
        if self.pending and self._explicit:
            self._flush()
        return self.sections

    def take_pending(self) -> list[Question]:
        questions, self.pending = self.pending, []
        return questions

    def _flush(self) -> None:
        self.sections.append(Section(
            title=self._title,
            description=self._description,
            order_index=self._order_index,
            questions=self.pending,
        ))
        self.pending = []


def build_section(
    title: MultilingualText,
    questions: list[Question],
    order_index: int = 0,
    description: Optional[MultilingualText] = None,
) -> Section:
    return Section(
        title=title.model_copy(),
        description=description or MultilingualText(),
        order_index=order_index,
        questions=questions,
    )
