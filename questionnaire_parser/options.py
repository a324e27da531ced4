"""
Option Extraction
=================
Consumes the run of option lines that follows a selection question and
turns it into a choice list, or synthesizes a numeric scale for rating
questions that have no literal choices.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from .config import HeuristicConfig
from .line_classifier import is_scale_indicator
from .lines import LineTable
from .models import LineTag, MultilingualText, Option, QuestionType

logger = logging.getLogger(__name__)

# Ordered: the first pattern that matches a line wins.
OPTION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("parentheses", re.compile(r"^\(\s*[xX✓✔]?\s*\)\s*(.+)$")),
    ("brackets", re.compile(r"^\[\s*[xX✓✔]?\s*\]\s*(.+)$")),
    ("bullet", re.compile(r"^[•●○◦▪▫■□‣⁃►▸]\s*(.+)$")),
    ("dash", re.compile(r"^[-–—]\s+(.+)$")),
    ("asterisk", re.compile(r"^\*\s+(.+)$")),
    ("numbered", re.compile(r"^\(?(?:\d{1,2}|[a-zA-Z])\)\s+(.+)$")),
)

OTHER_PATTERN = re.compile(r"other.*(?:specify|fill|text|_{3,})", re.IGNORECASE)

# "scale of 1 to 5" is preferred over any other range in the same text
RANGE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"scale\s+of\s+(\d+)\s*(?:to|-|through)\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*(?:to|-|through)\s*(\d+)", re.IGNORECASE),
)

SCALE_VALUE_PATTERN = re.compile(r"[\(\[]\s*[\)\]]\s*(\d+)")

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_LABEL_TAIL_RE = re.compile(r"[\s_:]+$")

STOP_TAGS = frozenset({LineTag.QUESTION, LineTag.SECTION})


def slugify(text: str) -> str:
    """Lowercase, non-alphanumerics to underscores, trimmed."""
    return _SLUG_RE.sub("_", text.lower()).strip("_")


@dataclass
class OptionBlock:
    """Result of one option extraction run."""
    options: list[Option] = field(default_factory=list)
    end_index: int = 0
    consumed: list[int] = field(default_factory=list)
    stop_reason: str = "end_of_document"
    synthesized: bool = False


class OptionExtractor:
    """Scans forward from a question and claims its option lines."""

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def extract(
        self,
        table: LineTable,
        start: int,
        question_type: QuestionType,
        question_index: int,
        question_text: str = "",
        owner: str = "options",
    ) -> OptionBlock:
        """
        Args:
            table: Tagged lines; matched option lines are consumed.
            start: First line after the question and its continuation.
            question_type: Resolved type of the question.
            question_index: Index of the question line.
            question_text: Merged question text (searched for scales).
            owner: Label recorded on every consumed line.
        """
        block = OptionBlock(end_index=start)
        limit = start + self.config.lookahead_lines
        i = start

        while i < len(table):
            if i >= limit:
                block.stop_reason = "lookahead_exhausted"
                break

            line = table[i]

            if line.consumed:
                block.stop_reason = "consumed"
                break
            if is_scale_indicator(line.raw):
                block.stop_reason = "scale_indicator"
                break
            if line.tag == LineTag.BLANK:
                block.stop_reason = "blank"
                break
            if line.tag in STOP_TAGS:
                block.stop_reason = "boundary"
                break

            option = self.match_option(line.raw, len(block.options))
            if option is not None:
                table.consume(i, owner)
                block.options.append(option)
                block.consumed.append(i)
                i += 1
                continue

            # Options are contiguous: the first non-option line closes the list
            if block.options:
                block.stop_reason = "closed_list"
                break

            i += 1

        block.end_index = i

        if (
            question_type == QuestionType.RATING
            and len(block.options) < self.config.min_scale_options
        ):
            scale = self.find_scale(table, question_index, start, question_text)
            if scale:
                block.options = [
                    Option(value=str(n), label=MultilingualText.replicate(str(n)))
                    for n in scale
                ]
                block.synthesized = True
                logger.debug(
                    f"Synthesized scale {scale[0]}..{scale[-1]} "
                    f"for question at line {question_index}"
                )

        return block

    def match_option(self, line: str, position: int = 0) -> Optional[Option]:
        """Build an Option from a bulleted line, or None if no pattern fits."""
        for _name, pattern in OPTION_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue

            text = match.group(1).strip()
            label = _LABEL_TAIL_RE.sub("", text) or text

            if OTHER_PATTERN.search(text):
                return Option(
                    value="other",
                    label=MultilingualText.replicate(label),
                    allow_text=True,
                )

            return Option(
                value=slugify(label) or f"option_{position + 1}",
                label=MultilingualText.replicate(label),
            )
        return None

    def find_scale(
        self,
        table: LineTable,
        question_index: int,
        start: int,
        question_text: str = "",
    ) -> Optional[list[int]]:
        """
        Locate a numeric scale for a rating question: a range in the
        question text, then a range in the surrounding lines, then the
        numbers of a nearby scale indicator line.
        """
        scale = self._range_in(question_text)
        if scale:
            return scale

        low = max(0, question_index - self.config.scale_window)
        high = min(len(table), start + self.config.scale_window)
        window = [
            table[i] for i in range(low, high)
            if i != question_index and table[i].tag not in STOP_TAGS
        ]

        scale = self._range_in(" ".join(line.raw for line in window))
        if scale:
            return scale

        for line in window:
            if is_scale_indicator(line.raw):
                values = [int(v) for v in SCALE_VALUE_PATTERN.findall(line.raw)]
                if 2 <= len(values) <= self.config.max_scale_span:
                    return values

        return None

    def _range_in(self, text: str) -> Optional[list[int]]:
        for pattern in RANGE_PATTERNS:
            for match in pattern.finditer(text or ""):
                low, high = int(match.group(1)), int(match.group(2))
                if low <= high and high - low + 1 <= self.config.max_scale_span:
                    return list(range(low, high + 1))
        return None
