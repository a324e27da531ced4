"""
Line Classifier
===============
Tags every normalized line as section / question / option / blank /
skip / plain.

Tags are decided by an ordered rule table: the first predicate that
fires wins. The order is fixed (Skip, Section, Question, Option, Blank)
and ambiguous lines resolve by that priority, never by longest match.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from .config import HeuristicConfig
from .lines import Line, LineTable
from .markup import MarkupIndex
from .models import LineTag

logger = logging.getLogger(__name__)

# ─── Anchor Patterns ──────────────────────────────────────────────────────────

# "1. How old are you?"
QUESTION_NUMBER_PATTERN = re.compile(r"^(\d+)\.\s+(.+)$")

# "Q1. ...", "Q 2: ...", "Question 3: ..."
QUESTION_PREFIX_PATTERN = re.compile(
    r"^(?:Question|Q)\s*\.?\s*(\d+)\s*[.:)\-]\s*(.+)$", re.IGNORECASE
)

# "Section A: ...", "Part 2:", "Chapter IV: ...", "Module 1: ...", "Unit 3: ..."
SECTION_MARKER_PATTERN = re.compile(
    r"^(Section|Part|Chapter|Module|Unit)\s+([A-Z0-9]+)\s*:\s*(.*)$",
    re.IGNORECASE,
)

# "II. Background"
ROMAN_HEADING_PATTERN = re.compile(r"^[IVX]+\.\s+[A-Z]")

# "A. Demographics"
LETTER_HEADING_PATTERN = re.compile(r"^[A-Z]\.\s+[A-Z][a-z]{3,}")

# "## Background"
MARKDOWN_HEADING_PATTERN = re.compile(r"^#{1,6}\s+\S")

# "( ) 1 ( ) 2 ( ) 3"
SCALE_INDICATOR_PATTERN = re.compile(
    r"[\(\[]\s*[\)\]]\s*\d+\s+[\(\[]\s*[\)\]]\s*\d+"
)

# "( ) Yes", "[ ] Email", "[x] Done", "• Red", "- Blue", "* Green", "a) Cat", "(2) Dog"
OPTION_MARKER_PATTERN = re.compile(
    r"^(?:"
    r"[\(\[]\s*[xX✓✔]?\s*[\)\]]\s*\S"
    r"|[•●○◦▪▫■□‣⁃►▸]\s*\S"
    r"|[-–—*]\s+\S"
    r"|\(?(?:\d{1,2}|[a-zA-Z])\)\s+\S"
    r")"
)

# "______", "Answer: _____", "[Short answer]", "..."
BLANK_PATTERN = re.compile(
    r"^_{3,}|_{3,}\s*$|^\[[^\]]*\]$|^(?:\.{3,}|…)"
)

# Boilerplate (greetings, thank-you notes, titles, page counters)
SKIP_PATTERNS = [
    re.compile(
        r"^(?:introduction|thank\s*(?:s\b|you)|questionnaire|survey|the\s+ultimate)",
        re.IGNORECASE,
    ),
    re.compile(r"^(?:dear|hello|hi|greetings|welcome)\b", re.IGNORECASE),
    re.compile(r"^(?:Page\s*)?\d+\s*(?:/|of)\s*\d+$", re.IGNORECASE),
]


# ─── Pattern Helpers ──────────────────────────────────────────────────────────


def match_question(line: str) -> Optional[tuple[Optional[int], str]]:
    """
    Return ``(number, body)`` for a numbered question line, or
    ``None`` when the line carries no question number.
    """
    for pattern in (QUESTION_NUMBER_PATTERN, QUESTION_PREFIX_PATTERN):
        match = pattern.match(line)
        if match:
            return int(match.group(1)), match.group(2).strip()
    return None


def is_numbered_question(line: str) -> bool:
    return match_question(line) is not None


def is_scale_indicator(line: str) -> bool:
    return bool(SCALE_INDICATOR_PATTERN.search(line))


def is_option_marker(line: str) -> bool:
    return bool(OPTION_MARKER_PATTERN.match(line))


def is_blank_placeholder(line: str) -> bool:
    return bool(BLANK_PATTERN.search(line))


def is_all_caps_heading(line: str) -> bool:
    return (
        line == line.upper()
        and any(c.isalpha() for c in line)
        and len(line.split()) >= 3
        and "?" not in line
        and 15 < len(line) < 100
    )


# ─── Tag Predicates ───────────────────────────────────────────────────────────


def is_boilerplate(line: str, markup: MarkupIndex, config: HeuristicConfig) -> bool:
    if is_numbered_question(line) or "?" in line:
        return False
    return any(p.match(line) for p in SKIP_PATTERNS)


def is_section_header(line: str, markup: MarkupIndex, config: HeuristicConfig) -> bool:
    if (
        is_numbered_question(line)
        or is_scale_indicator(line)
        or is_option_marker(line)
        or is_blank_placeholder(line)
    ):
        return False

    has_marker = bool(SECTION_MARKER_PATTERN.match(line))
    if has_marker:
        return True

    if (
        ROMAN_HEADING_PATTERN.match(line)
        or LETTER_HEADING_PATTERN.match(line)
        or MARKDOWN_HEADING_PATTERN.match(line)
        or is_all_caps_heading(line)
    ):
        return True

    if markup and not line.endswith("?"):
        if markup.is_heading(line):
            return True
        if (
            markup.is_emphasized(line)
            and len(line) < config.emphasized_section_max_length
        ):
            return True

    return False


def is_question_line(line: str, markup: MarkupIndex, config: HeuristicConfig) -> bool:
    if is_numbered_question(line):
        return True
    return (
        line.endswith("?")
        and len(line) > config.question_min_length
        and not is_option_marker(line)
    )


def is_option_line(line: str, markup: MarkupIndex, config: HeuristicConfig) -> bool:
    return is_option_marker(line)


def is_blank_line(line: str, markup: MarkupIndex, config: HeuristicConfig) -> bool:
    return is_blank_placeholder(line)


TagPredicate = Callable[[str, MarkupIndex, HeuristicConfig], bool]

# First match wins. Do not reorder without updating the tests.
LINE_RULES: tuple[tuple[LineTag, TagPredicate], ...] = (
    (LineTag.SKIP, is_boilerplate),
    (LineTag.SECTION, is_section_header),
    (LineTag.QUESTION, is_question_line),
    (LineTag.OPTION, is_option_line),
    (LineTag.BLANK, is_blank_line),
)


class LineClassifier:
    """Applies the ordered tag rules to each line of a document."""

    def __init__(
        self,
        markup: Optional[MarkupIndex] = None,
        config: Optional[HeuristicConfig] = None,
        rules: tuple[tuple[LineTag, TagPredicate], ...] = LINE_RULES,
    ):
        self.markup = markup or MarkupIndex()
        self.config = config or HeuristicConfig()
        self.rules = rules

    def tag(self, line: str) -> LineTag:
        for tag, predicate in self.rules:
            if predicate(line, self.markup, self.config):
                return tag
        return LineTag.PLAIN

    def classify(self, lines: list[str]) -> LineTable:
        table = LineTable(
            Line(index=i, raw=line, tag=self.tag(line))
            for i, line in enumerate(lines)
        )
        logger.debug(f"Tagged {len(table)} lines: {table.tag_counts()}")
        return table
