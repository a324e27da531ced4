"""
Context Analysis
================
Advisory signals from the lines around a question: options, scale
indicators and blanks that follow it, and instructions that precede it.

Forward lookahead never crosses into the next question or section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .config import HeuristicConfig
from .line_classifier import (
    is_blank_placeholder,
    is_option_marker,
    is_scale_indicator,
)
from .lines import LineTable
from .models import LineTag

BOUNDARY_TAGS = frozenset({LineTag.QUESTION, LineTag.SECTION})

INSTRUCTION_PATTERN = re.compile(r"instruction|note|please|important", re.IGNORECASE)
BRACKET_OPTION_PATTERN = re.compile(r"^\[\s*[xX✓✔]?\s*\]")
PAREN_OPTION_PATTERN = re.compile(r"^\(\s*\)\s*[A-Za-z]")
YES_NO_PATTERN = re.compile(r"^[\(\[]?\s*[xX]?\s*[\)\]]?\s*(?:yes|no)$", re.IGNORECASE)


@dataclass(frozen=True)
class ContextSignals:
    """Signals consumed by the question type classifier."""

    has_options_after: bool = False
    has_scale_after: bool = False
    has_blank_after: bool = False
    option_count: int = 0
    has_many_options: bool = False
    has_instructions: bool = False
    has_bracket_options: bool = False
    has_paren_options: bool = False
    paren_option_count: int = 0
    yes_no_count: int = 0


class ContextAnalyzer:
    """Computes ContextSignals for a question from its neighbouring lines."""

    def __init__(self, config: Optional[HeuristicConfig] = None):
        self.config = config or HeuristicConfig()

    def analyze(
        self,
        table: LineTable,
        question_index: int,
        start: int,
    ) -> ContextSignals:
        """
        Args:
            table: Tagged lines of the document.
            question_index: Index of the question line.
            start: First line after the question and its continuation.
        """
        after = [
            line.raw
            for line in table.forward(start, self.config.lookahead_lines, BOUNDARY_TAGS)
        ]
        before = [
            line.raw
            for line in table.backward(question_index, self.config.context_window)
        ]
        return self.analyze_lines(after, before)

    def analyze_lines(self, after: list[str], before: list[str]) -> ContextSignals:
        near = after[:self.config.context_window]

        option_lines = [
            line for line in after
            if is_option_marker(line) and not is_scale_indicator(line)
        ]
        paren_lines = [line for line in after if PAREN_OPTION_PATTERN.match(line)]

        return ContextSignals(
            has_options_after=bool(option_lines),
            has_scale_after=any(is_scale_indicator(line) for line in after),
            has_blank_after=any(is_blank_placeholder(line) for line in near),
            option_count=len(option_lines),
            has_many_options=len(option_lines) > self.config.select_option_threshold,
            has_instructions=any(INSTRUCTION_PATTERN.search(line) for line in before),
            has_bracket_options=any(BRACKET_OPTION_PATTERN.match(line) for line in after),
            has_paren_options=bool(paren_lines),
            paren_option_count=len(paren_lines),
            yes_no_count=sum(1 for line in after if YES_NO_PATTERN.match(line.strip())),
        )
