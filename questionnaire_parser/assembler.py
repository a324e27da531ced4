"""
Questionnaire Assembler
=======================
Single left-to-right pass over the tagged lines that turns question and
section lines into the section/question/option tree.

All per-parse state (line table, section accumulator, diagnostics) is
created inside ``assemble`` and handed to the helpers as an explicit
context value, so one assembler can serve concurrent parses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from .classifier import QuestionTypeClassifier
from .config import HeuristicConfig
from .context import ContextAnalyzer
from .features import extract_features
from .line_classifier import LineClassifier, is_scale_indicator, match_question
from .lines import Line, LineTable
from .markup import MarkupIndex
from .models import (
    SELECTION_TYPES,
    Diagnostic,
    DiagnosticType,
    LineTag,
    MultilingualText,
    Question,
    QuestionType,
    Section,
)
from .options import OptionExtractor
from .segmenter import (
    DEFAULT_SECTION_TITLE,
    IMPORTED_SECTION_TITLE,
    SectionSegmenter,
    build_section,
)

logger = logging.getLogger(__name__)

REQUIRED_MARK_PATTERN = re.compile(r"\((?:required|mandatory)\)", re.IGNORECASE)
LEADING_NOISE_PATTERN = re.compile(r"^\W+")
TRAILING_STAR_PATTERN = re.compile(r"\s*\*+$")
WHITESPACE_PATTERN = re.compile(r"\s+")

EMAIL_RULE = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
URL_RULE = r"^https?://"
PHONE_RULE = r"^[\d\s\-\+\(\)]+$"

NUMBER_RANGE_PATTERN = re.compile(r"(\d+)\s*(?:to|-)\s*(\d+)")
WORD_LIMIT_PATTERN = re.compile(r"(\d+)\s*words", re.IGNORECASE)
EMAIL_MENTION_PATTERN = re.compile(r"email", re.IGNORECASE)


def build_validation_rules(question_type: QuestionType, text: str) -> Optional[dict]:
    """Input validation hints for the inferred type, or None."""
    rules: dict = {}

    if question_type == QuestionType.NUMBER:
        rules["min"] = 0
        match = NUMBER_RANGE_PATTERN.search(text)
        if match:
            rules["min"] = int(match.group(1))
            rules["max"] = int(match.group(2))

    elif question_type == QuestionType.TEXT:
        rules["maxLength"] = 500
        if EMAIL_MENTION_PATTERN.search(text):
            rules["pattern"] = EMAIL_RULE

    elif question_type == QuestionType.TEXTAREA:
        rules["maxLength"] = 5000
        match = WORD_LIMIT_PATTERN.search(text)
        if match:
            rules["maxWords"] = int(match.group(1))

    elif question_type == QuestionType.EMAIL:
        rules["pattern"] = EMAIL_RULE

    elif question_type == QuestionType.URL:
        rules["pattern"] = URL_RULE

    elif question_type == QuestionType.PHONE:
        rules["pattern"] = PHONE_RULE

    return rules or None


@dataclass
class ParseContext:
    """Mutable state of one parse, passed explicitly between steps."""
    table: LineTable
    segmenter: SectionSegmenter = field(default_factory=SectionSegmenter)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class Assembly:
    """Output of one assembler pass."""
    sections: list[Section]
    table: LineTable
    diagnostics: list[Diagnostic]
    fallback_tier: int = 0


class QuestionnaireAssembler:
    """
    Drives the scan: tags lines, then for every question line merges
    its continuation, classifies it, extracts its options and files it
    under the current section.
    """

    def __init__(
        self,
        config: Optional[HeuristicConfig] = None,
        markup: Optional[MarkupIndex] = None,
    ):
        self.config = config or HeuristicConfig()
        self.line_classifier = LineClassifier(markup, self.config)
        self.context_analyzer = ContextAnalyzer(self.config)
        self.type_classifier = QuestionTypeClassifier(self.config)
        self.option_extractor = OptionExtractor(self.config)

    def assemble(self, lines: list[str]) -> Assembly:
        table = self.line_classifier.classify(lines)
        ctx = ParseContext(table=table)

        for line in table:
            if line.consumed:
                continue

            if line.tag == LineTag.SECTION:
                self._process_section(ctx, line)
            elif line.tag == LineTag.QUESTION:
                self._process_question(ctx, line)

        sections = ctx.segmenter.finish()
        fallback_tier = 0

        if not sections and ctx.segmenter.pending:
            # Tier 1: questions found but never placed under a header
            sections = [build_section(DEFAULT_SECTION_TITLE, ctx.segmenter.take_pending())]
            fallback_tier = 1
            logger.info("No section headers found, using default section")

        elif not sections:
            # Tier 2: nothing recognizable at all
            questions = self._fallback_questions(table)
            if questions:
                sections = [build_section(IMPORTED_SECTION_TITLE, questions)]
                fallback_tier = 2
                logger.warning(
                    f"No questions detected, imported {len(questions)} "
                    f"lines as best-effort questions"
                )
                ctx.diagnostics.append(Diagnostic(
                    type=DiagnosticType.FALLBACK_TIER,
                    severity=50,
                    message="No structure detected; lines imported as free-text questions",
                    context={"tier": 2, "questions": len(questions)},
                ))
            else:
                logger.warning("No usable lines to import")
                ctx.diagnostics.append(Diagnostic(
                    type=DiagnosticType.NO_STRUCTURE_DETECTED,
                    severity=100,
                    message="Fallback tiers produced no questions",
                ))

        for section in sections:
            if not section.questions:
                ctx.diagnostics.append(Diagnostic(
                    type=DiagnosticType.EMPTY_SECTION,
                    severity=10,
                    message=f"Section '{section.title.en}' has no questions",
                    context={"section": section.order_index},
                ))

        return Assembly(
            sections=sections,
            table=table,
            diagnostics=ctx.diagnostics,
            fallback_tier=fallback_tier,
        )

    # ─── Line Handlers ────────────────────────────────────────────────────

    def _process_section(self, ctx: ParseContext, line: Line) -> None:
        owner = f"section:{line.index}"
        ctx.table.consume(line.index, owner)
        ctx.segmenter.start_section(line.raw)

        description = []
        j = line.index + 1
        while j < len(ctx.table) and len(description) < self.config.max_description_lines:
            nxt = ctx.table[j]
            if nxt.consumed or nxt.tag != LineTag.PLAIN:
                break
            ctx.table.consume(j, owner)
            description.append(nxt.raw)
            j += 1

        if description:
            ctx.segmenter.set_description(" ".join(description))

    def _process_question(self, ctx: ParseContext, line: Line) -> None:
        table = ctx.table
        owner = f"question:{line.index}"

        matched = match_question(line.raw)
        if matched:
            number, body = matched
        else:
            number, body = None, LEADING_NOISE_PATTERN.sub("", line.raw)

        table.consume(line.index, owner)

        # (a) continuation lines
        parts = [body]
        j = line.index + 1
        while j < len(table) and j <= line.index + self.config.max_continuation_lines:
            nxt = table[j]
            if nxt.consumed or nxt.tag != LineTag.PLAIN or is_scale_indicator(nxt.raw):
                break
            table.consume(j, owner)
            parts.append(nxt.raw)
            j += 1

        text = WHITESPACE_PATTERN.sub(" ", " ".join(parts)).strip()

        # (b) classification on the lookahead after the continuation
        features = extract_features(text)
        context = self.context_analyzer.analyze(table, line.index, j)
        classification = self.type_classifier.classify(features, context)
        question_type = classification.type
        confidence = classification.confidence

        if classification.fallback:
            ctx.diagnostics.append(Diagnostic(
                type=DiagnosticType.LOW_CONFIDENCE,
                severity=30,
                message="No type reached the score floor; fallback type used",
                context={"line": line.index, "type": question_type.value},
            ))

        # (c) options
        options = None
        if question_type in SELECTION_TYPES:
            block = self.option_extractor.extract(
                table, j, question_type, line.index, text, owner
            )
            if block.options:
                options = block.options
                if block.synthesized:
                    ctx.diagnostics.append(Diagnostic(
                        type=DiagnosticType.SCALE_SYNTHESIZED,
                        severity=0,
                        message=f"Synthesized {len(options)} scale options",
                        context={"line": line.index},
                    ))
            else:
                confidence *= self.config.degraded_confidence_factor
                logger.warning(
                    f"No options found for {question_type.value} question "
                    f"at line {line.index} ({block.stop_reason})"
                )
                ctx.diagnostics.append(Diagnostic(
                    type=DiagnosticType.DEGRADED_OPTIONS,
                    severity=40,
                    message=f"Option extraction stopped early: {block.stop_reason}",
                    context={"line": line.index, "type": question_type.value},
                ))

        # (e) file the question
        required = "*" in text or bool(REQUIRED_MARK_PATTERN.search(text))
        clean_text = TRAILING_STAR_PATTERN.sub("", text).strip()

        question = Question(
            number=number,
            text=MultilingualText.replicate(clean_text),
            type=question_type,
            options=options,
            required=required,
            order_index=ctx.segmenter.next_order_index,
            validation_rules=build_validation_rules(question_type, text),
            help_text=MultilingualText(),
            confidence=round(confidence, 4),
        )
        ctx.segmenter.add(question)

        logger.debug(
            f"Question {number if number is not None else '?'} at line "
            f"{line.index}: {question_type.value} ({question.confidence:.2f})"
        )

    # ─── Fallback ─────────────────────────────────────────────────────────

    def _fallback_questions(self, table: LineTable) -> list[Question]:
        """
        Best-effort questions from plausible lines. These claim no lines
        in the table; the primary pass produced nothing to overlap with.
        """
        cfg = self.config
        candidates = [
            line.raw for line in table
            if line.tag not in (LineTag.SKIP, LineTag.SECTION)
            and cfg.fallback_min_length < len(line.raw) < cfg.fallback_max_length
        ]
        if not candidates:
            candidates = [line.raw[:cfg.fallback_max_length] for line in table]

        questions = []
        for text in candidates[:cfg.fallback_question_cap]:
            question_type = (
                QuestionType.TEXT
                if len(text) < cfg.fallback_textarea_length
                else QuestionType.TEXTAREA
            )
            questions.append(Question(
                number=None,
                text=MultilingualText.replicate(text),
                type=question_type,
                options=None,
                required=False,
                order_index=len(questions),
                validation_rules=build_validation_rules(question_type, text),
                help_text=MultilingualText(),
                confidence=cfg.fallback_confidence,
            ))
        return questions
