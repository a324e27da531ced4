"""
Validation Engine
=================
Post-parse validation and reporting.

After assembling each document, generates a report:
    - Total Sections / Questions Detected
    - Average Confidence and per-type counts
    - Low-Confidence Questions
    - Questions Missing Options (degraded selection questions)
    - Missing Question Numbers (gaps in sequence)
    - Duplicate Question Numbers
    - Empty Sections
    - Line coverage and the fallback tier used
    - Diagnostic breakdown by type

Never silently ignores failures.
"""

from __future__ import annotations

import logging
from collections import Counter

from .assembler import Assembly
from .models import (
    SELECTION_TYPES,
    Diagnostic,
    DiagnosticType,
    ParseReport,
    QuestionType,
    Section,
)

logger = logging.getLogger(__name__)


def question_label(section: Section, position: int) -> str:
    return f"section {section.order_index} / question {position}"


class ValidationEngine:
    """
    Validates an assembled questionnaire and produces a ParseReport.
    """

    def __init__(self, confidence_threshold: float = 0.5):
        self.confidence_threshold = confidence_threshold

    def validate(self, assembly: Assembly) -> ParseReport:
        """
        Run full validation on an assembly.

        Duplicate explicit numbers are also recorded as diagnostics on
        ``assembly.diagnostics`` before the breakdown is counted.

        Args:
            assembly: Output of the questionnaire assembler.

        Returns:
            ParseReport with all detected issues.
        """
        report = ParseReport(
            total_lines=len(assembly.table),
            consumed_lines=assembly.table.consumed_count,
            line_tags=assembly.table.tag_counts(),
            total_sections=len(assembly.sections),
            fallback_tier=assembly.fallback_tier,
        )

        type_counts = Counter()
        confidences = []
        missing_numbers = set()
        duplicate_numbers = set()

        for section in assembly.sections:
            if not section.questions:
                report.empty_sections.append(section.order_index)

            for position, q in enumerate(section.questions):
                type_counts[q.type.value] += 1
                confidences.append(q.confidence)

                if q.confidence < self.confidence_threshold:
                    report.low_confidence_questions.append(
                        question_label(section, position)
                    )

                if q.type in SELECTION_TYPES and not q.options:
                    report.questions_missing_options.append(
                        question_label(section, position)
                    )

            # Numbering may restart per section
            gaps, duplicates = self._check_numbering(section)
            missing_numbers.update(gaps)
            duplicate_numbers.update(duplicates)

            if duplicates:
                assembly.diagnostics.append(Diagnostic(
                    type=DiagnosticType.DUPLICATE_QUESTION_NUMBER,
                    severity=20,
                    message=(
                        f"Duplicate question numbers in section "
                        f"{section.order_index}: {duplicates}"
                    ),
                    context={"section": section.order_index, "numbers": duplicates},
                ))

        report.total_questions = len(confidences)
        if confidences:
            report.average_confidence = round(sum(confidences) / len(confidences), 4)

        report.type_counts = {
            t.value: type_counts[t.value]
            for t in QuestionType
            if type_counts[t.value]
        }
        report.missing_question_numbers = sorted(missing_numbers)
        report.duplicate_question_numbers = sorted(duplicate_numbers)
        report.diagnostic_breakdown = self._breakdown(assembly.diagnostics)

        self._log_report(report)
        return report

    def _check_numbering(self, section: Section) -> tuple[list[int], list[int]]:
        numbers = [q.number for q in section.questions if q.number is not None]
        if not numbers:
            return [], []

        counts = Counter(numbers)
        duplicates = sorted(num for num, count in counts.items() if count > 1)

        expected = set(range(min(numbers), max(numbers) + 1))
        gaps = sorted(expected - set(numbers))
        return gaps, duplicates

    def _breakdown(self, diagnostics: list[Diagnostic]) -> dict[str, int]:
        counts = Counter(d.type.value for d in diagnostics)
        return {
            t.value: counts[t.value]
            for t in DiagnosticType
            if counts[t.value]
        }

    def _log_report(self, report: ParseReport):
        logger.info("=" * 60)
        logger.info("PARSE REPORT")
        logger.info("=" * 60)
        logger.info(f"Sections Detected: {report.total_sections}")
        logger.info(f"Questions Detected: {report.total_questions}")
        logger.info(f"Average Confidence: {report.average_confidence:.2f}")
        logger.info(
            f"Lines Consumed: {report.consumed_lines}/{report.total_lines}"
        )
        logger.info(
            f"Low-Confidence Questions: {len(report.low_confidence_questions)}"
        )
        logger.info(
            f"Questions Missing Options: "
            f"{len(report.questions_missing_options)}"
        )
        logger.info(
            f"Missing Question Numbers: "
            f"{len(report.missing_question_numbers)}"
        )
        logger.info(
            f"Duplicate Question Numbers: "
            f"{len(report.duplicate_question_numbers)}"
        )
        if report.fallback_tier:
            logger.warning(f"Fallback tier used: {report.fallback_tier}")

        if report.type_counts:
            logger.info("Type Breakdown:")
            for type_name, count in report.type_counts.items():
                logger.info(f"  • {type_name}: {count}")

        if report.diagnostic_breakdown:
            logger.info("Diagnostic Breakdown:")
            for diagnostic_type, count in report.diagnostic_breakdown.items():
                logger.info(f"  • {diagnostic_type}: {count}")

        logger.info("=" * 60)
