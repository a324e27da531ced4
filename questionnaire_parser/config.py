"""
Heuristic Configuration
=======================
Tunable constants of the classification heuristics.

None of these values is a business rule; they are the defaults that
produce the reference behaviour and can be tuned per deployment.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HeuristicConfig:
    """Thresholds, windows and caps used across the pipeline."""

    # Line tagging
    question_min_length: int = 10
    emphasized_section_max_length: int = 60

    # Type classification
    score_floor: int = 30
    confidence_cap: float = 0.99
    file_confidence: float = 0.95
    low_score_long_confidence: float = 0.4
    low_score_blank_confidence: float = 0.4
    low_score_default_confidence: float = 0.3
    low_score_long_word_count: int = 15
    select_option_threshold: int = 10
    degraded_confidence_factor: float = 0.8

    # Context windows
    context_window: int = 5
    lookahead_lines: int = 20

    # Question assembly
    max_continuation_lines: int = 3
    max_description_lines: int = 2

    # Option extraction / scale synthesis
    scale_window: int = 5
    min_scale_options: int = 3
    max_scale_span: int = 20

    # Fallback tier 2
    fallback_min_length: int = 15
    fallback_max_length: int = 500
    fallback_textarea_length: int = 200
    fallback_question_cap: int = 20
    fallback_confidence: float = 0.2
