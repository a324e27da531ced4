"""
Question Type Classifier
========================
Combines text features and context signals into per-type scores.

Scores live in an array indexed by the QuestionType declaration order.
Every matching scoring rule adds its delta (no short-circuit), context
adjustments then subtract weight, and the highest score wins. Ties go
to the type declared first in QuestionType.

The file-upload cue is the single absolute override: it returns
``file`` immediately with a fixed confidence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import HeuristicConfig
from .context import ContextSignals
from .features import FeatureSet
from .models import QuestionType

logger = logging.getLogger(__name__)

T = QuestionType

QUESTION_TYPES: tuple[QuestionType, ...] = tuple(QuestionType)
TYPE_INDEX: dict[QuestionType, int] = {t: i for i, t in enumerate(QUESTION_TYPES)}

Predicate = Callable[[FeatureSet, ContextSignals], bool]


@dataclass(frozen=True)
class ScoringRule:
    name: str
    predicate: Predicate
    type: QuestionType
    delta: int


@dataclass(frozen=True)
class ScoreAdjustment:
    """Subtracts weight from several types when its predicate holds."""
    name: str
    predicate: Predicate
    penalties: tuple[tuple[QuestionType, int], ...]


@dataclass(frozen=True)
class Classification:
    type: QuestionType
    confidence: float
    scores: tuple[int, ...] = ()
    fired: tuple[str, ...] = ()
    fallback: bool = False

    def score_of(self, question_type: QuestionType) -> int:
        if not self.scores:
            return 0
        return self.scores[TYPE_INDEX[question_type]]


# ─── Rule Tables ──────────────────────────────────────────────────────────────

SCORING_RULES: tuple[ScoringRule, ...] = (
    # Contact fields
    ScoringRule("email_cue", lambda f, c: f.has_email, T.EMAIL, 80),
    ScoringRule("email_not_select", lambda f, c: f.has_email and not f.has_select, T.EMAIL, 50),
    ScoringRule("phone_cue", lambda f, c: f.has_phone, T.PHONE, 80),
    ScoringRule("url_cue", lambda f, c: f.has_url, T.URL, 80),
    ScoringRule("web_literal", lambda f, c: f.has_web_literal, T.URL, 40),

    # Date / time
    ScoringRule("temporal_cue", lambda f, c: f.has_temporal and not f.has_select, T.DATE, 60),
    ScoringRule("date_cue", lambda f, c: f.has_date_cue and not c.has_options_after, T.DATE, 50),
    ScoringRule("time_cue", lambda f, c: f.has_time_cue and not c.has_options_after, T.TIME, 60),

    # Numbers
    ScoringRule("quantity_cue", lambda f, c: f.has_quantity, T.NUMBER, 70),
    ScoringRule("numeric_not_scale", lambda f, c: f.has_numeric and not f.has_scale, T.NUMBER, 50),
    ScoringRule("count_cue", lambda f, c: f.has_count_cue and not c.has_options_after, T.NUMBER, 60),
    ScoringRule("age_cue", lambda f, c: f.has_age_cue and not c.has_options_after, T.NUMBER, 70),

    # Scales
    ScoringRule("scale_cue", lambda f, c: f.has_scale, T.RATING, 80),
    ScoringRule("scale_cue_radio", lambda f, c: f.has_scale, T.RADIO, 40),
    ScoringRule("agreement_cue", lambda f, c: f.has_agreement, T.RATING, 70),
    ScoringRule("agreement_cue_radio", lambda f, c: f.has_agreement, T.RADIO, 50),
    ScoringRule("likert_cue", lambda f, c: f.has_likert, T.RATING, 60),
    ScoringRule("likert_cue_radio", lambda f, c: f.has_likert, T.RADIO, 40),
    ScoringRule("scale_after", lambda f, c: c.has_scale_after, T.RATING, 50),
    ScoringRule("scale_after_radio", lambda f, c: c.has_scale_after, T.RADIO, 60),
    ScoringRule("numeric_range", lambda f, c: f.has_numeric_range, T.RATING, 70),
    ScoringRule("numeric_range_radio", lambda f, c: f.has_numeric_range, T.RADIO, 50),
    ScoringRule("slider_cue", lambda f, c: f.has_slider, T.SLIDER, 80),

    # Ranking
    ScoringRule("rank_importance", lambda f, c: f.has_rank and f.has_importance, T.TEXTAREA, 40),
    ScoringRule("rank_importance_multi", lambda f, c: f.has_rank and f.has_importance, T.CHECKBOX, 30),
    ScoringRule("rank_order", lambda f, c: f.has_rank_order, T.TEXTAREA, 50),

    # Multiple selection
    ScoringRule("all_that_apply", lambda f, c: f.has_all, T.CHECKBOX, 90),
    ScoringRule("multi_select", lambda f, c: f.has_multi_select, T.CHECKBOX, 80),
    ScoringRule("bracket_options", lambda f, c: c.has_bracket_options, T.CHECKBOX, 100),

    # Single selection
    ScoringRule("select_one", lambda f, c: f.has_one and f.has_select, T.RADIO, 70),
    ScoringRule("single_select", lambda f, c: f.has_single_select, T.RADIO, 80),
    ScoringRule("paren_options", lambda f, c: c.has_paren_options, T.RADIO, 100),
    ScoringRule("binary_cue", lambda f, c: f.has_binary, T.RADIO, 90),
    ScoringRule("yes_no_options", lambda f, c: c.yes_no_count == 2, T.RADIO, 100),
    ScoringRule("two_paren_options", lambda f, c: c.paren_option_count == 2, T.RADIO, 100),

    # Dropdown
    ScoringRule("many_options", lambda f, c: c.has_many_options and not f.has_all, T.SELECT, 60),
    ScoringRule("many_options_radio", lambda f, c: c.has_many_options and not f.has_all, T.RADIO, -20),

    # Long-form text
    ScoringRule("describe_cue", lambda f, c: f.has_describe, T.TEXTAREA, 70),
    ScoringRule("opinion_cue", lambda f, c: f.has_opinion or f.has_feedback, T.TEXTAREA, 60),
    ScoringRule("why_cue", lambda f, c: f.has_why, T.TEXTAREA, 50),
    ScoringRule("long_form", lambda f, c: f.has_long_form, T.TEXTAREA, 70),
    ScoringRule("long_answer", lambda f, c: f.has_long_answer, T.TEXTAREA, 60),
    ScoringRule("blank_no_options", lambda f, c: c.has_blank_after and not c.has_options_after, T.TEXTAREA, 40),
    ScoringRule("long_question", lambda f, c: f.word_count > 20, T.TEXTAREA, 30),

    # Short text
    ScoringRule("name_cue", lambda f, c: f.has_name and not c.has_options_after, T.TEXT, 80),
    ScoringRule(
        "short_wh_question",
        lambda f, c: (
            (f.has_what or f.has_who or f.has_where)
            and not c.has_options_after
            and not f.has_describe
            and f.word_count < 15
        ),
        T.TEXT, 50,
    ),
    ScoringRule("short_blank", lambda f, c: c.has_blank_after and f.word_count < 12, T.TEXT, 40),
)

CONTEXT_ADJUSTMENTS: tuple[ScoreAdjustment, ...] = (
    ScoreAdjustment(
        "options_follow",
        lambda f, c: c.has_options_after,
        ((T.TEXT, 50), (T.TEXTAREA, 50), (T.NUMBER, 30), (T.DATE, 30)),
    ),
    ScoreAdjustment(
        "no_choices_follow",
        lambda f, c: not c.has_options_after and not c.has_scale_after,
        ((T.RADIO, 40), (T.CHECKBOX, 40), (T.SELECT, 40), (T.RATING, 40)),
    ),
)


class QuestionTypeClassifier:
    """Scores every QuestionType and picks the winner."""

    def __init__(
        self,
        config: Optional[HeuristicConfig] = None,
        rules: tuple[ScoringRule, ...] = SCORING_RULES,
        adjustments: tuple[ScoreAdjustment, ...] = CONTEXT_ADJUSTMENTS,
    ):
        self.config = config or HeuristicConfig()
        self.rules = rules
        self.adjustments = adjustments

    def classify(self, features: FeatureSet, context: ContextSignals) -> Classification:
        if features.has_upload:
            return Classification(
                type=T.FILE,
                confidence=self.config.file_confidence,
                fired=("upload_override",),
            )

        scores = [0] * len(QUESTION_TYPES)
        fired = []

        for rule in self.rules:
            if rule.predicate(features, context):
                scores[TYPE_INDEX[rule.type]] += rule.delta
                fired.append(rule.name)

        for adjustment in self.adjustments:
            if adjustment.predicate(features, context):
                for question_type, weight in adjustment.penalties:
                    i = TYPE_INDEX[question_type]
                    scores[i] = max(0, scores[i] - weight)
                fired.append(adjustment.name)

        max_score = max(scores)
        # list.index returns the first maximum, i.e. declaration order
        best = QUESTION_TYPES[scores.index(max_score)]

        if max_score < self.config.score_floor:
            return self._fallback(features, context, tuple(scores), tuple(fired))

        confidence = min(max_score / 100, self.config.confidence_cap)
        return Classification(
            type=best,
            confidence=confidence,
            scores=tuple(scores),
            fired=tuple(fired),
        )

    def _fallback(
        self,
        features: FeatureSet,
        context: ContextSignals,
        scores: tuple[int, ...],
        fired: tuple[str, ...],
    ) -> Classification:
        """Low-confidence ladder used when no type reaches the score floor."""
        if features.word_count > self.config.low_score_long_word_count:
            question_type = T.TEXTAREA
            confidence = self.config.low_score_long_confidence
        elif context.has_blank_after:
            question_type = T.TEXT
            confidence = self.config.low_score_blank_confidence
        else:
            question_type = T.TEXT
            confidence = self.config.low_score_default_confidence

        return Classification(
            type=question_type,
            confidence=confidence,
            scores=scores,
            fired=fired,
            fallback=True,
        )
