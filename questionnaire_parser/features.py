"""
Feature Extraction
==================
Pure mapping from question text to linguistic and keyword features.

No state, no position dependence: identical text always yields an
identical FeatureSet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureSet:
    """Boolean cues plus the word count of one question text."""

    # Interrogatives
    has_who: bool = False
    has_what: bool = False
    has_when: bool = False
    has_where: bool = False
    has_why: bool = False
    has_how: bool = False
    has_which: bool = False

    # Modality / preference
    has_modal: bool = False
    has_preference: bool = False

    # Temporal
    has_temporal: bool = False
    has_frequency: bool = False
    has_date_cue: bool = False
    has_time_cue: bool = False

    # Quantitative
    has_quantity: bool = False
    has_numeric: bool = False
    has_count_cue: bool = False
    has_age_cue: bool = False

    # Scales
    has_scale: bool = False
    has_numeric_range: bool = False
    has_slider: bool = False
    has_agreement: bool = False
    has_likert: bool = False

    # Descriptive
    has_describe: bool = False
    has_opinion: bool = False
    has_feedback: bool = False
    has_long_form: bool = False
    has_long_answer: bool = False

    # Selection
    has_select: bool = False
    has_all: bool = False
    has_multi_select: bool = False
    has_one: bool = False
    has_single_select: bool = False
    has_binary: bool = False

    # Contact fields
    has_email: bool = False
    has_phone: bool = False
    has_name: bool = False
    has_address: bool = False
    has_url: bool = False
    has_web_literal: bool = False

    # Ranking
    has_rank: bool = False
    has_importance: bool = False
    has_rank_order: bool = False

    # Upload
    has_upload: bool = False

    # Required / optional
    has_required: bool = False
    has_optional: bool = False

    word_count: int = 0


def _cue(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


# Field name → cue pattern (searched anywhere in the text)
CUE_PATTERNS: dict[str, re.Pattern] = {
    "has_who": _cue(r"\b(?:who|whom|whose)\b"),
    "has_what": _cue(r"\bwhat(?:'s)?\b"),
    "has_when": _cue(r"\b(?:when|what time)\b"),
    "has_where": _cue(r"\bwhere\b"),
    "has_why": _cue(r"\bwhy\b"),
    "has_how": _cue(r"\bhow\b"),
    "has_which": _cue(r"\bwhich\b"),

    "has_modal": _cue(r"\b(?:would|could|should|might)\b"),
    "has_preference": _cue(r"\b(?:prefer|preference|like|love|enjoy|favou?rite)\b"),

    "has_temporal": _cue(
        r"\b(?:date|time|year|month|day|week|yesterday|today|tomorrow"
        r"|when|schedule|deadline)\b"
    ),
    "has_frequency": _cue(
        r"\b(?:often|frequency|daily|weekly|monthly|yearly|always|never"
        r"|sometimes|regularly)\b"
    ),
    "has_date_cue": _cue(r"\bdate\b|\bbirth|\bdob\b|\bwhen did\b|\bwhen will\b"),
    "has_time_cue": _cue(r"\btime\b|\bhours?\b|\bminutes?\b|\d\s*(?:am|pm)\b"),

    "has_quantity": _cue(
        r"\b(?:how many|number of|count|quantity|amount|total|sum)\b"
    ),
    "has_numeric": _cue(r"\b(?:age|years old|score|rating|percentage|rate)\b"),
    "has_count_cue": _cue(r"\bhow many\b|\bnumber of\b"),
    "has_age_cue": _cue(r"\bage\b|\byears old\b|\bhow old\b"),

    "has_scale": _cue(
        r"\b(?:scale|rate|rating|rank|grade|level|from \d+ to \d+"
        r"|out of \d+|\d+-point)\b"
    ),
    "has_numeric_range": _cue(r"\b\d+\s*(?:to|-|through)\s*\d+\b"),
    "has_slider": _cue(r"slider|continuous|spectrum"),
    "has_agreement": _cue(
        r"\b(?:strongly agree|agree|neutral|disagree|strongly disagree"
        r"|satisfaction|satisfied)\b"
    ),
    "has_likert": _cue(r"\b(?:strongly|somewhat|neither|not at all)\b"),

    "has_describe": _cue(
        r"\b(?:describe|explain|elaborate|tell us|share|detail|discuss)\b"
    ),
    "has_opinion": _cue(
        r"\b(?:opinion|think|believe|feel|thoughts|view|perspective)\b"
    ),
    "has_feedback": _cue(
        r"\b(?:feedback|comment|suggestion|input|remarks|notes)\b"
    ),
    "has_long_form": _cue(
        r"explain|elaborate|detail|discuss|comment|feedback|thoughts"
    ),
    "has_long_answer": _cue(r"\b(?:maximum|up to \d+ words|brief|short|long)\b"),

    "has_select": _cue(r"\b(?:select|choose|pick|mark)\b"),
    "has_all": _cue(r"\b(?:all that apply|all applicable|multiple|up to \d+)\b"),
    "has_multi_select": _cue(
        r"select all|check all|mark all|choose all|multiple|up to \d+"
    ),
    "has_one": _cue(r"\b(?:one|single|only one)\b"),
    "has_single_select": _cue(r"select one|choose one|pick one|single choice"),
    "has_binary": _cue(
        r"\b(?:yes\s*/\s*no|true\s*/\s*false|agree\s*/\s*disagree)\b"
    ),

    "has_email": _cue(r"\be-?mail\b"),
    "has_phone": _cue(r"\b(?:phone|telephone|mobile|cell|contact number)\b"),
    "has_name": _cue(r"\b(?:name|first name|last name|full name)\b"),
    "has_address": _cue(r"\b(?:address|street|city|zip|postal code|location)\b"),
    "has_url": _cue(r"\b(?:website|url|link|web address|homepage|http)\b"),
    "has_web_literal": _cue(r"\b(?:website|url|links?)\b"),

    "has_rank": _cue(r"\b(?:rank|order|priority|prioriti[sz]e|arrange|sequence)\b"),
    "has_importance": _cue(r"\b(?:importance|important|most|least|priority)\b"),
    "has_rank_order": _cue(
        r"rank.*order|order.*importance|top \d+|first.*second.*third"
    ),

    "has_upload": _cue(
        r"\b(?:upload\w*|attach\w*|file|document|image|photo|resume|cv)\b"
    ),

    "has_optional": _cue(r"\b(?:optional|if applicable|if any)\b"),
}

REQUIRED_PATTERN = _cue(r"\b(?:required|mandatory|must|necessary)\b")


def extract_features(text: str) -> FeatureSet:
    """Compute the FeatureSet of a question text."""
    text = text or ""
    values = {name: bool(p.search(text)) for name, p in CUE_PATTERNS.items()}
    values["has_required"] = "*" in text or bool(REQUIRED_PATTERN.search(text))
    values["word_count"] = len(text.split())
    return FeatureSet(**values)
