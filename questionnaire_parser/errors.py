"""
Errors
======
Hard failures of the engine. Heuristic ambiguity is never an error;
it is resolved by the rule tables and reported as diagnostics.
"""


class QuestionnaireParseError(Exception):
    """Base class for questionnaire parser errors."""


class InputEmptyError(QuestionnaireParseError, ValueError):
    """The document contains no non-whitespace text."""


class LineConsumedError(QuestionnaireParseError, RuntimeError):
    """A line index was claimed by more than one element."""

    def __init__(self, index: int, owner: str, claimed_by: str):
        super().__init__(
            f"Line {index} already consumed by {claimed_by!r}, "
            f"cannot be claimed by {owner!r}"
        )
        self.index = index
        self.owner = owner
        self.claimed_by = claimed_by
