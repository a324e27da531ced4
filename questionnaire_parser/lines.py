"""
Line Table
==========
Normalized document lines held in an arena-style table.

Each entry carries its structural tag and a consumed marker. A line is
consumed at most once per parse (by a question continuation, an option
block, a section header or a section description); the table enforces
this.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .errors import LineConsumedError
from .models import LineTag

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\f|\v|\u2028|\u2029")
_INLINE_SPACE_RE = re.compile(r"[ \t\u00a0\u2007\u202f]+")


def normalize_lines(text: str) -> list[str]:
    """Split text into trimmed, whitespace-collapsed, non-empty lines."""
    text = _LINE_BREAK_RE.sub("\n", text or "")
    lines = []
    for raw in text.split("\n"):
        line = _INLINE_SPACE_RE.sub(" ", raw).strip()
        if line:
            lines.append(line)
    return lines


@dataclass
class Line:
    """A single tagged line. Only ``consumed_by`` changes after tagging."""

    index: int
    raw: str
    tag: LineTag
    consumed_by: Optional[str] = None

    @property
    def consumed(self) -> bool:
        return self.consumed_by is not None


class LineTable:
    """Ordered, index-addressable table of tagged lines for one parse."""

    def __init__(self, lines: Iterable[Line]):
        self._lines: list[Line] = list(lines)
        for position, line in enumerate(self._lines):
            if line.index != position:
                raise ValueError(
                    f"Line index {line.index} does not match position {position}"
                )

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> Line:
        return self._lines[index]

    def is_consumed(self, index: int) -> bool:
        return self._lines[index].consumed

    def consume(self, index: int, owner: str) -> None:
        """Mark a line as claimed by ``owner``; a second claim is an error."""
        line = self._lines[index]
        if line.consumed_by is not None:
            raise LineConsumedError(index, owner, line.consumed_by)
        line.consumed_by = owner

    def forward(
        self,
        start: int,
        limit: int,
        stop_tags: frozenset[LineTag] = frozenset(),
    ) -> list[Line]:
        """
        Lines from ``start`` onward, at most ``limit`` of them, ending
        before the first line whose tag is in ``stop_tags``.
        """
        window = []
        for line in self._lines[max(0, start):max(0, start) + max(0, limit)]:
            if line.tag in stop_tags:
                break
            window.append(line)
        return window

    def backward(self, index: int, size: int) -> list[Line]:
        """Up to ``size`` lines immediately before ``index``, in order."""
        return self._lines[max(0, index - size):max(0, index)]

    def claims(self) -> dict[int, str]:
        """Index → owner for every consumed line."""
        return {
            line.index: line.consumed_by
            for line in self._lines
            if line.consumed_by is not None
        }

    @property
    def consumed_count(self) -> int:
        return sum(1 for line in self._lines if line.consumed)

    def tag_counts(self) -> dict[str, int]:
        counts = Counter(line.tag.value for line in self._lines)
        return {tag.value: counts.get(tag.value, 0) for tag in LineTag}
