"""Text Layout Module.

Greedy word wrapping against a font-aware width measurement.

The wrapper never splits a word: a word wider than ``max_width`` is placed
alone on its own line and allowed to overflow. Empty (or whitespace-only)
input yields a result with zero lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

Measure = Callable[[str], float]


@dataclass(frozen=True)
class LayoutResult:
    lines: Tuple[str, ...] = ()

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def wrap_text(text: str, measure: Measure, max_width: float) -> LayoutResult:
    """Break ``text`` into lines no wider than ``max_width`` where possible.

    Args:
        text: The text to wrap; any whitespace separates words
        measure: Returns the rendered pixel width of a candidate line
        max_width: Maximum line width in pixels

    Returns:
        LayoutResult with the lines in original word order
    """
    lines: List[str] = []
    current = ""

    for word in (text or "").split():
        candidate = f"{current} {word}".strip()
        if measure(candidate) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word

    if current:
        lines.append(current)

    return LayoutResult(tuple(lines))
