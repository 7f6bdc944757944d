"""Certificate Renderer Module.

Places the participant name, achievement level and programme name onto a
certificate background. Positions are fractions of the image size so the
design works at any resolution.

Key rules:
- Participant name wraps at 80% of the width; a one-line name sits at 52% of
  the height, a wrapped name starts higher at 45%
- Achievement level is a single upper-cased line at 65% of the height
- Programme name wraps tightly at 40% of the width, bold, at 80% of the height
- Every block is drawn inside ``width - 2 * margin``; the wrap width only
  decides where lines break
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from PIL import Image

from certgen.errors import MissingFieldError
from certgen.imaging import PillowBackend
from certgen.layout import LayoutResult, wrap_text

PARTICIPANT_WRAP_RATIO = 0.8
PROGRAMME_WRAP_RATIO = 0.4

PARTICIPANT_Y_SINGLE = 0.52
PARTICIPANT_Y_WRAPPED = 0.45
ACHIEVEMENT_Y = 0.65
PROGRAMME_Y = 0.8

DEFAULT_MARGIN = 80


@dataclass(frozen=True)
class TextBlock:
    text: str
    x: float
    y: float
    max_width: float
    weight: str = "regular"


@dataclass(frozen=True)
class RenderPlan:
    width: int
    height: int
    participant: TextBlock
    achievement: TextBlock
    programme: TextBlock

    @property
    def blocks(self) -> Tuple[TextBlock, TextBlock, TextBlock]:
        return (self.participant, self.achievement, self.programme)


def participant_anchor(layout: LayoutResult, height: float) -> float:
    """Y anchor for the participant block; wrapped names start higher."""
    if layout.line_count > 1:
        return height * PARTICIPANT_Y_WRAPPED
    return height * PARTICIPANT_Y_SINGLE


class CertificateRenderer:
    """Lay out and draw certificate text through an image backend."""

    def __init__(self, backend: PillowBackend, margin: int = DEFAULT_MARGIN):
        self.backend = backend
        self.margin = margin

    def _measure(self, weight: str, height: int):
        font = self.backend.font(weight, height)
        return lambda candidate: self.backend.measure_text(font, candidate)

    def plan(
        self,
        width: int,
        height: int,
        participant_name: str,
        achievement_level: str,
        programme_name: str,
    ) -> RenderPlan:
        for field, value in (
            ("participant_name", participant_name),
            ("achievement_level", achievement_level),
            ("programme_name", programme_name),
        ):
            if not (value or "").strip():
                raise MissingFieldError(field)

        draw_width = width - self.margin * 2

        participant = wrap_text(
            participant_name.upper(), self._measure("regular", height), width * PARTICIPANT_WRAP_RATIO
        )
        programme = wrap_text(
            programme_name.upper(), self._measure("bold", height), width * PROGRAMME_WRAP_RATIO
        )

        return RenderPlan(
            width=width,
            height=height,
            participant=TextBlock(
                participant.text, self.margin, participant_anchor(participant, height), draw_width, "regular"
            ),
            achievement=TextBlock(
                achievement_level.strip().upper(), self.margin, height * ACHIEVEMENT_Y, draw_width, "regular"
            ),
            programme=TextBlock(programme.text, self.margin, height * PROGRAMME_Y, draw_width, "bold"),
        )

    def render(
        self,
        image: Image.Image,
        participant_name: str,
        achievement_level: str,
        programme_name: str,
    ) -> RenderPlan:
        """Composite the three text blocks onto ``image`` in place.

        Returns:
            The plan that was drawn
        """
        width, height = image.size
        plan = self.plan(width, height, participant_name, achievement_level, programme_name)
        for block in plan.blocks:
            font = self.backend.font(block.weight, height)
            self.backend.draw_text(image, font, block.x, block.y, block.text, block.max_width)
        return plan
