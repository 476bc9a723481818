from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Union

MAX_WIDTH_RATIO = 0.7
SHRINK_FACTOR = 0.95
MAX_SHRINK_ATTEMPTS = 50
LINE_HEIGHT_RATIO = 1.2

# (text, font_family, font_size_px) -> width in px
MeasureWidth = Callable[[str, str, float], float]


@dataclass(frozen=True)
class FitRequest:
    text: str
    canvas_width: float
    canvas_height: float
    font_family: str
    preferred_font_size: float
    min_font_size: float

    @property
    def max_text_width(self) -> float:
        return self.canvas_width * MAX_WIDTH_RATIO


@dataclass(frozen=True)
class SingleLine:
    font_size: float
    measured_width: float


@dataclass(frozen=True)
class TwoLines:
    font_size: float
    line1: str
    line2: str
    measured_width1: float
    measured_width2: float
    line_height: float


FitResult = Union[SingleLine, TwoLines]


@dataclass(frozen=True)
class TextPlacement:
    font_family: str
    font_size: float
    lines: tuple[str, ...]
    anchor_x: float
    anchor_ys: tuple[float, ...]
    max_width: float
    align: str = "center"


def split_last_word(text: str) -> tuple[str, str] | None:
    """Split ``text`` at its last interior space.

    The last word stays whole on the second line, so a family name is never
    broken. Returns ``None`` when the text has no interior space.
    """
    stripped = text.strip()
    head, sep, tail = stripped.rpartition(" ")
    if not sep or not head.strip() or not tail:
        return None
    return head.rstrip(), tail


def fit(request: FitRequest, measure_width: MeasureWidth) -> FitResult:
    """Choose a font size (and maybe a two-line split) for ``request.text``.

    Shrinks geometrically from the preferred size until the text fits in 70%
    of the canvas width, never going below ``min_font_size``. Text that still
    overflows at the floor is wrapped at the last space when it has one,
    otherwise returned as an overflowing single line. Exceptions raised by
    ``measure_width`` propagate unchanged.
    """
    text = request.text
    family = request.font_family
    max_width = request.max_text_width

    font_size = request.preferred_font_size
    width = measure_width(text, family, font_size)
    attempts = 0
    while width > max_width and attempts < MAX_SHRINK_ATTEMPTS:
        font_size = math.floor(font_size * SHRINK_FACTOR)
        width = measure_width(text, family, font_size)
        attempts += 1

    if font_size < request.min_font_size:
        font_size = request.min_font_size
        width = measure_width(text, family, font_size)
        if width > max_width:
            split = split_last_word(text)
            if split is not None:
                line1, line2 = split
                return TwoLines(
                    font_size=font_size,
                    line1=line1,
                    line2=line2,
                    measured_width1=measure_width(line1, family, font_size),
                    measured_width2=measure_width(line2, family, font_size),
                    line_height=font_size * LINE_HEIGHT_RATIO,
                )

    return SingleLine(font_size=font_size, measured_width=width)


def place(request: FitRequest, result: FitResult) -> TextPlacement:
    center_x = request.canvas_width / 2
    center_y = request.canvas_height / 2
    if isinstance(result, TwoLines):
        half = result.line_height / 2
        lines: tuple[str, ...] = (result.line1, result.line2)
        anchor_ys: tuple[float, ...] = (center_y - half, center_y + half)
    else:
        lines = (request.text,)
        anchor_ys = (center_y,)
    return TextPlacement(
        font_family=request.font_family,
        font_size=result.font_size,
        lines=lines,
        anchor_x=center_x,
        anchor_ys=anchor_ys,
        max_width=request.max_text_width,
    )


def describe(request: FitRequest, result: FitResult) -> str:
    """One-line summary of a fit outcome, used in log messages."""
    budget = request.max_text_width
    if isinstance(result, TwoLines):
        return (
            f"two lines at {result.font_size}px "
            f"({result.line1!r} {result.measured_width1:.0f}px, "
            f"{result.line2!r} {result.measured_width2:.0f}px; budget {budget:.0f}px)"
        )
    return (
        f"single line at {result.font_size}px "
        f"({result.measured_width:.0f}px / {budget:.0f}px)"
    )
