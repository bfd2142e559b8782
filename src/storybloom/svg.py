"""Drawing helpers shared by the composers.

Scenes and portraits are built as ``svgwrite`` drawings on a fixed viewBox. Shapes use
percentage coordinates where SVG allows them; ``points`` and ``quad_curve`` convert to
user units for polygon and path geometry, where percent is not legal.
"""
from __future__ import annotations

from typing import Iterable, List, Tuple

import svgwrite


def fmt(value: float) -> str:
    """Render a number compactly: ``12.0 -> '12'``, ``3.14159 -> '3.14'``."""
    if isinstance(value, int):
        return str(value)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def pct(value: float) -> str:
    return f"{fmt(value)}%"


def new_drawing(width: int, height: int) -> svgwrite.Drawing:
    # debug=False: the validator rejects data-* attributes used as structural hooks.
    dwg = svgwrite.Drawing(size=("100%", "100%"), profile="full", debug=False)
    dwg.viewbox(0, 0, width, height)
    return dwg


def points(coords: Iterable[Tuple[float, float]], width: int, height: int) -> List[Tuple[float, float]]:
    """Convert percentage ``(x, y)`` pairs into user-unit polygon points."""
    return [(round(x * width / 100, 2), round(y * height / 100, 2)) for x, y in coords]


def quad_curve(
    start: Tuple[float, float],
    control: Tuple[float, float],
    end: Tuple[float, float],
    width: int,
    height: int,
) -> str:
    """Quadratic Bezier ``d`` attribute from percentage coordinates."""

    def _pt(xy: Tuple[float, float]) -> str:
        return f"{fmt(xy[0] * width / 100)},{fmt(xy[1] * height / 100)}"

    return f"M{_pt(start)} Q{_pt(control)} {_pt(end)}"


def to_markup(dwg: svgwrite.Drawing) -> str:
    return dwg.tostring().strip()
