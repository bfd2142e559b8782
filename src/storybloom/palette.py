"""Color selection and scattered background ornaments shared by both composers."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .config import DEFAULT_PALETTE, SEED, IllustrationPalette
from .schema import Role


class RandomSource(Protocol):
    """Anything with ``random() -> float in [0, 1)``; ``random.Random`` qualifies."""

    def random(self) -> float:
        ...


# One process-wide source, so STORYBLOOM_SEED fixes the whole sequence of draws
# rather than restarting it on every call.
_DEFAULT_RNG = random.Random(SEED)


def default_random_source() -> RandomSource:
    return _DEFAULT_RNG


def uniform(rng: RandomSource, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


def pick_role_color(role: Optional[str], palette: IllustrationPalette = DEFAULT_PALETTE) -> str:
    bucket = Role.parse(role)
    if bucket is Role.PROTAGONIST:
        return palette.protagonist
    if bucket is Role.ANTAGONIST:
        return palette.antagonist
    return palette.supporting


def pick_random_palette_color(
    rng: Optional[RandomSource] = None,
    palette: IllustrationPalette = DEFAULT_PALETTE,
) -> str:
    rng = rng or default_random_source()
    colors = palette.decorative
    # random() can be stubbed to return 1.0; keep the index in range.
    index = min(int(rng.random() * len(colors)), len(colors) - 1)
    return colors[index]


@dataclass(frozen=True)
class Decoration:
    """A small ornamental circle positioned in percent of the canvas."""

    cx: float
    cy: float
    r: float
    opacity: float
    fill: str


ColorSource = Callable[[], str]


def scatter_decorations(
    count: int,
    color_source: ColorSource,
    *,
    rng: Optional[RandomSource] = None,
    radius_range: Tuple[float, float] = (0.5, 3.5),
    opacity_range: Tuple[float, float] = (0.1, 0.4),
) -> List[Decoration]:
    """Place ``count`` circles uniformly over the canvas.

    Position, radius and opacity are drawn from ``rng`` in that order for each
    circle; the fill comes from ``color_source`` so callers pick between the
    random palette and a fixed role color.
    """
    rng = rng or default_random_source()
    decorations: List[Decoration] = []
    for _ in range(max(0, count)):
        cx = uniform(rng, 0.0, 100.0)
        cy = uniform(rng, 0.0, 100.0)
        r = uniform(rng, *radius_range)
        opacity = uniform(rng, *opacity_range)
        decorations.append(Decoration(cx=cx, cy=cy, r=r, opacity=opacity, fill=color_source()))
    return decorations


def role_colors(palette: IllustrationPalette = DEFAULT_PALETTE) -> Sequence[str]:
    return (palette.protagonist, palette.antagonist, palette.supporting)


__all__ = [
    "RandomSource",
    "Decoration",
    "default_random_source",
    "pick_role_color",
    "pick_random_palette_color",
    "scatter_decorations",
    "role_colors",
]
