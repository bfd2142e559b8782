"""Procedural SVG illustrations for stories and their characters.

Two composers share the palette and decoration helpers:

* :class:`SceneComposer` turns a story into an 800x500 scene: gradient background with
  scattered ornaments, keyword-driven scenery (mountains, forest, ocean, settlement,
  castle) over a ground strip, and up to three character glyphs on a common baseline.
* :class:`PortraitComposer` draws a 300x300 head-and-shoulders avatar for one character,
  colored by role and ringed with up to three trait markers.

Both take an injectable ``RandomSource`` so tests can substitute a fixed sequence; the
randomness only ever affects decorative geometry, never which elements are drawn.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import orjson
import svgwrite

from .config import DEFAULT_PALETTE, IllustrationPalette
from .motifs import Motif, detect_motifs, ordered_motifs
from .palette import (
    Decoration,
    RandomSource,
    default_random_source,
    pick_random_palette_color,
    pick_role_color,
    scatter_decorations,
    uniform,
)
from .schema import CharacterInfo
from .svg import fmt, new_drawing, pct, points, quad_curve, to_markup

log = logging.getLogger(__name__)

SCENE_WIDTH, SCENE_HEIGHT = 800, 500
PORTRAIT_WIDTH, PORTRAIT_HEIGHT = 300, 300
MAX_SCENE_CHARACTERS = 3
MAX_TRAIT_MARKERS = 3

CharacterLike = Union[CharacterInfo, Dict[str, Any], str]


def _coerce_character(character: CharacterLike) -> CharacterInfo:
    if isinstance(character, CharacterInfo):
        return character
    if isinstance(character, dict):
        return CharacterInfo.model_validate(character)
    try:
        data = orjson.loads(character)
    except orjson.JSONDecodeError:
        data = json.loads(character)
    return CharacterInfo.model_validate(data)


def _coerce_characters(characters: Optional[Iterable[CharacterLike]]) -> List[CharacterInfo]:
    if characters is None:
        return []
    return [_coerce_character(character) for character in characters]


def _draw_decorations(dwg: svgwrite.Drawing, decorations: Sequence[Decoration]) -> None:
    layer = dwg.add(dwg.g(class_="decorations"))
    for deco in decorations:
        layer.add(
            dwg.circle(
                center=(pct(deco.cx), pct(deco.cy)),
                r=fmt(deco.r),
                fill=deco.fill,
                opacity=fmt(deco.opacity),
                class_="decoration",
            )
        )


class SceneComposer:
    """Compose the full-story illustration from story text and its cast."""

    def __init__(
        self,
        *,
        rng: Optional[RandomSource] = None,
        palette: IllustrationPalette = DEFAULT_PALETTE,
        decoration_count: int = 20,
        word_boundaries: bool = False,
    ) -> None:
        self._rng = rng
        self.palette = palette
        self.decoration_count = decoration_count
        self.word_boundaries = word_boundaries

    def _ensure_rng(self) -> RandomSource:
        if self._rng is None:
            self._rng = default_random_source()
        return self._rng

    # -- background ----------------------------------------------------------

    def _background(self, dwg: svgwrite.Drawing, rng: RandomSource) -> None:
        gradient = dwg.linearGradient(start=("0%", "0%"), end=("100%", "100%"), id="bg-gradient")
        gradient.add_stop_color(offset="0%", color=self.palette.paper)
        gradient.add_stop_color(offset="100%", color=self.palette.paper_shade)
        dwg.defs.add(gradient)
        dwg.add(dwg.rect(insert=(0, 0), size=("100%", "100%"), fill=gradient.get_funciri(), class_="background"))

        decorations = scatter_decorations(
            self.decoration_count,
            lambda: pick_random_palette_color(rng, self.palette),
            rng=rng,
            radius_range=(0.5, 3.5),
            opacity_range=(0.1, 0.4),
        )
        _draw_decorations(dwg, decorations)

    # -- scenery -------------------------------------------------------------

    def _layer(self, dwg: svgwrite.Drawing, motif: str):
        return dwg.add(dwg.g(class_="scenery", data_motif=motif))

    def _ground(self, dwg: svgwrite.Drawing) -> None:
        layer = self._layer(dwg, "ground")
        layer.add(dwg.rect(insert=(0, "75%"), size=("100%", "25%"), fill=self.palette.protagonist, opacity=0.2))

    def _mountains(self, dwg: svgwrite.Drawing) -> None:
        ink = self.palette.ink
        layer = self._layer(dwg, Motif.MOUNTAIN.value)
        near = [(0, 75), (15, 40), (30, 65), (45, 35), (60, 75)]
        far = [(60, 75), (75, 45), (90, 55), (100, 65), (100, 75)]
        layer.add(dwg.polygon(points(near, SCENE_WIDTH, SCENE_HEIGHT), fill=ink, opacity=0.7))
        layer.add(dwg.polygon(points(far, SCENE_WIDTH, SCENE_HEIGHT), fill=ink, opacity=0.5))

    def _forest(self, dwg: svgwrite.Drawing, rng: RandomSource) -> None:
        layer = self._layer(dwg, Motif.FOREST.value)
        y = 70
        for i in range(10):
            x = 10 + i * 8
            canopy = uniform(rng, 10, 15)
            tree = layer.add(dwg.g(class_="tree"))
            tree.add(dwg.circle(center=(pct(x), pct(y)), r=fmt(canopy), fill=self.palette.protagonist, opacity=0.8))
            tree.add(dwg.rect(insert=(pct(x - 1), pct(y)), size=("2%", "5%"), fill=self.palette.ink, opacity=0.8))

    def _ocean(self, dwg: svgwrite.Drawing) -> None:
        layer = self._layer(dwg, Motif.OCEAN.value)
        layer.add(dwg.rect(insert=(0, "70%"), size=("100%", "30%"), fill=self.palette.protagonist, opacity=0.6))
        step = 100 / 8
        for i in range(8):
            start = i * step
            layer.add(
                dwg.path(
                    d=quad_curve((start, 75), (start + step / 2, 70), (start + step, 75), SCENE_WIDTH, SCENE_HEIGHT),
                    stroke="white",
                    fill="none",
                    stroke_width=1,
                    opacity=0.5,
                    class_="wave",
                )
            )

    def _settlement(self, dwg: svgwrite.Drawing, rng: RandomSource) -> None:
        layer = self._layer(dwg, Motif.SETTLEMENT.value)
        for i in range(7):
            x = 10 * i + 20
            height = uniform(rng, 10, 25)
            width = uniform(rng, 5, 8)
            top = 75 - height
            building = layer.add(dwg.g(class_="building"))
            building.add(
                dwg.rect(insert=(pct(x), pct(top)), size=(pct(width), pct(height)), fill=self.palette.ink, opacity=0.7)
            )
            for j in range(3):
                building.add(
                    dwg.rect(
                        insert=(pct(x + 1), pct(top + 2 + j * 5)),
                        size=("1.5%", "2%"),
                        fill=self.palette.accent,
                        opacity=0.8,
                        class_="window",
                    )
                )

    def _castle(self, dwg: svgwrite.Drawing) -> None:
        ink, lit = self.palette.ink, self.palette.accent
        layer = self._layer(dwg, Motif.CASTLE.value)
        for part, insert, size, fill, opacity in (
            ("wall", ("40%", "45%"), ("20%", "30%"), ink, 0.8),
            ("battlements", ("38%", "42%"), ("24%", "3%"), ink, 0.8),
            ("tower", ("43%", "35%"), ("4%", "10%"), ink, 0.8),
            ("tower", ("53%", "35%"), ("4%", "10%"), ink, 0.8),
            ("door", ("48%", "55%"), ("4%", "7%"), self.palette.paper, 0.9),
            ("window", ("42%", "50%"), ("3%", "3%"), lit, 0.7),
            ("window", ("55%", "50%"), ("3%", "3%"), lit, 0.7),
        ):
            layer.add(dwg.rect(insert=insert, size=size, fill=fill, opacity=opacity, class_=part))

    def _scenery(self, dwg: svgwrite.Drawing, story_text: str, rng: RandomSource) -> None:
        motifs = detect_motifs(story_text, word_boundaries=self.word_boundaries)
        log.debug("Scene motifs detected: %s", sorted(m.value for m in motifs))
        # Only forest and settlement draw from the random source.
        recipes: Dict[Motif, Callable[[], None]] = {
            Motif.MOUNTAIN: lambda: self._mountains(dwg),
            Motif.FOREST: lambda: self._forest(dwg, rng),
            Motif.OCEAN: lambda: self._ocean(dwg),
            Motif.SETTLEMENT: lambda: self._settlement(dwg, rng),
            Motif.CASTLE: lambda: self._castle(dwg),
        }
        self._ground(dwg)
        for motif in ordered_motifs(motifs):
            recipes[motif]()

    # -- characters ----------------------------------------------------------

    def _character_glyph(self, dwg: svgwrite.Drawing, character: CharacterInfo, index: int, total: int) -> None:
        spacing = 100 / (total + 1)
        x = spacing * (index + 1)
        color = pick_role_color(character.role, self.palette)
        ink = self.palette.ink

        glyph = dwg.add(dwg.g(class_="character", data_role=character.role_bucket.value))
        glyph.add(dwg.circle(center=(pct(x), "60%"), r=8, fill=color, class_="head"))
        glyph.add(dwg.rect(insert=(pct(x - 5), "68%"), size=("10%", "12%"), fill=color, opacity=0.8, class_="torso"))
        for x1, y1, x2, y2 in (
            (x - 5, 72, x - 10, 75),
            (x + 5, 72, x + 10, 75),
            (x - 2, 80, x - 2, 90),
            (x + 2, 80, x + 2, 90),
        ):
            glyph.add(
                dwg.line(start=(pct(x1), pct(y1)), end=(pct(x2), pct(y2)), stroke=color, stroke_width=2, class_="limb")
            )
        glyph.add(dwg.circle(center=(pct(x - 2), "58%"), r=1, fill=ink, class_="eye"))
        glyph.add(dwg.circle(center=(pct(x + 2), "58%"), r=1, fill=ink, class_="eye"))
        glyph.add(
            dwg.path(
                d=quad_curve((x - 2, 62), (x, 64), (x + 2, 62), SCENE_WIDTH, SCENE_HEIGHT),
                stroke=ink,
                fill="none",
                stroke_width=1,
                class_="mouth",
            )
        )
        glyph.add(
            dwg.text(
                character.name,
                insert=(pct(x), "95%"),
                text_anchor="middle",
                font_family="Arial",
                font_size=4,
                fill=ink,
                class_="name",
            )
        )

    def compose(
        self,
        title: str,
        story_text: str,
        characters: Optional[Iterable[CharacterLike]] = None,
    ) -> str:
        # ``title`` is accepted for call-site parity; it is not drawn.
        rng = self._ensure_rng()
        cast = _coerce_characters(characters)
        shown = cast[:MAX_SCENE_CHARACTERS]
        if len(cast) > len(shown):
            log.debug("Scene %r: dropping %d extra characters", title, len(cast) - len(shown))

        dwg = new_drawing(SCENE_WIDTH, SCENE_HEIGHT)
        self._background(dwg, rng)
        self._scenery(dwg, story_text or "", rng)
        for index, character in enumerate(shown):
            self._character_glyph(dwg, character, index, len(shown))
        return to_markup(dwg)


class PortraitComposer:
    """Compose a standalone avatar for one character."""

    def __init__(
        self,
        *,
        rng: Optional[RandomSource] = None,
        palette: IllustrationPalette = DEFAULT_PALETTE,
        decoration_count: int = 10,
        trait_ring_radius: float = 35.0,
    ) -> None:
        self._rng = rng
        self.palette = palette
        self.decoration_count = decoration_count
        self.trait_ring_radius = trait_ring_radius

    def _ensure_rng(self) -> RandomSource:
        if self._rng is None:
            self._rng = default_random_source()
        return self._rng

    def trait_positions(self, count: int) -> List[Tuple[float, float]]:
        """Marker centers in percent, stepping 45 degrees around the head from 45."""
        positions = []
        for i in range(min(count, MAX_TRAIT_MARKERS)):
            angle = i * math.pi / 4 + math.pi / 4
            positions.append(
                (
                    50 + self.trait_ring_radius * math.cos(angle),
                    40 + self.trait_ring_radius * math.sin(angle),
                )
            )
        return positions

    def _avatar(self, dwg: svgwrite.Drawing, color: str) -> None:
        ink, paper = self.palette.ink, self.palette.paper
        avatar = dwg.add(dwg.g(class_="avatar"))
        avatar.add(dwg.circle(center=("50%", "40%"), r=50, fill=color, class_="head"))
        for cx in ("40%", "60%"):
            avatar.add(dwg.circle(center=(cx, "35%"), r=5, fill=paper, class_="eye-socket"))
            avatar.add(dwg.circle(center=(cx, "35%"), r=2.5, fill=ink, class_="pupil"))
        avatar.add(
            dwg.path(
                d=quad_curve((40, 50), (50, 60), (60, 50), PORTRAIT_WIDTH, PORTRAIT_HEIGHT),
                stroke=ink,
                stroke_width=3,
                fill="none",
                class_="mouth",
            )
        )
        avatar.add(dwg.rect(insert=("35%", "65%"), size=("30%", 50), rx=10, fill=color, opacity=0.8, class_="torso"))
        for start, end in ((("35%", "70%"), ("20%", "80%")), (("65%", "70%"), ("80%", "80%"))):
            avatar.add(
                dwg.line(start=start, end=end, stroke=color, stroke_width=10, stroke_linecap="round", class_="arm")
            )

    def compose(self, character: CharacterLike) -> str:
        rng = self._ensure_rng()
        info = _coerce_character(character)
        color = pick_role_color(info.role, self.palette)

        dwg = new_drawing(PORTRAIT_WIDTH, PORTRAIT_HEIGHT)
        dwg.add(dwg.rect(insert=(0, 0), size=("100%", "100%"), fill=self.palette.paper, class_="background"))
        decorations = scatter_decorations(
            self.decoration_count,
            lambda: color,
            rng=rng,
            radius_range=(1.0, 4.0),
            opacity_range=(0.1, 0.3),
        )
        _draw_decorations(dwg, decorations)
        self._avatar(dwg, color)

        traits = info.traits[:MAX_TRAIT_MARKERS]
        markers = dwg.add(dwg.g(class_="traits"))
        for trait, (x, y) in zip(traits, self.trait_positions(len(traits))):
            marker = markers.add(
                dwg.circle(
                    center=(pct(x), pct(y)),
                    r=10,
                    fill=self.palette.accent,
                    opacity=0.8,
                    class_="trait-marker",
                )
            )
            marker.set_desc(title=trait)
        log.debug("Portrait for %r: %d trait markers", info.name, len(traits))
        return to_markup(dwg)


def compose_scene(
    title: str,
    story_text: str,
    characters: Optional[Iterable[CharacterLike]] = None,
    *,
    rng: Optional[RandomSource] = None,
    palette: IllustrationPalette = DEFAULT_PALETTE,
) -> str:
    return SceneComposer(rng=rng, palette=palette).compose(title, story_text, characters)


def compose_portrait(
    character: CharacterLike,
    *,
    rng: Optional[RandomSource] = None,
    palette: IllustrationPalette = DEFAULT_PALETTE,
) -> str:
    return PortraitComposer(rng=rng, palette=palette).compose(character)


__all__ = [
    "SceneComposer",
    "PortraitComposer",
    "compose_scene",
    "compose_portrait",
    "SCENE_WIDTH",
    "SCENE_HEIGHT",
    "PORTRAIT_WIDTH",
    "PORTRAIT_HEIGHT",
]
