"""Keyword scenery detection over story text.

Matching is plain case-insensitive substring containment, so "seahorse" still
counts as the sea. ``word_boundaries=True`` switches to whole-word matching for
callers who want fewer false positives.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Dict, FrozenSet, Sequence, Tuple


class Motif(str, Enum):
    FOREST = "forest"
    OCEAN = "ocean"
    MOUNTAIN = "mountain"
    SETTLEMENT = "settlement"
    CASTLE = "castle"


# Also the draw order: later motifs layer on top of earlier ones.
MOTIF_DRAW_ORDER: Tuple[Motif, ...] = (
    Motif.MOUNTAIN,
    Motif.FOREST,
    Motif.OCEAN,
    Motif.SETTLEMENT,
    Motif.CASTLE,
)

MOTIF_KEYWORDS: Dict[Motif, Sequence[str]] = {
    Motif.FOREST: ("forest",),
    Motif.OCEAN: ("ocean", "sea"),
    Motif.MOUNTAIN: ("mountain",),
    Motif.SETTLEMENT: ("city", "village"),
    Motif.CASTLE: ("castle",),
}


def _contains(text: str, keyword: str, word_boundaries: bool) -> bool:
    if not word_boundaries:
        return keyword in text
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def detect_motifs(story_text: str, *, word_boundaries: bool = False) -> FrozenSet[Motif]:
    lowered = (story_text or "").lower()
    if not lowered:
        return frozenset()
    return frozenset(
        motif
        for motif, keywords in MOTIF_KEYWORDS.items()
        if any(_contains(lowered, keyword, word_boundaries) for keyword in keywords)
    )


def ordered_motifs(motifs: FrozenSet[Motif]) -> Tuple[Motif, ...]:
    return tuple(motif for motif in MOTIF_DRAW_ORDER if motif in motifs)
