from __future__ import annotations

from storybloom.motifs import MOTIF_DRAW_ORDER, Motif, detect_motifs, ordered_motifs


def test_ocean_detected() -> None:
    assert Motif.OCEAN in detect_motifs("They rowed across the ocean")


def test_sea_maps_to_ocean() -> None:
    assert detect_motifs("By the SEA shore") == {Motif.OCEAN}


def test_mountain_village_yields_two_motifs() -> None:
    assert detect_motifs("A quiet mountain village") == {Motif.MOUNTAIN, Motif.SETTLEMENT}


def test_city_maps_to_settlement() -> None:
    assert detect_motifs("The City never slept") == {Motif.SETTLEMENT}


def test_empty_text_yields_nothing() -> None:
    assert detect_motifs("") == frozenset()
    assert detect_motifs(None) == frozenset()  # type: ignore[arg-type]


def test_all_motifs() -> None:
    text = "Forest, sea, Mountain, village and a CASTLE."
    assert detect_motifs(text) == set(Motif)


def test_substring_matching_over_matches() -> None:
    assert Motif.OCEAN in detect_motifs("a seahorse swam by")
    assert Motif.OCEAN in detect_motifs("the season changed")


def test_word_boundary_mode_skips_partial_words() -> None:
    assert detect_motifs("a seahorse swam by", word_boundaries=True) == frozenset()
    assert detect_motifs("a sea horse swam by", word_boundaries=True) == {Motif.OCEAN}


def test_ordered_motifs_follow_draw_order() -> None:
    found = detect_motifs("castle by the ocean under a mountain")
    assert ordered_motifs(found) == (Motif.MOUNTAIN, Motif.OCEAN, Motif.CASTLE)
    assert ordered_motifs(frozenset(Motif)) == MOTIF_DRAW_ORDER
