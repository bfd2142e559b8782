from __future__ import annotations

import random
import xml.etree.ElementTree as ET
from collections import Counter
from typing import Any, Dict, List

import orjson
import pytest

from storybloom.config import DEFAULT_PALETTE
from storybloom.illustration import PortraitComposer, SceneComposer, compose_portrait, compose_scene
from storybloom.schema import CharacterInfo

NS = "{http://www.w3.org/2000/svg}"


class SequenceRandom:
    """Deterministic stand-in for ``random.Random`` that cycles through fixed values."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def _parse(markup: str) -> ET.Element:
    return ET.fromstring(markup)


def _by_class(root: ET.Element, css_class: str, tag: str = "*") -> List[ET.Element]:
    return [el for el in root.iter(f"{NS}{tag}" if tag != "*" else tag) if el.get("class") == css_class]


def _scenery_blocks(root: ET.Element) -> List[str]:
    return [g.get("data-motif") for g in _by_class(root, "scenery", "g")]


def _cast(n: int) -> List[Dict[str, Any]]:
    roles = ["protagonist", "antagonist", "supporting"]
    return [{"name": f"C{i}", "role": roles[i % 3], "traits": []} for i in range(n)]


def _assert_single_container(markup: str, view_box: str) -> None:
    assert markup.startswith("<svg")
    assert markup.endswith("</svg>")
    assert markup.count("<svg") == 1
    assert markup.count("</svg>") == 1
    assert _parse(markup).get("viewBox") == view_box


@pytest.mark.parametrize("count", range(0, 11))
def test_scene_renders_at_most_three_glyphs(count: int) -> None:
    markup = compose_scene("Title", "A walk in the forest", _cast(count), rng=random.Random(count))
    root = _parse(markup)
    assert len(_by_class(root, "character", "g")) == min(count, 3)
    _assert_single_container(markup, "0 0 800 500")


@pytest.mark.parametrize("count", range(0, 11))
def test_portrait_renders_at_most_three_trait_markers(count: int) -> None:
    character = {"name": "Pip", "role": "supporting", "traits": [f"t{i}" for i in range(count)]}
    markup = compose_portrait(character, rng=random.Random(count))
    root = _parse(markup)
    assert len(_by_class(root, "trait-marker", "circle")) == min(count, 3)
    _assert_single_container(markup, "0 0 300 300")


def test_empty_story_still_draws_ground_and_background() -> None:
    markup = compose_scene("", "", [])
    root = _parse(markup)
    assert _scenery_blocks(root) == ["ground"]
    assert len(_by_class(root, "decoration", "circle")) == 20
    assert root.find(f"{NS}defs/{NS}linearGradient").get("id") == "bg-gradient"
    assert _by_class(root, "character", "g") == []


def test_none_characters_is_an_empty_cast() -> None:
    root = _parse(compose_scene("t", "castle", None))
    assert _by_class(root, "character", "g") == []
    assert _scenery_blocks(root) == ["ground", "castle"]


def test_end_to_end_castle_by_the_ocean() -> None:
    characters = [
        {"name": "Mira", "role": "protagonist", "traits": ["brave", "kind"]},
        {"name": "Thorn", "role": "antagonist", "traits": []},
    ]
    root = _parse(compose_scene("The Lonely Castle", "A lonely castle stood beside the ocean", characters))

    assert _scenery_blocks(root) == ["ground", "ocean", "castle"]
    glyphs = _by_class(root, "character", "g")
    assert len(glyphs) == 2
    heads = {
        g.find(f"{NS}text").text: g.find(f"{NS}circle[@class='head']").get("fill") for g in glyphs
    }
    assert heads == {"Mira": DEFAULT_PALETTE.protagonist, "Thorn": DEFAULT_PALETTE.antagonist}


def test_end_to_end_portrait_drops_fourth_trait() -> None:
    root = _parse(
        compose_portrait({"name": "Gus", "role": "supporting", "traits": ["curious", "shy", "loyal", "wise"]})
    )
    markers = _by_class(root, "trait-marker", "circle")
    assert [m.find(f"{NS}title").text for m in markers] == ["curious", "shy", "loyal"]
    head = _by_class(root, "head", "circle")[0]
    assert head.get("fill") == DEFAULT_PALETTE.supporting


def test_scenery_draw_order_is_fixed() -> None:
    text = "castle village ocean forest mountain"
    root = _parse(compose_scene("t", text, []))
    assert _scenery_blocks(root) == ["ground", "mountain", "forest", "ocean", "settlement", "castle"]


def test_scenery_recipes_have_expected_parts() -> None:
    root = _parse(compose_scene("t", "forest village ocean castle", [], rng=random.Random(5)))
    blocks = {g.get("data-motif"): g for g in _by_class(root, "scenery", "g")}

    trees = _by_class(blocks["forest"], "tree", "g")
    assert len(trees) == 10
    for tree in trees:
        assert 10 <= float(tree.find(f"{NS}circle").get("r")) <= 15

    assert len(_by_class(blocks["ocean"], "wave", "path")) == 8

    buildings = _by_class(blocks["settlement"], "building", "g")
    assert len(buildings) == 7
    assert all(len(_by_class(b, "window", "rect")) == 3 for b in buildings)

    castle = Counter(el.get("class") for el in blocks["castle"])
    assert castle == {"wall": 1, "battlements": 1, "tower": 2, "door": 1, "window": 2}


def test_glyph_parts() -> None:
    root = _parse(compose_scene("t", "", [{"name": "Solo", "role": "hero"}]))
    (glyph,) = _by_class(root, "character", "g")
    parts = Counter(el.get("class") for el in glyph)
    assert parts == {"head": 1, "torso": 1, "limb": 4, "eye": 2, "mouth": 1, "name": 1}
    assert glyph.get("data-role") == "supporting"
    assert glyph.find(f"{NS}circle[@class='head']").get("cx") == "50%"


def test_glyph_spacing() -> None:
    root = _parse(compose_scene("t", "", _cast(3)))
    xs = [g.find(f"{NS}circle[@class='head']").get("cx") for g in _by_class(root, "character", "g")]
    assert xs == ["25%", "50%", "75%"]


def test_structure_is_stable_across_calls() -> None:
    def counts(markup: str) -> Counter:
        return Counter((el.tag, el.get("class"), el.get("data-motif")) for el in _parse(markup).iter())

    args = ("t", "a mountain village by the sea", _cast(5))
    assert counts(compose_scene(*args)) == counts(compose_scene(*args))

    who = {"name": "Ada", "role": "protagonist", "traits": ["a", "b"]}
    assert counts(compose_portrait(who)) == counts(compose_portrait(who))


def test_fixed_random_source_gives_exact_decorations() -> None:
    root = _parse(SceneComposer(rng=SequenceRandom(0.5)).compose("t", "", []))
    decorations = _by_class(root, "decoration", "circle")
    assert {d.get("cx") for d in decorations} == {"50%"}
    assert {d.get("r") for d in decorations} == {"2"}
    assert {d.get("opacity") for d in decorations} == {"0.25"}
    assert {d.get("fill") for d in decorations} == {DEFAULT_PALETTE.decorative[2]}


def test_portrait_decorations_use_role_color() -> None:
    root = _parse(PortraitComposer(rng=random.Random(1)).compose({"name": "Vex", "role": "ANTAGONIST"}))
    decorations = _by_class(root, "decoration", "circle")
    assert len(decorations) == 10
    assert {d.get("fill") for d in decorations} == {DEFAULT_PALETTE.antagonist}
    for deco in decorations:
        assert 1.0 <= float(deco.get("r")) <= 4.0
        assert 0.1 <= float(deco.get("opacity")) <= 0.3


def test_portrait_avatar_parts() -> None:
    root = _parse(compose_portrait(CharacterInfo(name="Ada", role="protagonist")))
    (avatar,) = _by_class(root, "avatar", "g")
    parts = Counter(el.get("class") for el in avatar)
    assert parts == {"head": 1, "eye-socket": 2, "pupil": 2, "mouth": 1, "torso": 1, "arm": 2}
    assert _by_class(root, "background", "rect")[0].get("fill") == DEFAULT_PALETTE.paper


def test_trait_marker_positions_on_ring() -> None:
    positions = PortraitComposer().trait_positions(5)
    assert len(positions) == 3
    assert positions[0] == pytest.approx((74.7487, 64.7487), abs=1e-3)
    assert positions[1] == pytest.approx((50.0, 75.0), abs=1e-9)
    assert positions[2] == pytest.approx((25.2513, 64.7487), abs=1e-3)


def test_missing_traits_are_treated_as_empty() -> None:
    root = _parse(compose_portrait({"name": "Nobody", "role": "villain", "traits": None}))
    assert _by_class(root, "trait-marker", "circle") == []
    root = _parse(compose_portrait({"name": "Nobody"}))
    assert _by_class(root, "trait-marker", "circle") == []


def test_json_string_character_input() -> None:
    payload = orjson.dumps({"name": "Jay", "role": "protagonist", "traits": ["bold"]}).decode()
    root = _parse(compose_portrait(payload))
    assert len(_by_class(root, "trait-marker", "circle")) == 1


def test_names_are_escaped() -> None:
    markup = compose_scene("t", "", [{"name": "<b>Ann & Bo</b>", "role": "protagonist"}])
    assert "<b>" not in markup
    (glyph,) = _by_class(_parse(markup), "character", "g")
    assert glyph.find(f"{NS}text").text == "<b>Ann & Bo</b>"


def test_title_is_not_rendered() -> None:
    markup = compose_scene("Secret Title", "", [])
    assert "Secret Title" not in markup


def test_control_characters_in_names_and_traits_still_parse() -> None:
    scene = compose_scene("t", "", [{"name": "Ann\x0cBo", "role": "protagonist"}])
    (glyph,) = _by_class(_parse(scene), "character", "g")
    assert glyph.find(f"{NS}text").text == "AnnBo"

    portrait = compose_portrait({"name": "Ann\x00", "traits": ["shy\x01", "\x1b"]})
    markers = _by_class(_parse(portrait), "trait-marker", "circle")
    assert [m.find(f"{NS}title").text for m in markers] == ["shy"]


def test_static_scenery_draws_nothing_from_random_source() -> None:
    rng = SequenceRandom(0.5)
    SceneComposer(rng=rng).compose("t", "mountain ocean castle", [])
    # five draws per background decoration: cx, cy, r, opacity, color
    assert rng.calls == 20 * 5

    rng = SequenceRandom(0.5)
    SceneComposer(rng=rng).compose("t", "forest village", [])
    assert rng.calls == 20 * 5 + 10 + 7 * 2
