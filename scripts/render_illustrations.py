# scripts/render_illustrations.py
"""Render sample scene and portrait SVGs into ``artifacts/`` without loading any model.

Usage:
    python scripts/render_illustrations.py [seed]
"""
import random
import sys
from pathlib import Path

from storybloom.illustration import PortraitComposer, SceneComposer
from storybloom.logs import configure_logging
from storybloom.schema import CharacterInfo

BUNDLE_DIR = Path("artifacts")

STORY = "A lonely castle stood beside the ocean"
CAST = [
    CharacterInfo(name="Mira", role="protagonist", traits=["brave", "kind"]),
    CharacterInfo(name="Thorn", role="antagonist", traits=[]),
    CharacterInfo(name="Gus", role="supporting", traits=["curious", "shy", "loyal", "wise"]),
]


def main(seed: int | None = None) -> None:
    log = configure_logging()
    BUNDLE_DIR.mkdir(parents=True, exist_ok=True)
    rng = random.Random(seed)

    scene = SceneComposer(rng=rng).compose("The Lonely Castle", STORY, CAST[:2])
    (BUNDLE_DIR / "scene.svg").write_text(scene, encoding="utf-8")

    portraits = PortraitComposer(rng=rng)
    for character in CAST:
        path = BUNDLE_DIR / f"portrait-{character.name.lower()}.svg"
        path.write_text(portraits.compose(character), encoding="utf-8")
    log.info("Wrote scene and %d portraits to %s", len(CAST), BUNDLE_DIR)


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
