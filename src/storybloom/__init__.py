from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "compose_scene",
    "compose_portrait",
    "SceneComposer",
    "PortraitComposer",
    "detect_motifs",
    "Motif",
    "pick_role_color",
    "pick_random_palette_color",
    "scatter_decorations",
    "IllustrationPalette",
    "CharacterInfo",
    "Role",
    "StoryDraft",
    "StoryRecord",
    "CharacterRecord",
    "StoryWriter",
    "StoryGenerationError",
    "generate_story",
    "extract_characters",
    "StoryLibrary",
    "export_story",
]

_ATTR_TO_MODULE = {
    "compose_scene": (".illustration", "compose_scene"),
    "compose_portrait": (".illustration", "compose_portrait"),
    "SceneComposer": (".illustration", "SceneComposer"),
    "PortraitComposer": (".illustration", "PortraitComposer"),
    "detect_motifs": (".motifs", "detect_motifs"),
    "Motif": (".motifs", "Motif"),
    "pick_role_color": (".palette", "pick_role_color"),
    "pick_random_palette_color": (".palette", "pick_random_palette_color"),
    "scatter_decorations": (".palette", "scatter_decorations"),
    "IllustrationPalette": (".config", "IllustrationPalette"),
    "CharacterInfo": (".schema", "CharacterInfo"),
    "Role": (".schema", "Role"),
    "StoryDraft": (".schema", "StoryDraft"),
    "StoryRecord": (".schema", "StoryRecord"),
    "CharacterRecord": (".schema", "CharacterRecord"),
    "StoryWriter": (".story", "StoryWriter"),
    "StoryGenerationError": (".story", "StoryGenerationError"),
    "generate_story": (".story", "generate_story"),
    "extract_characters": (".story", "extract_characters"),
    "StoryLibrary": (".library", "StoryLibrary"),
    "export_story": (".library", "export_story"),
}


def __getattr__(name: str) -> Any:
    if name not in _ATTR_TO_MODULE:
        raise AttributeError(f"module 'storybloom' has no attribute {name!r}")
    module_name, attr_name = _ATTR_TO_MODULE[name]
    module = import_module(module_name, __name__)
    attr = getattr(module, attr_name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:
    return sorted(__all__)


if TYPE_CHECKING:  # pragma: no cover - import for type checkers only
    from .illustration import compose_scene, compose_portrait, SceneComposer, PortraitComposer
    from .motifs import detect_motifs, Motif
    from .palette import pick_role_color, pick_random_palette_color, scatter_decorations
    from .config import IllustrationPalette
    from .schema import CharacterInfo, Role, StoryDraft, StoryRecord, CharacterRecord
    from .story import StoryWriter, StoryGenerationError, generate_story, extract_characters
    from .library import StoryLibrary, export_story
