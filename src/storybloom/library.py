"""In-memory story library with optional JSON persistence and on-disk export."""
from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

import orjson

from .config import LIBRARY_PATH
from .illustration import compose_portrait, compose_scene
from .schema import CharacterInfo, CharacterRecord, StoryDraft, StoryRecord
from .story import generate_story, validate_prompt

log = logging.getLogger(__name__)

StoryWriterFn = Callable[[str, Optional[str]], StoryDraft]
SceneFn = Callable[[str, str, Iterable[CharacterInfo]], str]
PortraitFn = Callable[[CharacterInfo], str]


class StoryNotFoundError(KeyError):
    pass


class StoryPermissionError(PermissionError):
    pass


class StoryLibrary:
    """Create, continue and look up illustrated stories.

    The story writer and both composers are injected, so tests can run the whole
    flow without a language model. Illustrations are made once, when a story is
    created; continuing a story only appends text.
    """

    def __init__(
        self,
        *,
        path: Optional[Union[str, Path]] = LIBRARY_PATH,
        writer: StoryWriterFn = generate_story,
        scene_fn: SceneFn = compose_scene,
        portrait_fn: PortraitFn = compose_portrait,
    ) -> None:
        self.path = Path(path) if path else None
        self._writer = writer
        self._scene_fn = scene_fn
        self._portrait_fn = portrait_fn
        self._lock = threading.Lock()
        self._stories: Dict[int, StoryRecord] = {}
        self._next_story_id = 1
        self._next_character_id = 1
        if self.path is not None and self.path.exists():
            self._load(self.path)

    # -- persistence ---------------------------------------------------------

    def _load(self, path: Path) -> None:
        data = orjson.loads(path.read_bytes())
        for raw in data.get("stories", []):
            record = StoryRecord.model_validate(raw)
            self._stories[record.id] = record
        self._next_story_id = max(self._stories, default=0) + 1
        self._next_character_id = (
            max((c.id for s in self._stories.values() for c in s.characters), default=0) + 1
        )
        log.info("Loaded %d stories from %s", len(self._stories), path)

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {"stories": [s.model_dump(mode="json") for s in self._stories.values()]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))

    # -- operations ----------------------------------------------------------

    def create_story(self, prompt: str, user_id: Optional[str] = None) -> StoryRecord:
        prompt = validate_prompt(prompt)
        draft = self._writer(prompt, None)
        svg_data = self._scene_fn(draft.title, draft.content, draft.characters)
        portraits = [(character, self._portrait_fn(character)) for character in draft.characters]

        with self._lock:
            story_id = self._next_story_id
            self._next_story_id += 1
            characters: List[CharacterRecord] = []
            for character, svg in portraits:
                characters.append(
                    CharacterRecord(
                        id=self._next_character_id,
                        story_id=story_id,
                        svg_data=svg,
                        **character.model_dump(),
                    )
                )
                self._next_character_id += 1
            record = StoryRecord(
                id=story_id,
                title=draft.title,
                prompt=prompt,
                content=draft.content,
                svg_data=svg_data,
                user_id=user_id,
                characters=characters,
            )
            self._stories[story_id] = record
            self._save()
        log.info("Created story %d %r (%d characters)", story_id, record.title, len(characters))
        return record

    def continue_story(self, story_id: int, user_id: Optional[str] = None) -> StoryRecord:
        story = self.get_story(story_id)
        if story.user_id and story.user_id != user_id:
            raise StoryPermissionError(f"User {user_id!r} may not continue story {story_id}")

        draft = self._writer(story.prompt, story.content)
        with self._lock:
            # Another continuation may have landed while the writer ran.
            current = self._stories[story_id]
            updated = current.model_copy(update={"content": f"{current.content}\n\n{draft.content}"})
            self._stories[story_id] = updated
            self._save()
        log.info("Continued story %d", story_id)
        return updated

    def get_story(self, story_id: int) -> StoryRecord:
        try:
            return self._stories[story_id]
        except KeyError:
            raise StoryNotFoundError(story_id) from None

    def list_stories(self) -> List[StoryRecord]:
        return sorted(self._stories.values(), key=lambda s: (s.created_at, s.id), reverse=True)

    def featured_stories(self, limit: int = 3) -> List[StoryRecord]:
        return self.list_stories()[:limit]

    def characters_for(self, story_id: int) -> List[CharacterRecord]:
        return list(self.get_story(story_id).characters)


def _slug(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "character"


def export_story(record: StoryRecord, directory: Union[str, Path]) -> Path:
    """Write ``story.json``, ``scene.svg`` and one SVG per character portrait."""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    (out / "story.json").write_bytes(
        orjson.dumps(
            record.model_dump(mode="json", exclude={"svg_data": True, "characters": {"__all__": {"svg_data"}}}),
            option=orjson.OPT_INDENT_2,
        )
    )
    (out / "scene.svg").write_text(record.svg_data, encoding="utf-8")
    for character in record.characters:
        name = f"{character.id:03d}-{_slug(character.name)}.svg"
        (out / name).write_text(character.svg_data, encoding="utf-8")
    log.info("Exported story %d to %s", record.id, out)
    return out


__all__ = ["StoryLibrary", "StoryNotFoundError", "StoryPermissionError", "export_story"]
