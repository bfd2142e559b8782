"""Prompt-to-story collaborator: asks a chat model for a story and its cast as JSON."""
from __future__ import annotations

import logging
import re
from typing import Any, List, Optional

import orjson
from pydantic import ValidationError

from .chat import ChatBackend, ChatMessage, DecodeCfg, TransformersChatBackend
from .prompts import (
    CHARACTER_SYSTEM,
    JSON_END,
    STORY_SYSTEM,
    continuation_request,
    new_story_request,
)
from .schema import CharacterInfo, StoryDraft

log = logging.getLogger(__name__)

PROMPT_MIN_CHARS = 10
PROMPT_MAX_CHARS = 1000
CONTINUED_TITLE = "Continued Story"


class StoryGenerationError(RuntimeError):
    """The model answered, but not with a usable story."""


def validate_prompt(prompt: str) -> str:
    text = (prompt or "").strip()
    if not PROMPT_MIN_CHARS <= len(text) <= PROMPT_MAX_CHARS:
        raise ValueError(
            f"Prompt must be between {PROMPT_MIN_CHARS} and {PROMPT_MAX_CHARS} characters, got {len(text)}."
        )
    return text


def extract_json_object(raw: str) -> Any:
    """Parse the first balanced ``{...}`` in ``raw``, ignoring fences and chatter around it."""
    text = re.sub(r"```(?:json)?|```", "", raw, flags=re.IGNORECASE)
    text = text.split(JSON_END, 1)[0]
    start = text.find("{")
    if start == -1:
        raise StoryGenerationError(f"Model did not return JSON.\n---\n{raw[:800]}")
    depth, in_str, esc = 0, False, False
    for i, ch in enumerate(text[start:], start):
        if in_str:
            if esc: esc = False
            elif ch == "\\": esc = True
            elif ch == '"': in_str = False
        elif ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                try:
                    return orjson.loads(text[start:i + 1])
                except orjson.JSONDecodeError as exc:
                    raise StoryGenerationError("Model returned malformed JSON.") from exc
    raise StoryGenerationError("Unbalanced braces; JSON not closed.")


class StoryWriter:
    """Write new stories and continuations through an injected chat backend."""

    def __init__(
        self,
        *,
        backend: Optional[ChatBackend] = None,
        story_cfg: Optional[DecodeCfg] = None,
    ) -> None:
        self._backend = backend
        self.story_cfg = story_cfg or DecodeCfg(
            max_new_tokens=900,
            temperature=0.8,
            top_p=0.92,
            repetition_penalty=1.03,
            stop=[JSON_END],
        )

    def _ensure_backend(self) -> ChatBackend:
        if self._backend is None:
            self._backend = TransformersChatBackend()
        return self._backend

    def _ask(self, system: str, user: str, cfg: DecodeCfg) -> Any:
        messages: List[ChatMessage] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        raw = self._ensure_backend()(messages, cfg)
        try:
            return extract_json_object(raw)
        except StoryGenerationError:
            log.error("Unparseable model output: %.200s", raw)
            raise

    def generate_story(self, prompt: str, existing_content: Optional[str] = None) -> StoryDraft:
        user = continuation_request(existing_content) if existing_content else new_story_request(prompt)
        data = self._ask(STORY_SYSTEM, user, self.story_cfg)
        if not isinstance(data, dict):
            raise StoryGenerationError("Story JSON must be an object.")
        if existing_content:
            data["title"] = data.get("title") or CONTINUED_TITLE
        try:
            draft = StoryDraft.model_validate(data)
        except ValidationError as exc:
            raise StoryGenerationError(f"Story JSON did not match the expected shape: {exc}") from exc
        log.info("Generated story %r with %d characters", draft.title, len(draft.characters))
        return draft

    def extract_characters(self, story_content: str) -> List[CharacterInfo]:
        cfg = DecodeCfg(max_new_tokens=400, temperature=0.3, top_p=0.9, stop=[JSON_END])
        data = self._ask(CHARACTER_SYSTEM, story_content, cfg)
        try:
            return [CharacterInfo.model_validate(item) for item in (data.get("characters") or [])]
        except ValidationError as exc:
            raise StoryGenerationError(f"Character JSON did not match the expected shape: {exc}") from exc


_default_writer: Optional[StoryWriter] = None


def _writer() -> StoryWriter:
    global _default_writer
    if _default_writer is None:
        _default_writer = StoryWriter()
    return _default_writer


def generate_story(prompt: str, existing_content: Optional[str] = None) -> StoryDraft:
    return _writer().generate_story(prompt, existing_content)


def extract_characters(story_content: str) -> List[CharacterInfo]:
    return _writer().extract_characters(story_content)
