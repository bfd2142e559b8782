from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Anything outside the XML 1.0 Char production cannot be serialized into SVG text.
_NON_XML_CHARS = re.compile("[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def xml_safe(text: str) -> str:
    return _NON_XML_CHARS.sub("", text)


class Role(str, Enum):
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    SUPPORTING = "supporting"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Map any role label onto one of the three buckets (unknown -> supporting)."""
        if isinstance(value, Role):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.SUPPORTING


class CharacterInfo(BaseModel):
    name: str
    role: str = Role.SUPPORTING.value
    description: str = ""
    traits: List[str] = Field(default_factory=list)

    @field_validator("traits", mode="before")
    @classmethod
    def _normalize_traits(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        cleaned = (xml_safe(str(item)).strip() for item in value)
        return [item for item in cleaned if item]

    @field_validator("role", "description", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return Role.SUPPORTING.value if info.field_name == "role" else ""
        return value

    @field_validator("name", "role", "description")
    @classmethod
    def _strip_non_xml(cls, value: str) -> str:
        return xml_safe(value)

    @property
    def role_bucket(self) -> Role:
        return Role.parse(self.role)


class StoryDraft(BaseModel):
    """Story text and cast as returned by the story writer."""

    title: str
    content: str
    characters: List[CharacterInfo] = Field(default_factory=list)

    @field_validator("characters", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CharacterRecord(CharacterInfo):
    id: int
    story_id: int
    svg_data: str


class StoryRecord(BaseModel):
    id: int
    title: str
    prompt: str
    content: str
    svg_data: str
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    characters: List[CharacterRecord] = Field(default_factory=list)
