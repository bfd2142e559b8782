import os
from dataclasses import dataclass
from typing import Optional, Tuple

os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

# Choose a default; allow override via env
MODEL_NAME = os.environ.get("STORYBLOOM_MODEL_NAME", "microsoft/Phi-3-mini-4k-instruct")
LOG_LEVEL = os.environ.get("STORYBLOOM_LOG_LEVEL", "INFO")
LIBRARY_PATH = os.environ.get("STORYBLOOM_LIBRARY_PATH") or None

_raw_seed = os.environ.get("STORYBLOOM_SEED", "").strip()
SEED: Optional[int] = int(_raw_seed) if _raw_seed else None


@dataclass(frozen=True)
class IllustrationPalette:
    """Colors shared by the scene and portrait composers."""

    decorative: Tuple[str, ...] = (
        "#FF6B6B",  # coral
        "#4ECDC4",  # teal
        "#FFE66D",  # yellow
        "#F7F9FC",  # soft white
        "#2C3E50",  # navy
    )
    protagonist: str = "#4ECDC4"
    antagonist: str = "#FF6B6B"
    supporting: str = "#FFE66D"
    ink: str = "#2C3E50"
    paper: str = "#F7F9FC"
    paper_shade: str = "#E2E8F0"
    accent: str = "#FFE66D"


DEFAULT_PALETTE = IllustrationPalette()
