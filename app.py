"""Interactive UI made with Gradio

Users type a short prompt, get an illustrated story with character cards, continue
the story, and browse or export what they have written.
"""
from __future__ import annotations

import html
from pathlib import Path
from typing import Any, List, Optional, Tuple

import gradio as gr

from storybloom import StoryGenerationError, StoryLibrary, StoryRecord, export_story
from storybloom.library import StoryNotFoundError, StoryPermissionError
from storybloom.logs import configure_logging

log = configure_logging()

LIBRARY = StoryLibrary()
EXPORT_DIR = Path("artifacts") / "exports"
LIBRARY_HEADERS = ["ID", "Title", "Characters", "Created"]


def _character_cards(record: StoryRecord) -> str:
    if not record.characters:
        return "<p><em>No characters were identified in this story.</em></p>"
    cards: List[str] = []
    for character in record.characters:
        traits = ", ".join(html.escape(t) for t in character.traits) or "&mdash;"
        cards.append(
            '<div class="character-card" style="display:inline-block;width:220px;margin:8px;vertical-align:top">'
            f'<div style="width:200px;height:200px">{character.svg_data}</div>'
            f"<h4>{html.escape(character.name)}</h4>"
            f"<p><strong>{html.escape(character.role_bucket.value.title())}</strong></p>"
            f"<p>{html.escape(character.description)}</p>"
            f"<p><small>Traits: {traits}</small></p>"
            "</div>"
        )
    return "".join(cards)


def _story_outputs(record: StoryRecord) -> Tuple[Any, ...]:
    return (
        record.id,
        f"## {record.title}",
        record.content,
        f'<div style="max-width:800px">{record.svg_data}</div>',
        _character_cards(record),
        _library_rows(),
    )


def _library_rows() -> List[List[str]]:
    return [
        [str(s.id), s.title, str(len(s.characters)), s.created_at.strftime("%Y-%m-%d %H:%M")]
        for s in LIBRARY.list_stories()
    ]


def create_story(prompt: str, user_id: str) -> Tuple[Any, ...]:
    try:
        record = LIBRARY.create_story(prompt, user_id=user_id.strip() or None)
    except ValueError as exc:
        raise gr.Error(str(exc))
    except StoryGenerationError as exc:
        log.error("Story generation failed: %s", exc)
        raise gr.Error("Failed to generate story. Please try again.")
    return _story_outputs(record)


def continue_story(story_id: Optional[float], user_id: str) -> Tuple[Any, ...]:
    if story_id is None:
        raise gr.Error("Create or open a story first.")
    try:
        record = LIBRARY.continue_story(int(story_id), user_id=user_id.strip() or None)
    except StoryNotFoundError:
        raise gr.Error("Story not found.")
    except StoryPermissionError:
        raise gr.Error("You don't have permission to continue this story.")
    except StoryGenerationError as exc:
        log.error("Story continuation failed: %s", exc)
        raise gr.Error("Failed to continue story.")
    return _story_outputs(record)


def open_story(story_id: Optional[float]) -> Tuple[Any, ...]:
    if story_id is None:
        raise gr.Error("Enter a story ID.")
    try:
        record = LIBRARY.get_story(int(story_id))
    except StoryNotFoundError:
        raise gr.Error("Story not found.")
    return _story_outputs(record)


def export_current(story_id: Optional[float]) -> str:
    if story_id is None:
        raise gr.Error("Create or open a story first.")
    try:
        record = LIBRARY.get_story(int(story_id))
    except StoryNotFoundError:
        raise gr.Error("Story not found.")
    out = export_story(record, EXPORT_DIR / f"story-{record.id:04d}")
    return f"Exported to `{out}`"


with gr.Blocks(title="Storybloom") as demo:
    gr.Markdown("## Storybloom\nTurn a short prompt into an illustrated story with character profiles.")

    with gr.Row():
        with gr.Column(scale=2):
            prompt = gr.Textbox(
                label="Story Prompt",
                value="A shy lighthouse keeper befriends a seahorse who guards a sunken castle.",
                lines=3,
                placeholder="10-1000 characters",
            )
            user_id = gr.Textbox(label="Your Name (optional)", placeholder="Used to guard continuations")
            with gr.Row():
                create_btn = gr.Button("Create Story", variant="primary")
                continue_btn = gr.Button("Continue Story")
                export_btn = gr.Button("Export")
        with gr.Column(scale=1):
            story_id = gr.Number(label="Story ID", precision=0)
            open_btn = gr.Button("Open Story")
            export_status = gr.Markdown()

    with gr.Tabs():
        with gr.TabItem("Story"):
            title_out = gr.Markdown()
            scene_out = gr.HTML(label="Illustration")
            content_out = gr.Textbox(label="Story", lines=14)
        with gr.TabItem("Characters"):
            characters_out = gr.HTML()
        with gr.TabItem("Library"):
            library_out = gr.Dataframe(
                headers=LIBRARY_HEADERS,
                value=_library_rows(),
                datatype=["str"] * len(LIBRARY_HEADERS),
                interactive=False,
                label="Saved Stories",
            )

    story_outputs = [story_id, title_out, content_out, scene_out, characters_out, library_out]
    create_btn.click(fn=create_story, inputs=[prompt, user_id], outputs=story_outputs)
    continue_btn.click(fn=continue_story, inputs=[story_id, user_id], outputs=story_outputs)
    open_btn.click(fn=open_story, inputs=[story_id], outputs=story_outputs)
    export_btn.click(fn=export_current, inputs=[story_id], outputs=[export_status])

if __name__ == "__main__":
    demo.launch()
