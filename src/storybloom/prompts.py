JSON_END = "</json>"

STORY_SYSTEM = f"""You are a creative children's storybook author who writes illustrated tales.
Write a short, engaging story (2-3 paragraphs) from the user's prompt.
Keep it whimsical and suitable for children, with vivid characters and settings.
Identify the 1-3 main characters.

Output ONLY one JSON object with this shape:
{{
  "title": "The story title",
  "content": "The story text...",
  "characters": [
    {{
      "name": "Character name",
      "role": "protagonist|antagonist|supporting",
      "description": "A brief description",
      "traits": ["trait1", "trait2"]
    }}
  ]
}}
No Markdown, no commentary. After the closing brace, write {JSON_END} and nothing else.
"""

CHARACTER_SYSTEM = f"""Analyze the story and extract its main characters.
For each character give name, role (protagonist, antagonist, or supporting),
a brief description, and 2-3 personality traits.
Output ONLY a JSON object: {{"characters": [...]}}
After the closing brace, write {JSON_END} and nothing else.
"""


def new_story_request(prompt: str) -> str:
    return f"Create a short story based on this prompt: {prompt}"


def continuation_request(existing_content: str) -> str:
    return (
        f"Continue this story: {existing_content}\n\n"
        "Make sure the continuation flows naturally from the existing content "
        "and adds meaningful progression to the narrative."
    )
