"""Prompt templates for the note assistant."""

from functools import cache
from pathlib import Path


@cache
def load_prompt(filename: str) -> str:
    """Load a prompt template from the prompts directory.

    Args:
        filename: Name of the prompt file (e.g., 'tags_prompt.txt')

    Returns:
        Prompt template as string
    """
    prompt_path = Path(__file__).parent / filename
    return prompt_path.read_text(encoding="utf-8").strip()


def get_assistant_system_prompt(mode: str, context: str) -> str:
    """System instruction for note assistance.

    Args:
        mode: "editing" or "reading"
        context: Note content prefix

    Returns:
        Complete system prompt
    """
    return load_prompt("assistant_system_prompt.txt").format(mode=mode, context=context)


def get_youtube_summary_prompt(url: str, video_id: str) -> str:
    return load_prompt("youtube_summary_prompt.txt").format(url=url, video_id=video_id)


def get_search_prompt(query: str, note_count: int) -> str:
    return load_prompt("search_prompt.txt").format(query=query, note_count=note_count)


def get_insights_prompt(notes: str) -> str:
    return load_prompt("insights_prompt.txt").format(notes=notes)


def get_suggestions_prompt(notes: str) -> str:
    return load_prompt("suggestions_prompt.txt").format(notes=notes)


def get_tags_prompt(content: str) -> str:
    return load_prompt("tags_prompt.txt").format(content=content)
