"""Deterministic fallback responses used when no model can answer.

Every function here is pure: the same inputs always produce the same output,
apart from the explicit ``now`` / ``id_seed`` parameters that callers pass in
for timestamped records.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

EXHAUSTED_ERROR = "All AI models unavailable - using fallback response"

# Checked in order; the first entry with a keyword found in the prompt wins.
EDITING_RESPONSES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("improve", "better", "enhance"),
        "**AI Writing Enhancement** (Fallback Mode)\n\n"
        "**Quick Improvements:**\n"
        "• Add more specific examples and details\n"
        "• Use stronger action verbs and descriptive language\n"
        "• Break up long paragraphs for better readability\n"
        "• Include bullet points for key information\n"
        "• Add section headers to organize content\n\n"
        "**Pro Tip:** The AI models are currently busy, but I can still help "
        "with basic writing suggestions!",
    ),
    (
        ("rewrite", "rephrase"),
        "**Ready to help you rewrite!**\n\n"
        "Please paste the specific text you'd like me to rephrase, or tell me "
        "which section needs improvement. I can help with:\n\n"
        "• Clarity and flow\n"
        "• Tone and style\n"
        "• Conciseness\n"
        "• Professional language",
    ),
    (
        ("expand", "elaborate"),
        "**Content Expansion Ideas:**\n\n"
        "• Add real-world examples\n"
        "• Include step-by-step instructions\n"
        "• Provide background context\n"
        "• Add supporting statistics or facts\n"
        "• Include personal insights or experiences\n\n"
        "Which part of your note would you like to expand?",
    ),
    (
        ("structure", "organize"),
        "**Structure & Organization Tips:**\n\n"
        "• Use clear headings (# ## ###)\n"
        "• Create bullet lists for key points\n"
        "• Number steps in processes\n"
        "• Use **bold** for emphasis\n"
        "• Add horizontal rules (---) to separate sections\n\n"
        "Would you like help reorganizing a specific section?",
    ),
    (
        ("grammar", "correct"),
        "**Grammar & Style Check:**\n\n"
        "I can help you with:\n\n"
        "• Grammar and punctuation\n"
        "• Sentence structure\n"
        "• Word choice and vocabulary\n"
        "• Consistency in tense and voice\n"
        "• Professional tone\n\n"
        "Paste the text you'd like me to review!",
    ),
)

EDITING_DEFAULT = (
    "**Writing Assistant Ready!**\n\n"
    "I'm here to help you improve your note. I can:\n\n"
    "• **Enhance** your writing style\n"
    "• **Rewrite** sections for clarity\n"
    "• **Expand** on ideas\n"
    "• **Organize** content structure\n"
    "• **Check** grammar and flow\n\n"
    "What would you like help with?"
)

READING_RESPONSES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("summary", "summarize"),
        "**Quick Summary:**\n\n"
        "This note contains {word_count} words and covers several key topics. "
        "Would you like me to:\n\n"
        "• Provide a detailed summary\n"
        "• Extract the main points\n"
        "• Identify key takeaways\n"
        "• Create an outline\n\n"
        "Just let me know what type of summary would be most helpful!",
    ),
    (
        ("key points", "main points", "highlights"),
        "**Key Points Analysis:**\n\n"
        "I can help you identify:\n\n"
        "• Main concepts and ideas\n"
        "• Important facts and figures\n"
        "• Action items and next steps\n"
        "• Key insights and conclusions\n\n"
        "Would you like me to extract the key points from this note?",
    ),
    (
        ("explain", "clarify"),
        "**Happy to Explain!**\n\n"
        "I can help clarify:\n\n"
        "• Complex concepts or terminology\n"
        "• Relationships between ideas\n"
        "• Background context\n"
        "• Practical applications\n\n"
        "What specific part would you like me to explain?",
    ),
    (
        ("questions", "quiz"),
        "**Study Questions:**\n\n"
        "I can create:\n\n"
        "• Review questions based on the content\n"
        "• Quiz questions to test understanding\n"
        "• Discussion prompts\n"
        "• Critical thinking questions\n\n"
        "Would you like me to generate some questions from this note?",
    ),
)

READING_DEFAULT = (
    "**AI Assistant Ready!**\n\n"
    "I can help you with this note by:\n\n"
    "• **Summarizing** the content\n"
    "• **Explaining** complex parts\n"
    "• **Extracting** key points\n"
    "• **Creating** study questions\n"
    "• **Analyzing** the information\n\n"
    "What would you like to explore?"
)

COMMON_TAGS = ("important", "learning", "reference", "todo", "idea", "research", "notes", "study")

# Whole-word triggers for suggested tags, checked in order.
TAG_KEYWORDS: tuple[tuple[frozenset[str], str], ...] = (
    (frozenset({"learn", "study", "education"}), "learning"),
    (frozenset({"work", "project", "task"}), "work"),
    (frozenset({"idea", "concept", "thought"}), "ideas"),
    (frozenset({"important", "critical", "key"}), "important"),
)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def fallback_response(prompt: str, is_editing: bool, context: str = "") -> str:
    """Pick the canned reply for a prompt.

    Args:
        prompt: The user's request
        is_editing: Whether the user is editing (writing help) or reading
        context: Note content, only used for the word count in summaries

    Returns:
        The first template whose keywords occur in the lower-cased prompt,
        or the generic capability message for the mode.
    """
    text = prompt.lower()
    table = EDITING_RESPONSES if is_editing else READING_RESPONSES

    for keywords, template in table:
        if any(keyword in text for keyword in keywords):
            return template.format(word_count=count_words(context))

    return EDITING_DEFAULT if is_editing else READING_DEFAULT


def fallback_youtube_summary(url: str, video_id: str, now: datetime) -> dict[str, str]:
    """Canned summary for a YouTube video."""
    return {
        "title": f"YouTube Summary: {video_id}",
        "content": (
            "**Video Summary**\n\n"
            f"URL: {url}\n"
            f"Video ID: {video_id}\n\n"
            "**Key Points:**\n"
            "• Educational content captured\n"
            "• Main concepts identified\n"
            "• Actionable insights extracted\n\n"
            "**Next Steps:**\n"
            "• Review and take notes\n"
            "• Apply key concepts\n"
            "• Share insights with others"
        ),
        "note_content": (
            "# YouTube Video Summary\n\n"
            f"**Source:** {url}\n"
            f"**Video ID:** {video_id}\n"
            f"**Date:** {now.date().isoformat()}\n\n"
            "## Summary\n\n"
            "This video contains valuable educational content. Key topics covered include:\n\n"
            "• Main concept 1\n"
            "• Important insight 2\n"
            "• Practical application 3\n\n"
            "## Action Items\n\n"
            "- [ ] Review key concepts\n"
            "- [ ] Apply learnings\n"
            "- [ ] Take detailed notes"
        ),
    }


def note_matches(note: Any, query: str) -> bool:
    """Case-insensitive substring match over title, content, tags and summary."""
    needle = query.lower()
    if needle in note.title.lower() or needle in note.content.lower():
        return True
    if any(needle in tag.lower() for tag in note.tags):
        return True
    return bool(note.summary) and needle in note.summary.lower()


def fallback_search(query: str, notes: list[Any]) -> list[Any]:
    """Notes matching the query, in collection order."""
    return [note for note in notes if note_matches(note, query)]


def fallback_insights(note_count: int, now: datetime, id_seed: int) -> list[dict[str, Any]]:
    """Two fixed dashboard insights parameterised by the note count."""
    return [
        {
            "id": str(id_seed),
            "type": "productivity",
            "content": (
                "**Productivity Insight**\n\n"
                f"You have {note_count} notes in your collection. Recent activity shows "
                "consistent note-taking habits. Consider organizing by themes for better "
                "discovery."
            ),
            "timestamp": now,
        },
        {
            "id": str(id_seed + 1),
            "type": "learning",
            "content": (
                "**Learning Pattern**\n\n"
                "Your notes cover diverse topics. This indicates strong curiosity and "
                "learning drive. Consider creating connections between related concepts."
            ),
            "timestamp": now,
        },
    ]


def fallback_suggestions(id_seed: int) -> list[dict[str, str]]:
    """Three fixed suggestions."""
    return [
        {
            "id": str(id_seed),
            "title": "Organize with Tags",
            "description": "Add relevant tags to your notes for better organization and discovery",
            "action": "tag_notes",
        },
        {
            "id": str(id_seed + 1),
            "title": "Star Important Notes",
            "description": "Mark your most valuable notes as favorites for quick access",
            "action": "star_notes",
        },
        {
            "id": str(id_seed + 2),
            "title": "Create Study Sessions",
            "description": "Review your notes regularly to reinforce learning",
            "action": "study_session",
        },
    ]


def fallback_tags(content: str) -> list[str]:
    """Suggest tags from whole-word keyword hits, or the first four common tags."""
    words = set(re.split(r"\s+", content.lower()))
    suggested = [tag for triggers, tag in TAG_KEYWORDS if words & triggers]
    return suggested or list(COMMON_TAGS[:4])
