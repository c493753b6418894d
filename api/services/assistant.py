"""AI features built on the model dispatcher.

Each operation builds a task prompt, sends it through the same
:class:`ModelDispatcher`, and answers with its own deterministic fallback when
no API key is configured or every model failed.
"""

from __future__ import annotations

import re
import time
from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from ..models import AIResponse, HistoryTurn, Insight, Note, SearchResult, Suggestion, VideoSummary
from ..observability import get_tracer
from ..prompts import (
    get_insights_prompt,
    get_search_prompt,
    get_suggestions_prompt,
    get_tags_prompt,
    get_youtube_summary_prompt,
)
from .dispatcher import ModelDispatcher
from .fallbacks import (
    fallback_insights,
    fallback_search,
    fallback_suggestions,
    fallback_tags,
    fallback_youtube_summary,
    note_matches,
)

logger = structlog.get_logger(__name__)

tracer = get_tracer(__name__)

LIST_MARKER = re.compile(r"^\s*(?:[-•*#]+|\d+[.)])\s*")

YOUTUBE_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/v/([a-zA-Z0-9_-]{11})"),
)

DIRECT_MATCH_SCORE = 1.0
RELATED_MATCH_SCORE = 0.5


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video id from a YouTube URL, or None."""
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def split_terms(text: str) -> list[str]:
    """Split a comma- or newline-separated model reply into clean terms."""
    terms = []
    for raw in re.split(r"[,\n]", text):
        term = LIST_MARKER.sub("", raw).strip()
        if term:
            terms.append(term)
    return terms


def _id_seed() -> int:
    return int(time.time() * 1000)


class NoteAssistant:
    """High-level AI operations for notes."""

    def __init__(self, dispatcher: ModelDispatcher):
        self.dispatcher = dispatcher

    async def close(self) -> None:
        await self.dispatcher.close()

    async def respond(
        self,
        prompt: str,
        context: str = "",
        is_editing: bool = False,
        history: Sequence[HistoryTurn | dict[str, str]] | None = None,
    ) -> AIResponse:
        """Answer a chat or note-assistance prompt."""
        return await self.dispatcher.generate_response(prompt, context, is_editing, history)

    async def _ask(self, prompt: str) -> str | None:
        """Run a task prompt; None means the task fallback should be used."""
        if not self.dispatcher.has_credentials:
            return None

        response = await self.dispatcher.generate_response(prompt)
        if response.error:
            return None
        return response.content

    async def summarize_youtube_video(self, url: str, video_id: str) -> VideoSummary:
        """Summarise a YouTube video into note content."""
        with tracer.start_as_current_span("assistant.summarize_youtube_video") as span:
            span.set_attribute("youtube.video_id", video_id)

            content = await self._ask(get_youtube_summary_prompt(url, video_id))
            if content is None:
                logger.info("youtube_summary_fallback", video_id=video_id)
                fallback = fallback_youtube_summary(url, video_id, datetime.now(UTC))
                return VideoSummary(url=url, video_id=video_id, **fallback)

            return VideoSummary(
                title=f"YouTube Summary: {video_id}",
                content=content,
                note_content=content,
                url=url,
                video_id=video_id,
            )

    async def enhance_search(self, query: str, notes: list[Note]) -> list[SearchResult]:
        """Search notes, widening the match with model-suggested related terms.

        Direct matches always come first with score 1.0. Notes matched only by
        a related term are appended with a lower score.
        """
        with tracer.start_as_current_span("assistant.enhance_search") as span:
            direct = fallback_search(query, notes)
            results = [SearchResult(note=note, score=DIRECT_MATCH_SCORE) for note in direct]
            span.set_attribute("search.direct_matches", len(direct))

            reply = await self._ask(get_search_prompt(query, len(notes)))
            if reply is None:
                return results

            seen = {note.id for note in direct}
            related_terms = [term for term in split_terms(reply) if term.lower() != query.lower()]
            for note in notes:
                if note.id in seen:
                    continue
                if any(note_matches(note, term) for term in related_terms):
                    results.append(SearchResult(note=note, score=RELATED_MATCH_SCORE))
                    seen.add(note.id)

            span.set_attribute("search.related_matches", len(results) - len(direct))
            logger.info(
                "search_enhanced",
                query=query,
                related_terms=len(related_terms),
                results=len(results),
            )
            return results

    async def generate_insights(self, notes: list[Note]) -> list[Insight]:
        """Dashboard insights from the ten most recent notes."""
        now = datetime.now(UTC)
        sample = "\n\n".join(
            f"Title: {note.title}\nContent: {note.content[:200]}..." for note in notes[:10]
        )

        content = await self._ask(get_insights_prompt(sample))
        if content is None:
            return [Insight(**item) for item in fallback_insights(len(notes), now, _id_seed())]

        return [Insight(id=str(_id_seed()), type="analysis", content=content, timestamp=now)]

    async def generate_suggestions(self, notes: list[Note]) -> list[Suggestion]:
        """Actionable suggestions from the five most recent notes."""
        sample = "\n".join(f"{note.title}: {note.content[:100]}..." for note in notes[:5])

        content = await self._ask(get_suggestions_prompt(sample))
        if content is None:
            return [Suggestion(**item) for item in fallback_suggestions(_id_seed())]

        return [
            Suggestion(
                id=str(_id_seed()),
                title="AI Suggestions",
                description=content,
                action="review",
            )
        ]

    async def suggest_tags(self, content: str) -> list[str]:
        """Suggest tags for a piece of content."""
        reply = await self._ask(get_tags_prompt(content[:500]))
        if reply is None:
            return fallback_tags(content)

        tags = [tag.strip() for tag in reply.split(",") if tag.strip()]
        return tags or fallback_tags(content)
