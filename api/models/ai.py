"""AI feature Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .notes import Note


class HistoryTurn(BaseModel):
    """A prior conversation turn passed to the model."""

    role: Literal["user", "assistant"]
    content: str


class AIResponse(BaseModel):
    """Assistant reply. ``error`` is set only when the reply is a fallback."""

    content: str
    error: str | None = None


class AssistRequest(BaseModel):
    """Request model for note-level assistance while reading or editing."""

    prompt: str = Field(..., min_length=1)
    note_id: str | None = None
    context: str = ""
    is_editing: bool = False
    history: list[HistoryTurn] = Field(default_factory=list)


class YouTubeRequest(BaseModel):
    """Request model for YouTube summarisation."""

    url: str = Field(..., min_length=1)
    save_as_note: bool = False


class VideoSummary(BaseModel):
    """Summary of a YouTube video."""

    title: str
    content: str
    note_content: str
    url: str
    video_id: str


class YouTubeResponse(BaseModel):
    """Response model for YouTube summarisation."""

    summary: VideoSummary
    note: Note | None = None


class SearchRequest(BaseModel):
    """Request model for AI-enhanced search."""

    query: str = Field(..., min_length=1)


class SearchResult(BaseModel):
    """A note matched by search, with its relevance score."""

    note: Note
    score: float


class Insight(BaseModel):
    """Dashboard insight."""

    id: str
    type: str
    content: str
    timestamp: datetime


class Suggestion(BaseModel):
    """Actionable suggestion for the dashboard."""

    id: str
    title: str
    description: str
    action: str


class TagRequest(BaseModel):
    """Request model for tag suggestions."""

    content: str


class TagResponse(BaseModel):
    """Response model for tag suggestions."""

    tags: list[str]
