"""Notes-related Pydantic models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

NoteKind = Literal["text", "audio", "video", "image", "document"]

NOTE_KINDS: tuple[str, ...] = ("text", "audio", "video", "image", "document")


def utcnow() -> datetime:
    """Timezone-aware current time used for note timestamps."""
    return datetime.now(UTC)


class Note(BaseModel):
    """A persisted note."""

    id: str = Field(..., min_length=1)
    title: str
    content: str
    type: NoteKind
    tags: list[str] = Field(default_factory=list)
    category: str = "Personal"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    summary: str | None = None
    transcription: str | None = None
    is_starred: bool = False
    audio_url: str | None = None
    duration: int | None = None
    file_url: str | None = None


class NoteCreate(BaseModel):
    """Request model for creating a text note."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = ""


class NoteUpdate(BaseModel):
    """Request model for editing a note. Unset fields are left as they are."""

    title: str | None = Field(None, min_length=1, max_length=500)
    content: str | None = None
    tags: list[str] | None = None
    category: str | None = None
    summary: str | None = None


class NoteMove(BaseModel):
    """Request model for moving a note to another category."""

    category: str = Field(..., min_length=1)


class BulkDeleteRequest(BaseModel):
    """Request model for deleting several notes at once."""

    note_ids: list[str]


class BulkDeleteResponse(BaseModel):
    """Response model for bulk deletion."""

    deleted: int


class RecordingCreate(BaseModel):
    """Request model for saving a finished audio recording."""

    duration: int = Field(..., ge=0)
    audio_url: str | None = None


class NoteListResponse(BaseModel):
    """Response model for listing notes."""

    notes: list[Note]
    total: int
    categories: list[str]


class NoteStats(BaseModel):
    """Dashboard counters."""

    total_notes: int
    audio_notes: int
    video_notes: int
    starred_notes: int
    most_active_category: str
    top_tags: list[str]


class UploadResponse(BaseModel):
    """Response model for a batch file upload."""

    notes: list[Note]
    processed: int
    failed: int
