"""In-memory note collection owned by a single user."""

from __future__ import annotations

import json
import uuid
from collections import Counter
from collections.abc import Iterable, Iterator
from datetime import UTC, date, datetime
from typing import Any

import structlog

from ..models import Note

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "Personal"

# Checked in order against title + content; first hit wins.
SMART_CATEGORIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("meeting", "standup"), "Work"),
    (("research", "study"), "Research"),
    (("idea", "brainstorm"), "Ideas"),
    (("todo", "task"), "Tasks"),
)

AUTO_TAG_WORDS = ("meeting", "project", "idea", "research", "todo", "important", "urgent")

EDITABLE_FIELDS = frozenset({"title", "content", "tags", "category", "summary"})


class NoteNotFoundError(KeyError):
    """Raised when a note id is not in the collection."""


def smart_category(title: str, content: str) -> str:
    """Pick a category from keywords in the title and content."""
    text = f"{title} {content}".lower()
    for keywords, category in SMART_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def auto_tags(title: str, content: str) -> list[str]:
    text = f"{title} {content}".lower()
    return [word for word in AUTO_TAG_WORDS if word in text]


def format_duration(seconds: int) -> str:
    """Format seconds as M:SS."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def export_filename(today: date) -> str:
    return f"smarta-notes-{today.isoformat()}.json"


def new_note_id() -> str:
    return uuid.uuid4().hex


class NoteCollection:
    """Ordered notes, most recent first.

    Every mutation sets ``dirty`` so the auto-save worker knows the collection
    needs mirroring to storage.
    """

    def __init__(self, notes: Iterable[Note] | None = None):
        self._notes: list[Note] = list(notes or [])
        self.dirty = False

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._notes))

    def __len__(self) -> int:
        return len(self._notes)

    def all(self) -> list[Note]:
        return list(self._notes)

    def _index(self, note_id: str) -> int:
        for index, note in enumerate(self._notes):
            if note.id == note_id:
                return index
        raise NoteNotFoundError(note_id)

    def get(self, note_id: str) -> Note:
        return self._notes[self._index(note_id)]

    def _replace(self, note_id: str, **changes: Any) -> Note:
        index = self._index(note_id)
        updated = self._notes[index].model_copy(update=changes)
        self._notes[index] = updated
        self.dirty = True
        return updated

    def prepend(self, notes: Iterable[Note]) -> None:
        """Insert notes ahead of existing ones, keeping their given order."""
        self._notes = [*notes, *self._notes]
        self.dirty = True

    def create_note(self, title: str, content: str = "") -> Note:
        """Create a text note with an inferred category and tags."""
        if not title.strip():
            raise ValueError("Note title must not be blank")

        now = datetime.now(UTC)
        note = Note(
            id=new_note_id(),
            title=title,
            content=content,
            type="text",
            tags=auto_tags(title, content),
            category=smart_category(title, content),
            created_at=now,
            updated_at=now,
        )
        self.prepend([note])
        logger.info("note_created", note_id=note.id, category=note.category)
        return note

    def create_recording_note(self, duration: int, audio_url: str | None = None) -> Note:
        """Create an audio note for a finished recording."""
        now = datetime.now(UTC)
        day = now.date().isoformat()
        length = format_duration(duration)

        note = Note(
            id=new_note_id(),
            title=f"Audio Recording {day}",
            content=(
                f"Audio recording captured on {now.isoformat(timespec='seconds')}\n\n"
                f"Duration: {length}\n\n"
                "This audio note is ready for AI transcription and analysis. You can ask "
                "the AI assistant questions about this recording."
            ),
            type="audio",
            tags=["audio", "recording"],
            category=DEFAULT_CATEGORY,
            created_at=now,
            updated_at=now,
            transcription=(
                "AI transcription in progress... This audio will be converted to text "
                "automatically."
            ),
            summary=(
                f"Audio recording from {day} with duration of {length}. "
                "Ready for AI processing and transcription."
            ),
            audio_url=audio_url,
            duration=duration,
        )
        self.prepend([note])
        logger.info("recording_note_created", note_id=note.id, duration=duration)
        return note

    def update_note(self, note_id: str, **changes: Any) -> Note:
        """Apply edits to a note; ``None`` values are ignored."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        updates = {key: value for key, value in changes.items() if value is not None}
        updates["updated_at"] = datetime.now(UTC)
        return self._replace(note_id, **updates)

    def toggle_star(self, note_id: str) -> Note:
        note = self.get(note_id)
        return self._replace(note_id, is_starred=not note.is_starred)

    def move_to_category(self, note_id: str, category: str) -> Note:
        return self._replace(note_id, category=category, updated_at=datetime.now(UTC))

    def delete_note(self, note_id: str) -> Note:
        note = self._notes.pop(self._index(note_id))
        self.dirty = True
        logger.info("note_deleted", note_id=note_id)
        return note

    def bulk_delete(self, note_ids: Iterable[str]) -> int:
        doomed = set(note_ids)
        before = len(self._notes)
        self._notes = [note for note in self._notes if note.id not in doomed]
        deleted = before - len(self._notes)
        if deleted:
            self.dirty = True
        return deleted

    def delete_category(self, name: str) -> int:
        """Move every note in ``name`` back to the default category."""
        now = datetime.now(UTC)
        moved = 0
        for index, note in enumerate(self._notes):
            if note.category == name:
                self._notes[index] = note.model_copy(
                    update={"category": DEFAULT_CATEGORY, "updated_at": now}
                )
                moved += 1
        if moved:
            self.dirty = True
        return moved

    def filter(self, query: str = "", category: str = "all") -> list[Note]:
        """Notes matching ``query`` (title, content, tags, summary) in ``category``."""
        needle = query.lower()

        def matches(note: Note) -> bool:
            if category != "all" and note.category != category:
                return False
            if not needle:
                return True
            return (
                needle in note.title.lower()
                or needle in note.content.lower()
                or any(needle in tag.lower() for tag in note.tags)
                or (note.summary is not None and needle in note.summary.lower())
            )

        return [note for note in self._notes if matches(note)]

    def categories(self) -> list[str]:
        return ["all", *dict.fromkeys(note.category for note in self._notes)]

    def most_active_category(self) -> str:
        if not self._notes:
            return DEFAULT_CATEGORY
        counts = Counter(note.category for note in self._notes)
        return counts.most_common(1)[0][0]

    def tag_frequency(self, limit: int = 10) -> list[str]:
        counts = Counter(tag for note in self._notes for tag in note.tags)
        return [tag for tag, _ in counts.most_common(limit)]

    def stats(self) -> dict[str, Any]:
        return {
            "total_notes": len(self._notes),
            "audio_notes": sum(1 for note in self._notes if note.type == "audio"),
            "video_notes": sum(1 for note in self._notes if note.type == "video"),
            "starred_notes": sum(1 for note in self._notes if note.is_starred),
            "most_active_category": self.most_active_category(),
            "top_tags": self.tag_frequency(),
        }

    def export(self, today: date | None = None) -> tuple[str, str]:
        """Serialize the whole collection. Returns (filename, JSON text)."""
        today = today or datetime.now(UTC).date()
        payload = [note.model_dump(mode="json") for note in self._notes]
        return export_filename(today), json.dumps(payload, indent=2)
