"""Local JSON storage and per-user session state.

Note collections live in memory and are the source of truth while the server
runs. Each user's collection is mirrored to ``<data_dir>/<user_id>.json``
under the ``smarta-notes`` key; profiles live in ``<data_dir>/profiles.json``.
"""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog
from opentelemetry import trace

from . import config
from .models import ChatMessage, Note
from .services.notes import NoteCollection

logger = structlog.get_logger(__name__)

PROFILES_FILE = "profiles.json"
PROFILES_KEY = "profiles"


class LocalStorage:
    """A JSON file used as a string-keyed item store."""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8"))

    def _dump(self, items: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(items, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Any | None:
        return self._load().get(key)

    def set_item(self, key: str, value: Any) -> None:
        items = self._load()
        items[key] = value
        self._dump(items)


@dataclass
class UserSession:
    """In-memory state owned by one user."""

    notes: NoteCollection
    messages: list[ChatMessage] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Database:
    """Profile registry and per-user sessions backed by local JSON files."""

    data_dir: Path | None = None
    profiles: dict[str, dict[str, Any]] = {}
    sessions: dict[str, UserSession] = {}

    @classmethod
    async def connect(cls, data_dir: Path | str | None = None) -> None:
        """Open the data directory and load profiles."""
        tracer = trace.get_tracer(__name__)

        with tracer.start_as_current_span("db.connect") as span:
            if data_dir is None:
                data_dir = os.getenv("DATA_DIR", str(config.DEFAULT_DATA_DIR))
            cls.data_dir = Path(data_dir)
            cls.data_dir.mkdir(parents=True, exist_ok=True)
            span.set_attribute("db.path", str(cls.data_dir))

            stored = cls._profile_storage().get_item(PROFILES_KEY) or {}
            cls.profiles = dict(stored)
            cls.sessions = {}

            logger.info("storage_connected", path=str(cls.data_dir), profiles=len(cls.profiles))

    @classmethod
    async def disconnect(cls) -> None:
        """Flush every loaded collection and forget in-memory state."""
        if cls.data_dir is None:
            return

        logger.info("storage_disconnecting", sessions=len(cls.sessions))
        for user_id in list(cls.sessions):
            cls.save_notes(user_id)

        cls.sessions = {}
        cls.profiles = {}
        cls.data_dir = None
        logger.info("storage_disconnected")

    @classmethod
    def _require_dir(cls) -> Path:
        if cls.data_dir is None:
            raise RuntimeError("Storage not connected. Call connect() first.")
        return cls.data_dir

    @classmethod
    def _profile_storage(cls) -> LocalStorage:
        return LocalStorage(cls._require_dir() / PROFILES_FILE)

    @classmethod
    def note_storage(cls, user_id: str) -> LocalStorage:
        return LocalStorage(cls._require_dir() / f"{user_id}.json")

    # Profiles

    @classmethod
    def find_profile_by_email(cls, email: str) -> dict[str, Any] | None:
        email = email.strip().lower()
        for profile in cls.profiles.values():
            if profile["email"] == email:
                return profile
        return None

    @classmethod
    def find_profile(cls, user_id: str) -> dict[str, Any] | None:
        return cls.profiles.get(user_id)

    @classmethod
    def insert_profile(cls, email: str, full_name: str, password_hash: str) -> dict[str, Any]:
        """Create and persist a profile row."""
        profile = {
            "id": uuid.uuid4().hex,
            "email": email.strip().lower(),
            "full_name": full_name.strip(),
            "password_hash": password_hash,
            "status": "active",
            "created_at": datetime.now(UTC).isoformat(),
        }
        cls.profiles[profile["id"]] = profile
        cls._profile_storage().set_item(PROFILES_KEY, cls.profiles)
        logger.info("profile_created", user_id=profile["id"])
        return profile

    # Sessions

    @classmethod
    def session(cls, user_id: str) -> UserSession:
        """The user's session, loading their notes from storage on first use."""
        session = cls.sessions.get(user_id)
        if session is None:
            stored = cls.note_storage(user_id).get_item(config.NOTES_STORAGE_KEY) or []
            notes = [Note.model_validate(item) for item in stored]
            session = UserSession(notes=NoteCollection(notes))
            cls.sessions[user_id] = session
            logger.debug("session_loaded", user_id=user_id, notes=len(notes))
        return session

    @classmethod
    def save_notes(cls, user_id: str) -> None:
        """Mirror a loaded note collection to storage if it has unsaved changes."""
        session = cls.sessions.get(user_id)
        if session is None or not session.notes.dirty:
            return

        payload = [note.model_dump(mode="json") for note in session.notes]
        cls.note_storage(user_id).set_item(config.NOTES_STORAGE_KEY, payload)
        session.notes.dirty = False
        logger.debug("notes_saved", user_id=user_id, count=len(payload))


def get_notes(user_id: str) -> NoteCollection:
    """Get a user's note collection."""
    return Database.session(user_id).notes
