"""Pydantic models for API requests and responses."""

from .ai import (
    AIResponse,
    AssistRequest,
    HistoryTurn,
    Insight,
    SearchRequest,
    SearchResult,
    Suggestion,
    TagRequest,
    TagResponse,
    VideoSummary,
    YouTubeRequest,
    YouTubeResponse,
)
from .auth import AuthResponse, LoginRequest, UserCreate, UserResponse
from .chat import ChatMessage, ChatRequest, ChatResponse
from .notes import (
    NOTE_KINDS,
    BulkDeleteRequest,
    BulkDeleteResponse,
    Note,
    NoteCreate,
    NoteKind,
    NoteListResponse,
    NoteMove,
    NoteStats,
    NoteUpdate,
    RecordingCreate,
    UploadResponse,
)

__all__ = [
    # AI models
    "AIResponse",
    "AssistRequest",
    "AuthResponse",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    # Chat models
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "HistoryTurn",
    "Insight",
    "LoginRequest",
    "NOTE_KINDS",
    # Notes models
    "Note",
    "NoteCreate",
    "NoteKind",
    "NoteListResponse",
    "NoteMove",
    "NoteStats",
    "NoteUpdate",
    "RecordingCreate",
    "SearchRequest",
    "SearchResult",
    "Suggestion",
    "TagRequest",
    "TagResponse",
    "UploadResponse",
    # Auth models
    "UserCreate",
    "UserResponse",
    "VideoSummary",
    "YouTubeRequest",
    "YouTubeResponse",
]
