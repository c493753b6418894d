"""Request dependencies for services created in the application lifespan."""

from fastapi import Request

from .services.assistant import NoteAssistant
from .services.autosave import AutoSaveQueue


def get_assistant(request: Request) -> NoteAssistant:
    """The application's note assistant."""
    return request.app.state.assistant


def get_autosave(request: Request) -> AutoSaveQueue:
    """The application's auto-save queue."""
    return request.app.state.autosave
