"""CLI command handlers."""

from .auth import login_user, logout_user, register_user
from .chat import clear_history, send_message, show_insights, summarize_youtube, view_history
from .notes import (
    create_note,
    delete_note,
    export_notes,
    list_notes,
    save_recording,
    show_stats,
    star_note,
    upload_files,
    view_note,
)

__all__ = [
    # Chat commands
    "clear_history",
    # Notes commands
    "create_note",
    "delete_note",
    "export_notes",
    "list_notes",
    # Auth commands
    "login_user",
    "logout_user",
    "register_user",
    "save_recording",
    "send_message",
    "show_insights",
    "show_stats",
    "star_note",
    "summarize_youtube",
    "upload_files",
    "view_history",
    "view_note",
]
