"""Notes command handlers."""

import mimetypes
import os
import subprocess
import sys
import tempfile
from pathlib import Path

import httpx

from ..config import API_URL, auth_headers, load_token
from .common import report_http_error


def _require_token(action: str) -> str | None:
    token = load_token()
    if not token:
        print(f"Error: You must be logged in to {action}. Use /register or /login.\n")
    return token


def _get_editor():
    """Get the user's preferred text editor."""
    editor = os.environ.get("EDITOR") or os.environ.get("VISUAL")
    if editor:
        return editor

    if sys.platform == "win32":
        return "notepad"
    for editor_cmd in ["nano", "vim", "vi"]:
        try:
            subprocess.run(
                ["which", editor_cmd],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
            )
            return editor_cmd
        except (subprocess.CalledProcessError, FileNotFoundError):
            continue

    return "vi"


def _edit_text(initial: str) -> str | None:
    """Open the editor on ``initial`` and return the saved text."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".md", delete=False) as tmp_file:
        tmp_file.write(initial)
        tmp_path = Path(tmp_file.name)

    editor = _get_editor()
    try:
        print(f"\nOpening editor ({editor}) to write note content...")
        subprocess.run([editor, str(tmp_path)], check=True)
        return tmp_path.read_text(encoding="utf-8")
    except subprocess.CalledProcessError:
        print(f"\nError: Editor '{editor}' exited with an error.\n")
    except FileNotFoundError:
        print(f"\nError: Editor '{editor}' not found.\n")
        print("You can set your preferred editor with: export EDITOR=nano\n")
    finally:
        tmp_path.unlink(missing_ok=True)
    return None


def _print_note_line(note: dict):
    star = "★ " if note.get("is_starred") else ""
    tags = ", ".join(note.get("tags", [])) or "no tags"
    print(f"{star}{note['title']}")
    print(f"  ID: {note['id']}")
    print(f"  Type: {note['type']} | Category: {note['category']} | Tags: {tags}")
    print(f"  Updated: {note['updated_at'][:16].replace('T', ' ')}\n")


def create_note():
    """Create a text note; content is written in an external editor."""
    print("\n=== Create New Note ===")
    title = input("Title: ").strip()
    if not title:
        print("Error: Title is required.\n")
        return

    token = _require_token("create notes")
    if not token:
        return

    content = _edit_text("")
    if content is None:
        return

    try:
        response = httpx.post(
            f"{API_URL}/notes",
            json={"title": title, "content": content},
            headers=auth_headers(token),
            timeout=10.0,
        )
        response.raise_for_status()
        note = response.json()

        print("\n✓ Note created successfully!")
        print(f"  Note ID: {note['id']}")
        print(f"  Category: {note['category']}")
        print(f"  Tags: {', '.join(note['tags']) or 'none'}\n")
    except httpx.HTTPError as e:
        report_http_error(e, "create note")


def list_notes(query: str = ""):
    """List notes, optionally filtered by a search query."""
    token = _require_token("list notes")
    if not token:
        return

    try:
        response = httpx.get(
            f"{API_URL}/notes",
            params={"q": query.strip()},
            headers=auth_headers(token),
            timeout=10.0,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "list notes")
        return

    notes = data.get("notes", [])
    if not notes:
        print("\nNo notes found.\n")
        return

    print(f"\n=== Your Notes ({data['total']} shown) ===\n")
    for note in notes:
        _print_note_line(note)


def view_note(note_id: str):
    """View a specific note by ID."""
    note_id = note_id.strip()
    if not note_id:
        print("Error: Note ID is required. Usage: /view <note_id>\n")
        return

    token = _require_token("view notes")
    if not token:
        return

    try:
        response = httpx.get(
            f"{API_URL}/notes/{note_id}", headers=auth_headers(token), timeout=10.0
        )
        response.raise_for_status()
        note = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "retrieve note", not_found=f"Note with ID '{note_id}' not found.")
        return

    print(f"\n{'=' * 60}")
    _print_note_line(note)
    if note.get("summary"):
        print(f"Summary: {note['summary']}")
    print(f"{'=' * 60}\n")
    print(note.get("content", ""))
    print(f"\n{'=' * 60}\n")


def star_note(note_id: str):
    """Star or unstar a note."""
    note_id = note_id.strip()
    if not note_id:
        print("Error: Note ID is required. Usage: /star <note_id>\n")
        return

    token = _require_token("star notes")
    if not token:
        return

    try:
        response = httpx.post(
            f"{API_URL}/notes/{note_id}/star", headers=auth_headers(token), timeout=10.0
        )
        response.raise_for_status()
        starred = response.json()["is_starred"]
        print(f"\n✓ Note {'starred' if starred else 'unstarred'}.\n")
    except httpx.HTTPError as e:
        report_http_error(e, "star note", not_found=f"Note with ID '{note_id}' not found.")


def delete_note(note_id: str):
    """Delete a note after confirmation."""
    note_id = note_id.strip()
    if not note_id:
        print("Error: Note ID is required. Usage: /delete <note_id>\n")
        return

    token = _require_token("delete notes")
    if not token:
        return

    confirm = input(f"Delete note {note_id}? This cannot be undone. [y/N]: ").strip().lower()
    if confirm != "y":
        print("Cancelled.\n")
        return

    try:
        response = httpx.delete(
            f"{API_URL}/notes/{note_id}", headers=auth_headers(token), timeout=10.0
        )
        response.raise_for_status()
        print("\n✓ Note deleted.\n")
    except httpx.HTTPError as e:
        report_http_error(e, "delete note", not_found=f"Note with ID '{note_id}' not found.")


def upload_files(args: str):
    """Upload files; each becomes a note."""
    paths = [Path(arg).expanduser() for arg in args.split()]
    if not paths:
        print("Error: At least one file is required. Usage: /upload <path> [<path> ...]\n")
        return

    missing = [str(path) for path in paths if not path.is_file()]
    if missing:
        print(f"Error: File not found: {', '.join(missing)}\n")
        return

    token = _require_token("upload files")
    if not token:
        return

    files = [
        (
            "files",
            (
                path.name,
                path.read_bytes(),
                mimetypes.guess_type(path.name)[0] or "application/octet-stream",
            ),
        )
        for path in paths
    ]

    try:
        response = httpx.post(
            f"{API_URL}/notes/upload", files=files, headers=auth_headers(token), timeout=60.0
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "upload files")
        return

    print(f"\n✓ Processed {data['processed']} file(s), {data['failed']} failed.\n")
    for note in data["notes"]:
        _print_note_line(note)


def save_recording(args: str):
    """Save an audio recording note of the given length in seconds."""
    try:
        duration = int(args.strip())
    except ValueError:
        print("Error: Duration in seconds is required. Usage: /record <seconds>\n")
        return

    token = _require_token("save recordings")
    if not token:
        return

    try:
        response = httpx.post(
            f"{API_URL}/notes/recording",
            json={"duration": duration},
            headers=auth_headers(token),
            timeout=10.0,
        )
        response.raise_for_status()
        note = response.json()
        print(f"\n✓ Recording saved: {note['title']} ({note['id']})\n")
    except httpx.HTTPError as e:
        report_http_error(e, "save recording")


def export_notes():
    """Download every note into a JSON file in the current directory."""
    token = _require_token("export notes")
    if not token:
        return

    try:
        response = httpx.get(f"{API_URL}/notes/export", headers=auth_headers(token), timeout=30.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        report_http_error(e, "export notes")
        return

    disposition = response.headers.get("content-disposition", "")
    filename = disposition.split("filename=")[-1].strip('"') or "notes.json"
    Path(filename).write_text(response.text, encoding="utf-8")
    print(f"\n✓ Exported notes to {filename}\n")


def show_stats():
    """Print dashboard counters."""
    token = _require_token("view stats")
    if not token:
        return

    try:
        response = httpx.get(f"{API_URL}/notes/stats", headers=auth_headers(token), timeout=10.0)
        response.raise_for_status()
        stats = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "load stats")
        return

    print("\n=== Dashboard ===")
    print(f"  Total notes: {stats['total_notes']}")
    print(f"  Audio: {stats['audio_notes']} | Video: {stats['video_notes']}")
    print(f"  Starred: {stats['starred_notes']}")
    print(f"  Most active category: {stats['most_active_category']}")
    print(f"  Top tags: {', '.join(stats['top_tags']) or 'none'}\n")
