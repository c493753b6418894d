"""Notes management endpoints."""

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile

from .. import config
from ..auth import get_current_user
from ..database import get_notes
from ..dependencies import get_autosave
from ..models import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    Note,
    NoteCreate,
    NoteListResponse,
    NoteMove,
    NoteStats,
    NoteUpdate,
    RecordingCreate,
    UploadResponse,
)
from ..observability import get_app_metrics, get_tracer
from ..services.autosave import AutoSaveQueue
from ..services.file_processor import process_batch
from ..services.notes import NoteNotFoundError

# Initialize logger
logger = structlog.get_logger(__name__)

# Get tracer and metrics
tracer = get_tracer(__name__)
metrics = get_app_metrics()

router = APIRouter(prefix="/notes", tags=["notes"])


class UploadHandle:
    """Adapts a multipart upload to the file processor's handle."""

    def __init__(self, upload: UploadFile):
        self.upload = upload
        self.name = upload.filename or "untitled"
        self.size = upload.size or 0
        self.mime_type = upload.content_type or "application/octet-stream"

    async def read(self) -> bytes:
        return await self.upload.read()


def _not_found(user_id: str, note_id: str, action: str) -> HTTPException:
    logger.warning(f"{action}_note_not_found", user_id=user_id, note_id=note_id)
    return HTTPException(status_code=404, detail="Note not found")


@router.post("", response_model=Note, status_code=201)
async def create_note(
    note: NoteCreate,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """
    Create a text note.

    Category and tags are inferred from keywords in the title and content.
    """
    with tracer.start_as_current_span("create_note") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)

        try:
            created = get_notes(user_id).create_note(note.title, note.content)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        autosave.request_save(user_id)
        metrics.notes_created.add(1, {"type": "text"})
        span.set_attribute("note.id", created.id)
        logger.info("note_created_successfully", user_id=user_id, note_id=created.id)

        return created


@router.get("", response_model=NoteListResponse)
async def list_notes(
    q: str = "",
    category: str = "all",
    current_user: dict = Depends(get_current_user),
):
    """
    List the user's notes, most recent first.

    ``q`` matches title, content, tags and summary; ``category`` of ``all``
    matches every category.
    """
    with tracer.start_as_current_span("list_notes") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("query.category", category)

        notes = get_notes(user_id)
        matched = notes.filter(q, category)

        span.set_attribute("notes.count", len(matched))
        logger.info("notes_listed", user_id=user_id, count=len(matched), total=len(notes))

        return NoteListResponse(notes=matched, total=len(matched), categories=notes.categories())


@router.get("/stats", response_model=NoteStats)
async def note_stats(current_user: dict = Depends(get_current_user)):
    """Dashboard counters for the user's notes."""
    return NoteStats(**get_notes(current_user["id"]).stats())


@router.get("/export")
async def export_notes(current_user: dict = Depends(get_current_user)):
    """Download every note as a JSON file."""
    with tracer.start_as_current_span("export_notes") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)

        filename, body = get_notes(user_id).export()
        logger.info("notes_exported", user_id=user_id, filename=filename)

        return Response(
            content=body,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_files(
    files: list[UploadFile] = File(...),
    category: str = Form(config.UPLOAD_CATEGORY),
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """
    Turn uploaded files into notes, one note per file.

    A file that cannot be processed still produces a note describing the
    failure; it is counted in ``failed`` rather than failing the request.
    """
    with tracer.start_as_current_span("upload_files") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("upload.count", len(files))

        result = await process_batch([UploadHandle(upload) for upload in files], category)

        get_notes(user_id).prepend(result.notes)
        autosave.request_save(user_id)

        for note in result.notes:
            metrics.notes_created.add(1, {"type": note.type})
        logger.info(
            "files_uploaded",
            user_id=user_id,
            processed=len(result.notes),
            failed=result.failed,
        )

        return UploadResponse(
            notes=result.notes, processed=len(result.notes), failed=result.failed
        )


@router.post("/recording", response_model=Note, status_code=201)
async def save_recording(
    recording: RecordingCreate,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Create an audio note for a finished recording."""
    user_id = current_user["id"]
    note = get_notes(user_id).create_recording_note(recording.duration, recording.audio_url)
    autosave.request_save(user_id)
    metrics.notes_created.add(1, {"type": "audio"})
    return note


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_notes(
    request: BulkDeleteRequest,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Delete several notes; unknown ids are ignored."""
    user_id = current_user["id"]
    deleted = get_notes(user_id).bulk_delete(request.note_ids)
    if deleted:
        autosave.request_save(user_id)
    logger.info("notes_bulk_deleted", user_id=user_id, deleted=deleted)
    return BulkDeleteResponse(deleted=deleted)


@router.delete("/categories/{name}", response_model=BulkDeleteResponse)
async def delete_category(
    name: str,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Remove a category; its notes move back to Personal."""
    user_id = current_user["id"]
    moved = get_notes(user_id).delete_category(name)
    if moved:
        autosave.request_save(user_id)
    logger.info("category_deleted", user_id=user_id, category=name, moved=moved)
    return BulkDeleteResponse(deleted=moved)


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: str, current_user: dict = Depends(get_current_user)):
    """Retrieve a specific note by ID."""
    with tracer.start_as_current_span("get_note") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("note.id", note_id)

        try:
            return get_notes(user_id).get(note_id)
        except NoteNotFoundError:
            raise _not_found(user_id, note_id, "get")


@router.patch("/{note_id}", response_model=Note)
async def update_note(
    note_id: str,
    note_update: NoteUpdate,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """
    Update a note.

    Only fields present in the request are changed.
    """
    with tracer.start_as_current_span("update_note") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("note.id", note_id)

        changes = note_update.model_dump(exclude_unset=True)
        try:
            updated = get_notes(user_id).update_note(note_id, **changes)
        except NoteNotFoundError:
            raise _not_found(user_id, note_id, "update")

        autosave.request_save(user_id)
        logger.info("note_updated_successfully", user_id=user_id, note_id=note_id)
        return updated


@router.post("/{note_id}/star", response_model=Note)
async def toggle_star(
    note_id: str,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Star or unstar a note."""
    user_id = current_user["id"]
    try:
        note = get_notes(user_id).toggle_star(note_id)
    except NoteNotFoundError:
        raise _not_found(user_id, note_id, "star")

    autosave.request_save(user_id)
    return note


@router.post("/{note_id}/move", response_model=Note)
async def move_note(
    note_id: str,
    move: NoteMove,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Move a note to another category."""
    user_id = current_user["id"]
    try:
        note = get_notes(user_id).move_to_category(note_id, move.category)
    except NoteNotFoundError:
        raise _not_found(user_id, note_id, "move")

    autosave.request_save(user_id)
    return note


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: str,
    current_user: dict = Depends(get_current_user),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Delete a note permanently."""
    with tracer.start_as_current_span("delete_note") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("note.id", note_id)

        try:
            get_notes(user_id).delete_note(note_id)
        except NoteNotFoundError:
            raise _not_found(user_id, note_id, "delete")

        autosave.request_save(user_id)
        logger.info("note_deleted_successfully", user_id=user_id, note_id=note_id)

        # 204 No Content - no response body needed
        return
