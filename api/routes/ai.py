"""AI assistance endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from ..auth import get_current_user
from ..database import get_notes
from ..dependencies import get_assistant, get_autosave
from ..models import (
    AIResponse,
    AssistRequest,
    Insight,
    SearchRequest,
    SearchResult,
    Suggestion,
    TagRequest,
    TagResponse,
    YouTubeRequest,
    YouTubeResponse,
)
from ..observability import get_app_metrics, get_tracer
from ..services.assistant import NoteAssistant, extract_video_id
from ..services.autosave import AutoSaveQueue
from ..services.notes import NoteNotFoundError

# Initialize logger
logger = structlog.get_logger(__name__)

# Get tracer and metrics
tracer = get_tracer(__name__)
metrics = get_app_metrics()

router = APIRouter(prefix="/ai", tags=["ai"])

YOUTUBE_CATEGORY = "YouTube Summaries"


@router.post("/assist", response_model=AIResponse)
async def assist(
    request: AssistRequest,
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """
    Ask the assistant about a note while reading or editing it.

    When ``note_id`` is given the note's content is used as context.
    """
    with tracer.start_as_current_span("ai_assist") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("ai.editing", request.is_editing)

        context = request.context
        if request.note_id:
            try:
                context = get_notes(user_id).get(request.note_id).content
            except NoteNotFoundError:
                logger.warning("assist_note_not_found", user_id=user_id, note_id=request.note_id)
                raise HTTPException(status_code=404, detail="Note not found")

        return await assistant.respond(
            request.prompt,
            context=context,
            is_editing=request.is_editing,
            history=request.history,
        )


@router.post("/youtube", response_model=YouTubeResponse)
async def summarize_youtube(
    request: YouTubeRequest,
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
    autosave: AutoSaveQueue = Depends(get_autosave),
):
    """Summarise a YouTube video, optionally saving the summary as a note."""
    with tracer.start_as_current_span("ai_youtube") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)

        video_id = extract_video_id(request.url)
        if video_id is None:
            logger.warning("youtube_invalid_url", user_id=user_id, url=request.url)
            raise HTTPException(status_code=400, detail="Invalid YouTube URL")

        summary = await assistant.summarize_youtube_video(request.url, video_id)

        note = None
        if request.save_as_note:
            notes = get_notes(user_id)
            created = notes.create_note(summary.title, summary.note_content)
            note = notes.update_note(
                created.id, category=YOUTUBE_CATEGORY, tags=["youtube", "summary"]
            )
            autosave.request_save(user_id)
            metrics.notes_created.add(1, {"type": "text"})
            logger.info("youtube_summary_saved", user_id=user_id, note_id=note.id)

        return YouTubeResponse(summary=summary, note=note)


@router.post("/search", response_model=list[SearchResult])
async def search_notes(
    request: SearchRequest,
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """Search notes, widened with model-suggested related terms when available."""
    notes = get_notes(current_user["id"]).all()
    return await assistant.enhance_search(request.query, notes)


@router.get("/insights", response_model=list[Insight])
async def insights(
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """Dashboard insights about the user's notes."""
    return await assistant.generate_insights(get_notes(current_user["id"]).all())


@router.get("/suggestions", response_model=list[Suggestion])
async def suggestions(
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """Actionable suggestions for organising notes."""
    return await assistant.generate_suggestions(get_notes(current_user["id"]).all())


@router.post("/tags", response_model=TagResponse)
async def suggest_tags(
    request: TagRequest,
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """Suggest tags for a piece of content."""
    return TagResponse(tags=await assistant.suggest_tags(request.content))
