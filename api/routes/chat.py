"""Chat endpoints."""

import uuid
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Depends

from .. import config
from ..auth import get_current_user
from ..database import Database
from ..dependencies import get_assistant
from ..models import ChatMessage, ChatRequest, ChatResponse, HistoryTurn, Note
from ..observability import get_app_metrics, get_tracer
from ..services.assistant import NoteAssistant

# Initialize logger
logger = structlog.get_logger(__name__)

# Get tracer and metrics
tracer = get_tracer(__name__)
metrics = get_app_metrics()

router = APIRouter(prefix="/chat", tags=["chat"])

HISTORY_MESSAGES = config.AI_HISTORY_TURNS
CONTEXT_NOTES = 10
EXCERPT_CHARS = 200


def build_notes_context(notes: list[Note]) -> str:
    """Describe the user's notes for the assistant."""
    excerpts = "\n\n".join(
        f"{note.title} ({note.category}): {note.content[:EXCERPT_CHARS]}"
        for note in notes[:CONTEXT_NOTES]
    )
    return f"The user has {len(notes)} notes.\n\n{excerpts}".strip()


def history_turns(messages: list[ChatMessage]) -> list[HistoryTurn]:
    """The most recent messages as model conversation turns."""
    return [
        HistoryTurn(role="user" if message.type == "user" else "assistant", content=message.content)
        for message in messages[-HISTORY_MESSAGES:]
    ]


def _message(kind: str, content: str) -> ChatMessage:
    return ChatMessage(
        id=uuid.uuid4().hex, type=kind, content=content, timestamp=datetime.now(UTC)
    )


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: dict = Depends(get_current_user),
    assistant: NoteAssistant = Depends(get_assistant),
):
    """
    Send a message to the assistant about the user's notes.

    The reply always carries usable text; ``error`` is set when it came from
    the offline fallback because every model failed.
    """
    with tracer.start_as_current_span("process_chat") as span:
        user_id = current_user["id"]
        span.set_attribute("user.id", user_id)
        span.set_attribute("message.length", len(request.message))

        logger.info("chat_message_received", user_id=user_id, message_length=len(request.message))

        session = Database.session(user_id)
        history = history_turns(session.messages)

        user_message = _message("user", request.message)
        session.messages.append(user_message)

        response = await assistant.respond(
            request.message,
            context=build_notes_context(session.notes.all()),
            history=history,
        )

        ai_message = _message("ai", response.content)
        session.messages.append(ai_message)

        metrics.chat_messages.add(1, {"fallback": response.error is not None})
        logger.info(
            "chat_response_generated",
            user_id=user_id,
            response_length=len(response.content),
            fallback=response.error is not None,
        )

        return ChatResponse(user_message=user_message, ai_message=ai_message, error=response.error)


@router.get("", response_model=list[ChatMessage])
async def list_messages(current_user: dict = Depends(get_current_user)):
    """The user's chat log, oldest first."""
    return list(Database.session(current_user["id"]).messages)


@router.delete("", status_code=204)
async def clear_messages(current_user: dict = Depends(get_current_user)):
    """Clear the user's chat log."""
    Database.session(current_user["id"]).messages.clear()
    logger.info("chat_cleared", user_id=current_user["id"])
    return
