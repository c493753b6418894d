"""FastAPI application for SmartNotes."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from . import config
from .database import Database
from .observability import initialize_observability
from .routes import ai_router, auth_router, chat_router, health_router, notes_router
from .services.assistant import NoteAssistant
from .services.autosave import AutoSaveQueue
from .services.dispatcher import ModelDispatcher

# Initialize logger
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    logger.info("api_starting")

    # Initialize OpenTelemetry
    initialize_observability()

    # Open local storage
    await Database.connect()

    app.state.autosave = AutoSaveQueue(Database.save_notes)
    await app.state.autosave.start_worker()

    app.state.assistant = NoteAssistant(
        ModelDispatcher(api_key=config.AI_API_KEY, test_mode=config.AI_TEST_MODE)
    )
    if not app.state.assistant.dispatcher.has_credentials:
        logger.warning("ai_credentials_missing", test_mode=config.AI_TEST_MODE)

    logger.info("api_started")

    yield

    # Shutdown
    logger.info("api_shutting_down")
    await app.state.autosave.stop_worker()
    await app.state.assistant.close()
    await Database.disconnect()
    logger.info("api_shutdown_complete")


app = FastAPI(
    title="SmartNotes API",
    description="AI note-taking assistant: notes, file uploads and model-backed assistance",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with OpenTelemetry
FastAPIInstrumentor.instrument_app(app)

# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(notes_router)
app.include_router(chat_router)
app.include_router(ai_router)
