"""Chat-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single entry in a user's chat log. Immutable once created."""

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    type: Literal["user", "ai"]
    content: str
    timestamp: datetime


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    message: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    user_message: ChatMessage
    ai_message: ChatMessage
    error: str | None = None
