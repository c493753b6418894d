"""Environment-driven configuration for the SmartNotes API."""

import os
from pathlib import Path

# AI provider
AI_API_KEY = os.getenv("OPENROUTER_API_KEY") or os.getenv("DEEPSEEK_API_KEY") or ""
AI_TEST_MODE = os.getenv("AI_TEST_MODE", "false").lower() == "true"
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1")
AI_SITE_URL = os.getenv("AI_SITE_URL", "https://dzowa-ai-notes.netlify.app")
AI_SITE_NAME = os.getenv("AI_SITE_NAME", "DzowaAI Notes")
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "300"))
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
AI_HISTORY_TURNS = int(os.getenv("AI_HISTORY_TURNS", "5"))

# Dispatcher backoff schedule
AI_BACKOFF_BASE_SECONDS = float(os.getenv("AI_BACKOFF_BASE_SECONDS", "1.0"))
AI_BACKOFF_CAP_SECONDS = float(os.getenv("AI_BACKOFF_CAP_SECONDS", "5.0"))
AI_RATE_LIMIT_BASE_SECONDS = float(os.getenv("AI_RATE_LIMIT_BASE_SECONDS", "2.0"))
AI_RATE_LIMIT_STEP_SECONDS = float(os.getenv("AI_RATE_LIMIT_STEP_SECONDS", "1.0"))

# Local storage
DEFAULT_DATA_DIR = Path.home() / ".smartnotes" / "data"
NOTES_STORAGE_KEY = "smarta-notes"

# Uploads
UPLOAD_CATEGORY = "Uploads"
