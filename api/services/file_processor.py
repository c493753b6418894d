"""Turn uploaded files into notes.

Files are classified by suffix into a coarse category, then a per-category
handler extracts text. Plain text, CSV and source code are read for real;
everything that would need a parser or a model (PDF, Word, OCR, speech) gets
a placeholder description instead.

Handlers return an :data:`ExtractionResult` rather than raising, and
:func:`process_file` never raises: a bad file becomes a note that describes
the error, so one file cannot abort a batch.
"""

from __future__ import annotations

import asyncio
import base64
import io
import math
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol

import structlog
from PIL import Image

from .. import config
from ..models import Note
from ..observability import get_app_metrics, get_tracer

logger = structlog.get_logger(__name__)

tracer = get_tracer(__name__)

THUMBNAIL_SIZE = 150
PDF_BYTES_PER_PAGE = 50_000
AUDIO_BYTES_PER_SECOND = 16_000
VIDEO_BYTES_PER_SECOND = 100_000
CSV_PREVIEW_LINES = 10
CSV_TRUNCATION_MARKER = "... (truncated)"
SUMMARY_FULL_LIMIT = 200
SUMMARY_PREFIX_CHARS = 150
LARGE_FILE_BYTES = 10 * 1024 * 1024
SMALL_FILE_BYTES = 1024

VIDEO_THUMBNAIL = (
    "data:image/svg+xml;base64,"
    "PHN2ZyB3aWR0aD0iMTUwIiBoZWlnaHQ9IjE1MCIgdmlld0JveD0iMCAwIDE1MCAxNTAiIGZpbGw9Im5vbmUi"
    "IHhtbG5zPSJodHRwOi8vd3d3LnczLm9yZy8yMDAwL3N2ZyI+CjxyZWN0IHdpZHRoPSIxNTAiIGhlaWdodD0i"
    "MTUwIiBmaWxsPSIjMzMzIi8+Cjx0ZXh0IHg9Ijc1IiB5PSI3NSIgZmlsbD0iI2ZmZiIgdGV4dC1hbmNob3I9"
    "Im1pZGRsZSIgZG9taW5hbnQtYmFzZWxpbmU9Im1pZGRsZSI+VmlkZW88L3RleHQ+Cjwvc3ZnPg=="
)


class FileCategory(str, Enum):
    """Coarse file classification."""

    TEXT = "text"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    CODE = "code"
    ARCHIVE = "archive"
    UNKNOWN = "unknown"


SUPPORTED_TYPES: dict[FileCategory, tuple[str, ...]] = {
    FileCategory.TEXT: (".txt", ".md", ".rtf"),
    FileCategory.DOCUMENT: (".pdf", ".doc", ".docx", ".odt"),
    FileCategory.SPREADSHEET: (".xls", ".xlsx", ".csv", ".ods"),
    FileCategory.PRESENTATION: (".ppt", ".pptx", ".odp"),
    FileCategory.IMAGE: (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg"),
    FileCategory.AUDIO: (".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"),
    FileCategory.VIDEO: (".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv"),
    FileCategory.CODE: (
        ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".cpp", ".c",
        ".html", ".css", ".json", ".xml", ".yaml", ".yml",
    ),
    FileCategory.ARCHIVE: (".zip", ".rar", ".7z", ".tar", ".gz"),
}

SUFFIX_CATEGORIES: dict[str, FileCategory] = {
    suffix: category for category, suffixes in SUPPORTED_TYPES.items() for suffix in suffixes
}

LANGUAGES: dict[str, str] = {
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".jsx": "React JSX",
    ".tsx": "React TSX",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".html": "HTML",
    ".css": "CSS",
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
}

WORD_SUFFIXES = (".doc", ".docx")

NOTE_KIND_BY_CATEGORY: dict[FileCategory, str] = {
    FileCategory.TEXT: "text",
    FileCategory.CODE: "text",
    FileCategory.DOCUMENT: "document",
    FileCategory.SPREADSHEET: "document",
    FileCategory.PRESENTATION: "document",
    FileCategory.IMAGE: "image",
    FileCategory.AUDIO: "audio",
    FileCategory.VIDEO: "video",
    FileCategory.ARCHIVE: "document",
    FileCategory.UNKNOWN: "document",
}

CONTENT_TAGS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("meeting", "agenda"), "meeting"),
    (("project", "task"), "project"),
    (("research", "study"), "research"),
    (("report", "analysis"), "report"),
    (("presentation", "slide"), "presentation"),
)


class FileHandle(Protocol):
    """What the processor needs from an uploaded file."""

    name: str
    size: int
    mime_type: str

    async def read(self) -> bytes: ...


@dataclass
class UploadedFile:
    """In-memory file handle."""

    name: str
    data: bytes
    mime_type: str = "application/octet-stream"
    size: int = -1

    def __post_init__(self):
        if self.size < 0:
            self.size = len(self.data)

    async def read(self) -> bytes:
        return self.data


@dataclass
class Extracted:
    """Successful extraction."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtractionFailed:
    """Failed extraction, with a human-readable reason."""

    reason: str


ExtractionResult = Extracted | ExtractionFailed

Handler = Callable[[FileHandle, bytes], ExtractionResult]


@dataclass
class ProcessedFile:
    """Transient result of processing one upload."""

    name: str
    type: FileCategory
    size: int
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def extracted_text(self) -> str:
        return self.content


@dataclass
class BatchItem:
    """One file's note and whether its processing failed."""

    note: Note
    failed: bool = False


@dataclass
class BatchResult:
    """Notes for a whole upload, in input order."""

    notes: list[Note]
    failed: int = 0


def get_file_extension(filename: str) -> str:
    """Lower-cased suffix from the last '.', or '' when there is none."""
    index = filename.rfind(".")
    if index < 0:
        return ""
    return filename[index:].lower()


def classify(filename: str) -> FileCategory:
    """Map a filename to its coarse category."""
    return SUFFIX_CATEGORIES.get(get_file_extension(filename), FileCategory.UNKNOWN)


def language_for(extension: str) -> str:
    return LANGUAGES.get(extension, "Unknown")


def decode_text(data: bytes) -> str:
    """Decode as UTF-8, raising UnicodeDecodeError on invalid input."""
    return data.decode("utf-8")


def _read_text(file: FileHandle, data: bytes) -> ExtractionResult:
    try:
        return Extracted(decode_text(data))
    except UnicodeDecodeError as e:
        return ExtractionFailed(f"Failed to read text file: {e}")


def extract_text(file: FileHandle, data: bytes) -> ExtractionResult:
    return _read_text(file, data)


def extract_document(file: FileHandle, data: bytes) -> ExtractionResult:
    extension = get_file_extension(file.name)

    if extension == ".pdf":
        pages = math.ceil(file.size / PDF_BYTES_PER_PAGE)
        return Extracted(
            f"[PDF Content Extracted from {file.name}]\n\n"
            "This is simulated PDF text extraction. Real text extraction requires a PDF "
            "parsing library.\n\n"
            f"File size: {file.size} bytes\n"
            f"Estimated pages: {pages}"
        )

    if extension in WORD_SUFFIXES:
        return Extracted(
            f"[Word Document Content from {file.name}]\n\n"
            "This is simulated Word document text extraction. Real text extraction requires "
            "a Word document parser.\n\n"
            f"File size: {file.size} bytes\n"
            f"Document type: {file.mime_type}"
        )

    return Extracted(f"Document content from {file.name} ({file.size} bytes)")


def extract_spreadsheet(file: FileHandle, data: bytes) -> ExtractionResult:
    if get_file_extension(file.name) != ".csv":
        return Extracted(
            f"[Spreadsheet Data from {file.name}]\n\n"
            "This is simulated spreadsheet data extraction. Real extraction requires a "
            "spreadsheet reader.\n\n"
            f"File size: {file.size} bytes"
        )

    result = _read_text(file, data)
    if isinstance(result, ExtractionFailed):
        return result

    lines = result.text.splitlines()
    preview = "\n".join(lines[:CSV_PREVIEW_LINES])
    text = f"[CSV Data Preview from {file.name}]\n\n{preview}"
    if len(lines) > CSV_PREVIEW_LINES:
        text += f"\n\n{CSV_TRUNCATION_MARKER}"
    return Extracted(text)


def generate_image_thumbnail(data: bytes, size: int = THUMBNAIL_SIZE) -> str:
    """Scale an image to fit a ``size`` x ``size`` canvas, centred, as a PNG data URI."""
    with Image.open(io.BytesIO(data)) as image:
        image = image.convert("RGBA")
        scale = min(size / image.width, size / image.height)
        width = max(1, round(image.width * scale))
        height = max(1, round(image.height * scale))
        resized = image.resize((width, height), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(resized, ((size - width) // 2, (size - height) // 2))

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def extract_image(file: FileHandle, data: bytes) -> ExtractionResult:
    metadata: dict[str, Any] = {}
    try:
        metadata["thumbnail"] = generate_image_thumbnail(data)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("thumbnail_generation_failed", filename=file.name, error=str(e))

    return Extracted(
        f"[Image Analysis for {file.name}]\n\n"
        "Image dimensions: Analyzing...\n"
        f"File size: {file.size} bytes\n"
        f"Format: {file.mime_type}\n\n"
        "This is simulated image text extraction. Real extraction requires OCR or an "
        "image analysis model.",
        metadata,
    )


def extract_audio(file: FileHandle, data: bytes) -> ExtractionResult:
    duration = file.size // AUDIO_BYTES_PER_SECOND
    return Extracted(
        f"[Audio Transcription from {file.name}]\n\n"
        "This is simulated audio transcription. Real transcription requires a "
        "speech-to-text service.\n\n"
        f"Estimated duration: {duration} seconds\n"
        f"File size: {file.size} bytes",
        {"duration": duration},
    )


def extract_video(file: FileHandle, data: bytes) -> ExtractionResult:
    duration = file.size // VIDEO_BYTES_PER_SECOND
    return Extracted(
        f"[Video Analysis from {file.name}]\n\n"
        "This is simulated video transcription and analysis. Real analysis requires "
        "audio extraction and transcription.\n\n"
        f"Estimated duration: {duration} seconds\n"
        f"File size: {file.size} bytes",
        {"duration": duration, "thumbnail": VIDEO_THUMBNAIL},
    )


def extract_code(file: FileHandle, data: bytes) -> ExtractionResult:
    result = _read_text(file, data)
    if isinstance(result, ExtractionFailed):
        return result

    language = language_for(get_file_extension(file.name))
    line_count = len(result.text.split("\n"))
    return Extracted(
        f"[Code File: {file.name}]\n"
        f"Language: {language}\n"
        f"Lines: {line_count}\n"
        f"Size: {file.size} bytes\n\n"
        f"{result.text}"
    )


def extract_archive(file: FileHandle, data: bytes) -> ExtractionResult:
    return Extracted(
        f"[Archive File: {file.name}]\n\n"
        "This is simulated archive analysis. Real analysis requires unpacking the "
        "archive.\n\n"
        f"File size: {file.size} bytes\n"
        f"Type: {file.mime_type}"
    )


def extract_generic(file: FileHandle, data: bytes) -> ExtractionResult:
    result = _read_text(file, data)
    if isinstance(result, Extracted):
        return Extracted(f"[Generic File: {file.name}]\n\n{result.text}")

    return Extracted(
        f"[Binary File: {file.name}]\n\n"
        "This appears to be a binary file that cannot be processed as text.\n"
        f"File size: {file.size} bytes\n"
        f"Type: {file.mime_type}"
    )


HANDLERS: dict[FileCategory, Handler] = {
    FileCategory.TEXT: extract_text,
    FileCategory.DOCUMENT: extract_document,
    FileCategory.SPREADSHEET: extract_spreadsheet,
    FileCategory.PRESENTATION: extract_generic,
    FileCategory.IMAGE: extract_image,
    FileCategory.AUDIO: extract_audio,
    FileCategory.VIDEO: extract_video,
    FileCategory.CODE: extract_code,
    FileCategory.ARCHIVE: extract_archive,
    FileCategory.UNKNOWN: extract_generic,
}


def run_handler(category: FileCategory, file: FileHandle, data: bytes) -> ExtractionResult:
    """Run the handler for ``category``, turning unexpected exceptions into failures."""
    handler = HANDLERS.get(category, extract_generic)
    try:
        return handler(file, data)
    except Exception as e:
        logger.error(
            "file_handler_error",
            filename=file.name,
            category=category.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ExtractionFailed(str(e) or type(e).__name__)


async def process_file(file: FileHandle) -> ProcessedFile:
    """Classify and extract one file. Never raises."""
    with tracer.start_as_current_span("process_file") as span:
        category = classify(file.name)
        span.set_attribute("file.name", file.name)
        span.set_attribute("file.category", category.value)
        span.set_attribute("file.size", file.size)

        metadata: dict[str, Any] = {
            "original_name": file.name,
            "size": file.size,
            "mime_type": file.mime_type,
        }

        try:
            data = await file.read()
        except Exception as e:
            result: ExtractionResult = ExtractionFailed(f"Failed to read file: {e}")
        else:
            result = run_handler(category, file, data)

        if isinstance(result, ExtractionFailed):
            text = f"Error processing file {file.name}: {result.reason}"
            metadata["error"] = result.reason
            span.set_attribute("file.error", True)
            logger.warning("file_processing_failed", filename=file.name, reason=result.reason)
        else:
            text = result.text
            metadata.update(result.metadata)
            logger.info("file_processed", filename=file.name, category=category.value)

        get_app_metrics().files_processed.add(
            1, {"category": category.value, "failed": "error" in metadata}
        )

        return ProcessedFile(
            name=file.name,
            type=category,
            size=file.size,
            content=text,
            metadata=metadata,
        )


def note_kind_for(category: FileCategory | str) -> str:
    """Note kind for a file category; unknown categories become documents."""
    try:
        return NOTE_KIND_BY_CATEGORY[FileCategory(category)]
    except ValueError:
        return "document"


def generate_smart_tags(processed: ProcessedFile) -> list[str]:
    """Size-based tags followed by content keyword tags."""
    tags = []
    if processed.size > LARGE_FILE_BYTES:
        tags.append("large-file")
    if processed.size < SMALL_FILE_BYTES:
        tags.append("small-file")

    content = processed.content.lower()
    for keywords, tag in CONTENT_TAGS:
        if any(keyword in content for keyword in keywords):
            tags.append(tag)
    return tags


def generate_summary(content: str) -> str:
    """Whole content up to 200 characters, else the first 150 plus an ellipsis."""
    if len(content) <= SUMMARY_FULL_LIMIT:
        return content
    return content[:SUMMARY_PREFIX_CHARS].strip() + "..."


def new_file_note_id() -> str:
    return f"file_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def create_note_from_processed_file(
    processed: ProcessedFile, category: str = config.UPLOAD_CATEGORY
) -> Note:
    """Build exactly one note from a processed file."""
    now = datetime.now(UTC)
    is_media = processed.type in (FileCategory.AUDIO, FileCategory.VIDEO)

    return Note(
        id=new_file_note_id(),
        title=processed.name,
        content=processed.content,
        type=note_kind_for(processed.type),
        tags=[processed.type.value, "uploaded", *generate_smart_tags(processed)],
        category=category,
        created_at=now,
        updated_at=now,
        summary=generate_summary(processed.content),
        transcription=processed.extracted_text if is_media else None,
        is_starred=False,
        file_url=processed.metadata.get("thumbnail"),
        duration=processed.metadata.get("duration"),
    )


def create_error_note(file: FileHandle, error: BaseException, category: str) -> Note:
    """Note standing in for a file whose processing failed outright."""
    now = datetime.now(UTC)
    reason = str(error) or type(error).__name__
    major_type = (file.mime_type or "application/octet-stream").split("/")[0]
    if major_type in ("audio", "video", "image"):
        kind = major_type
    else:
        kind = "document"

    return Note(
        id=new_file_note_id(),
        title=file.name,
        content=(
            f"File upload failed: {file.name}\n"
            f"Size: {file.size} bytes\n"
            f"Type: {file.mime_type}\n"
            f"Error: {reason}\n"
            f"Uploaded: {now.isoformat(timespec='seconds')}"
        ),
        type=kind,
        tags=["uploaded", "error", major_type],
        category=category,
        created_at=now,
        updated_at=now,
        summary=f"Failed to process: {file.name}",
    )


async def file_to_note(file: FileHandle, category: str = config.UPLOAD_CATEGORY) -> BatchItem:
    """Process one file into a note; any failure becomes an error note."""
    try:
        processed = await process_file(file)
        note = create_note_from_processed_file(processed, category)
        return BatchItem(note=note, failed="error" in processed.metadata)
    except Exception as e:
        logger.error("file_to_note_failed", filename=file.name, error=str(e))
        return BatchItem(note=create_error_note(file, e, category), failed=True)


async def process_batch(
    files: Sequence[FileHandle], category: str = config.UPLOAD_CATEGORY
) -> BatchResult:
    """Process all files concurrently. Returns one note per file, in input order."""
    with tracer.start_as_current_span("process_batch") as span:
        span.set_attribute("batch.size", len(files))
        logger.info("batch_processing_started", count=len(files))

        items = await asyncio.gather(*(file_to_note(file, category) for file in files))

        failed = sum(1 for item in items if item.failed)
        span.set_attribute("batch.failed", failed)
        logger.info("batch_processing_complete", count=len(items), failed=failed)
        return BatchResult(notes=[item.note for item in items], failed=failed)
