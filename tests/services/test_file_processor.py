"""Unit tests for file classification and note synthesis."""

import base64
import io

import pytest
from PIL import Image

from api.services import file_processor
from api.services.file_processor import (
    CSV_TRUNCATION_MARKER,
    HANDLERS,
    LARGE_FILE_BYTES,
    SMALL_FILE_BYTES,
    SUPPORTED_TYPES,
    VIDEO_THUMBNAIL,
    FileCategory,
    ProcessedFile,
    UploadedFile,
    classify,
    create_error_note,
    create_note_from_processed_file,
    generate_image_thumbnail,
    generate_smart_tags,
    generate_summary,
    get_file_extension,
    note_kind_for,
    process_batch,
    process_file,
)


def png_bytes(size=(300, 150), color=(10, 120, 200)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


class ExplodingFile:
    """Handle whose read always fails."""

    def __init__(self, name="broken.txt"):
        self.name = name
        self.size = 10
        self.mime_type = "text/plain"

    async def read(self) -> bytes:
        raise OSError("disk on fire")


class TestClassification:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("notes.TXT", ".txt"),
            ("archive.tar.gz", ".gz"),
            ("Makefile", ""),
            (".env", ".env"),
        ],
    )
    def test_get_file_extension(self, filename, expected):
        assert get_file_extension(filename) == expected

    def test_every_supported_suffix_maps_to_its_category(self):
        for category, suffixes in SUPPORTED_TYPES.items():
            for suffix in suffixes:
                assert classify(f"file{suffix}") is category
                assert classify(f"FILE{suffix.upper()}") is category

    @pytest.mark.parametrize("filename", ["Makefile", "data.bin", "weird.", ""])
    def test_unknown_suffixes(self, filename):
        assert classify(filename) is FileCategory.UNKNOWN

    def test_every_category_has_a_handler(self):
        assert set(HANDLERS) == set(FileCategory)

    @pytest.mark.parametrize(
        "category,kind",
        [
            (FileCategory.TEXT, "text"),
            (FileCategory.CODE, "text"),
            (FileCategory.IMAGE, "image"),
            (FileCategory.AUDIO, "audio"),
            (FileCategory.VIDEO, "video"),
            (FileCategory.DOCUMENT, "document"),
            (FileCategory.SPREADSHEET, "document"),
            (FileCategory.PRESENTATION, "document"),
            (FileCategory.ARCHIVE, "document"),
            (FileCategory.UNKNOWN, "document"),
            ("hologram", "document"),
        ],
    )
    def test_note_kind_for(self, category, kind):
        assert note_kind_for(category) == kind


@pytest.mark.asyncio
class TestProcessFile:
    async def test_text_file(self):
        processed = await process_file(UploadedFile("hello.md", b"# Hello"))

        assert processed.type is FileCategory.TEXT
        assert processed.content == "# Hello"
        assert processed.size == 7
        assert processed.metadata["original_name"] == "hello.md"

    async def test_invalid_utf8_is_reported_not_raised(self):
        processed = await process_file(UploadedFile("bad.txt", b"\xff\xfe\xfd"))

        assert processed.content.startswith("Error processing file bad.txt: ")
        assert "error" in processed.metadata

    async def test_read_failure_is_reported_not_raised(self):
        processed = await process_file(ExplodingFile())

        assert "disk on fire" in processed.content
        assert "error" in processed.metadata

    async def test_csv_preview_truncates_after_ten_lines(self):
        rows = "\n".join(f"{i},value{i}" for i in range(20))

        processed = await process_file(UploadedFile("data.csv", rows.encode()))

        lines = processed.content.splitlines()
        assert "9,value9" in lines
        assert "10,value10" not in lines
        assert lines[-1] == CSV_TRUNCATION_MARKER

    async def test_short_csv_is_not_marked(self):
        rows = "\n".join(f"{i},v" for i in range(5))

        processed = await process_file(UploadedFile("data.csv", rows.encode()))

        assert "4,v" in processed.content
        assert CSV_TRUNCATION_MARKER not in processed.content

    async def test_code_file_reports_language_and_lines(self):
        source = b"def f():\n    return 1\n"

        processed = await process_file(UploadedFile("tool.py", source))

        assert "Language: Python" in processed.content
        assert "Lines: 3" in processed.content
        assert processed.content.endswith(source.decode())

    async def test_pdf_placeholder_estimates_pages(self):
        processed = await process_file(UploadedFile("paper.pdf", b"%PDF" + b"0" * 120_000))

        assert "Estimated pages: 3" in processed.content

    async def test_audio_duration_estimate(self):
        processed = await process_file(UploadedFile("talk.mp3", b"\0" * 48_000))

        assert processed.metadata["duration"] == 3

    async def test_video_has_fixed_thumbnail(self):
        processed = await process_file(UploadedFile("clip.mp4", b"\0" * 250_000))

        assert processed.metadata["duration"] == 2
        assert processed.metadata["thumbnail"] == VIDEO_THUMBNAIL

    async def test_unknown_binary_file(self):
        processed = await process_file(UploadedFile("blob.bin", b"\x80\x81\x82"))

        assert processed.type is FileCategory.UNKNOWN
        assert processed.content.startswith("[Binary File: blob.bin]")

    async def test_unknown_text_file(self):
        processed = await process_file(UploadedFile("LICENSE", b"MIT"))

        assert processed.content == "[Generic File: LICENSE]\n\nMIT"

    async def test_image_gets_thumbnail(self):
        processed = await process_file(UploadedFile("pic.png", png_bytes(), "image/png"))

        assert processed.metadata["thumbnail"].startswith("data:image/png;base64,")

    async def test_corrupt_image_still_processes(self):
        processed = await process_file(UploadedFile("pic.jpg", b"not an image", "image/jpeg"))

        assert "error" not in processed.metadata
        assert "thumbnail" not in processed.metadata


class TestThumbnail:
    def test_fits_and_centres_on_square_canvas(self):
        uri = generate_image_thumbnail(png_bytes(size=(300, 150)))

        data = base64.b64decode(uri.split(",", 1)[1])
        with Image.open(io.BytesIO(data)) as thumb:
            assert thumb.size == (150, 150)
            assert thumb.mode == "RGBA"
            # letterboxed: transparent above, opaque in the middle
            assert thumb.getpixel((75, 10))[3] == 0
            assert thumb.getpixel((75, 75))[3] == 255


class TestNoteSynthesis:
    def test_summary_keeps_short_content_whole(self):
        content = "x" * 200

        assert generate_summary(content) == content

    def test_summary_truncates_long_content(self):
        content = "y" * 201

        assert generate_summary(content) == "y" * 150 + "..."

    def test_size_and_content_tags(self):
        small = ProcessedFile("a.txt", FileCategory.TEXT, 10, "Meeting agenda for the project")
        large = ProcessedFile("b.mp4", FileCategory.VIDEO, LARGE_FILE_BYTES + 1, "Research talk")
        medium = ProcessedFile("c.txt", FileCategory.TEXT, 5000, "plain")

        assert generate_smart_tags(small) == ["small-file", "meeting", "project"]
        assert generate_smart_tags(large) == ["large-file", "research"]
        assert generate_smart_tags(medium) == []

    @pytest.mark.parametrize("size", [SMALL_FILE_BYTES, LARGE_FILE_BYTES])
    def test_size_tag_boundaries_are_exclusive(self, size):
        processed = ProcessedFile("edge.bin", FileCategory.UNKNOWN, size, "plain")

        assert generate_smart_tags(processed) == []

    def test_note_from_processed_media_file(self):
        processed = ProcessedFile(
            "talk.mp3",
            FileCategory.AUDIO,
            32_000,
            "transcript text",
            {"duration": 2},
        )

        note = create_note_from_processed_file(processed, "Lectures")

        assert note.id.startswith("file_")
        assert note.title == "talk.mp3"
        assert note.type == "audio"
        assert note.category == "Lectures"
        assert note.tags[:2] == ["audio", "uploaded"]
        assert note.transcription == "transcript text"
        assert note.duration == 2
        assert note.is_starred is False

    def test_note_from_text_file_has_no_transcription(self):
        processed = ProcessedFile("a.txt", FileCategory.TEXT, 3, "abc")

        note = create_note_from_processed_file(processed)

        assert note.category == "Uploads"
        assert note.transcription is None
        assert note.summary == "abc"


@pytest.mark.asyncio
class TestProcessBatch:
    async def test_one_note_per_file_in_input_order(self):
        files = [
            UploadedFile("one.txt", b"first"),
            ExplodingFile("two.txt"),
            UploadedFile("three.json", b"{}"),
        ]

        result = await process_batch(files)

        assert [note.title for note in result.notes] == ["one.txt", "two.txt", "three.json"]
        assert result.failed == 1
        assert "two.txt" in result.notes[1].content
        assert len({note.id for note in result.notes}) == 3

    async def test_unexpected_failure_becomes_error_note(self, monkeypatch):
        real_create = file_processor.create_note_from_processed_file

        def create(processed, category="Uploads"):
            if processed.name == "clip.mp4":
                raise RuntimeError("synthesis exploded")
            return real_create(processed, category)

        monkeypatch.setattr(file_processor, "create_note_from_processed_file", create)
        files = [
            UploadedFile("one.txt", b"first", "text/plain"),
            UploadedFile("clip.mp4", b"\0" * 10, "video/mp4"),
            UploadedFile("three.txt", b"third", "text/plain"),
        ]

        result = await process_batch(files, category="Media")

        assert [note.title for note in result.notes] == ["one.txt", "clip.mp4", "three.txt"]
        assert result.failed == 1
        error_note = result.notes[1]
        assert error_note.content.startswith("File upload failed: clip.mp4\n")
        assert "Error: synthesis exploded" in error_note.content
        assert error_note.tags == ["uploaded", "error", "video"]
        assert error_note.type == "video"
        assert error_note.category == "Media"
        assert error_note.summary == "Failed to process: clip.mp4"

    async def test_error_note_kind_defaults_to_document(self):
        note = create_error_note(
            UploadedFile("data.bin", b"x", "application/zip"), ValueError(), "Uploads"
        )

        assert note.type == "document"
        assert note.tags == ["uploaded", "error", "application"]
        assert "Error: ValueError" in note.content

    async def test_empty_batch(self):
        result = await process_batch([])

        assert result.notes == []
        assert result.failed == 0
