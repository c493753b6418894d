"""Tests for file upload and recording endpoints."""

import io

from PIL import Image


def png_bytes(size=(300, 200)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestUploadEndpoint:
    def test_one_note_per_file(self, api_client, auth_headers):
        files = [
            ("files", ("readme.txt", b"A todo list for the meeting", "text/plain")),
            ("files", ("photo.png", png_bytes(), "image/png")),
            ("files", ("main.py", b"print('hi')\n", "text/x-python")),
        ]

        response = api_client.post("/notes/upload", files=files, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["processed"] == 3
        assert data["failed"] == 0
        assert [note["title"] for note in data["notes"]] == ["readme.txt", "photo.png", "main.py"]
        assert [note["type"] for note in data["notes"]] == ["text", "image", "text"]
        assert all(note["category"] == "Uploads" for note in data["notes"])
        assert data["notes"][1]["file_url"].startswith("data:image/png;base64,")

        listed = api_client.get("/notes", headers=auth_headers).json()
        assert listed["total"] == 3

    def test_undecodable_text_becomes_error_note(self, api_client, auth_headers):
        files = [
            ("files", ("good.md", b"# Heading", "text/markdown")),
            ("files", ("bad.txt", b"\xff\xfe\xfa", "text/plain")),
        ]

        response = api_client.post("/notes/upload", files=files, headers=auth_headers)

        data = response.json()
        assert data["processed"] == 2
        assert data["failed"] == 1
        bad = data["notes"][1]
        assert bad["content"].startswith("Error processing file bad.txt")

    def test_custom_category(self, api_client, auth_headers):
        response = api_client.post(
            "/notes/upload",
            files=[("files", ("data.csv", b"a,b\n1,2\n", "text/csv"))],
            data={"category": "Datasets"},
            headers=auth_headers,
        )

        note = response.json()["notes"][0]
        assert note["category"] == "Datasets"
        assert "spreadsheet" in note["tags"]
