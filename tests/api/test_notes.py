"""Tests for notes endpoints."""

import json
from datetime import UTC, datetime

import pytest

from api.database import Database, get_notes


def create(api_client, auth_headers, title, content=""):
    response = api_client.post(
        "/notes", json={"title": title, "content": content}, headers=auth_headers
    )
    assert response.status_code == 201
    return response.json()


class TestNotesEndpoints:
    """Test notes endpoints."""

    def test_create_note_infers_category_and_tags(self, api_client, auth_headers, sample_note_data):
        response = api_client.post("/notes", json=sample_note_data, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == sample_note_data["title"]
        assert data["type"] == "text"
        assert data["category"] == "Work"
        assert data["tags"] == ["meeting", "project", "important"]
        assert data["is_starred"] is False

    def test_create_note_requires_auth(self, api_client, sample_note_data):
        response = api_client.post(
            "/notes", json=sample_note_data, headers={"Authorization": "Bearer bad"}
        )

        assert response.status_code == 401

    def test_create_note_blank_title(self, api_client, auth_headers):
        response = api_client.post("/notes", json={"title": "   "}, headers=auth_headers)

        assert response.status_code == 400

    def test_list_notes_most_recent_first(self, api_client, auth_headers):
        create(api_client, auth_headers, "First")
        create(api_client, auth_headers, "Second")

        response = api_client.get("/notes", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [note["title"] for note in data["notes"]] == ["Second", "First"]
        assert data["total"] == 2
        assert data["categories"] == ["all", "Personal"]

    def test_list_notes_filters_by_query_and_category(self, api_client, auth_headers):
        create(api_client, auth_headers, "Research paper", "Read about transformers")
        create(api_client, auth_headers, "Groceries", "milk, eggs")

        by_query = api_client.get("/notes", params={"q": "TRANSFORMERS"}, headers=auth_headers)
        by_category = api_client.get(
            "/notes", params={"category": "Research"}, headers=auth_headers
        )

        assert [n["title"] for n in by_query.json()["notes"]] == ["Research paper"]
        assert [n["title"] for n in by_category.json()["notes"]] == ["Research paper"]

    def test_get_note(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Hello")

        response = api_client.get(f"/notes/{note['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == note["id"]

    def test_get_missing_note(self, api_client, auth_headers):
        response = api_client.get("/notes/does-not-exist", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Note not found"

    def test_notes_are_private_to_each_user(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Secret")
        other = api_client.post(
            "/auth/register",
            json={
                "email": "other@example.com",
                "password": "password-2",
                "full_name": "Other",
                "confirm_password": "password-2",
            },
        ).json()["access_token"]

        response = api_client.get(
            f"/notes/{note['id']}", headers={"Authorization": f"Bearer {other}"}
        )

        assert response.status_code == 404

    def test_update_note_changes_only_given_fields(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Draft", "original")

        response = api_client.patch(
            f"/notes/{note['id']}", json={"content": "edited"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Draft"
        assert data["content"] == "edited"
        assert data["updated_at"] >= note["updated_at"]

    def test_update_missing_note(self, api_client, auth_headers):
        response = api_client.patch("/notes/nope", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 404

    def test_toggle_star(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Star me")

        first = api_client.post(f"/notes/{note['id']}/star", headers=auth_headers)
        second = api_client.post(f"/notes/{note['id']}/star", headers=auth_headers)

        assert first.json()["is_starred"] is True
        assert second.json()["is_starred"] is False

    def test_move_note(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Move me")

        response = api_client.post(
            f"/notes/{note['id']}/move", json={"category": "Archive"}, headers=auth_headers
        )

        assert response.json()["category"] == "Archive"

    def test_delete_note(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Delete me")

        response = api_client.delete(f"/notes/{note['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert api_client.get(f"/notes/{note['id']}", headers=auth_headers).status_code == 404

    def test_bulk_delete_ignores_unknown_ids(self, api_client, auth_headers):
        a = create(api_client, auth_headers, "A")
        create(api_client, auth_headers, "B")

        response = api_client.post(
            "/notes/bulk-delete", json={"note_ids": [a["id"], "unknown"]}, headers=auth_headers
        )

        assert response.json() == {"deleted": 1}
        assert api_client.get("/notes", headers=auth_headers).json()["total"] == 1

    def test_delete_category_moves_notes_to_personal(self, api_client, auth_headers):
        note = create(api_client, auth_headers, "Brainstorm", "new idea")
        assert note["category"] == "Ideas"

        response = api_client.delete("/notes/categories/Ideas", headers=auth_headers)

        assert response.json() == {"deleted": 1}
        moved = api_client.get(f"/notes/{note['id']}", headers=auth_headers).json()
        assert moved["category"] == "Personal"

    def test_recording_note(self, api_client, auth_headers):
        response = api_client.post("/notes/recording", json={"duration": 125}, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "audio"
        assert data["duration"] == 125
        assert data["tags"] == ["audio", "recording"]
        assert "2:05" in data["content"]
        assert data["title"].startswith("Audio Recording ")

    def test_recording_rejects_negative_duration(self, api_client, auth_headers):
        response = api_client.post("/notes/recording", json={"duration": -1}, headers=auth_headers)

        assert response.status_code == 422

    def test_stats(self, api_client, auth_headers):
        create(api_client, auth_headers, "Meeting notes", "standup")
        create(api_client, auth_headers, "Team meeting")
        api_client.post("/notes/recording", json={"duration": 5}, headers=auth_headers)

        response = api_client.get("/notes/stats", headers=auth_headers)

        data = response.json()
        assert data["total_notes"] == 3
        assert data["audio_notes"] == 1
        assert data["video_notes"] == 0
        assert data["starred_notes"] == 0
        assert data["most_active_category"] == "Work"
        assert data["top_tags"][0] == "meeting"

    def test_export(self, api_client, auth_headers):
        create(api_client, auth_headers, "Exported")

        response = api_client.get("/notes/export", headers=auth_headers)

        assert response.status_code == 200
        today = datetime.now(UTC).date().isoformat()
        assert f'filename="smarta-notes-{today}.json"' in response.headers["content-disposition"]
        exported = json.loads(response.text)
        assert [note["title"] for note in exported] == ["Exported"]


class TestNotesPersistence:
    def test_notes_survive_restart(self, data_dir, monkeypatch, sample_user_data):
        from fastapi.testclient import TestClient

        from api import config
        from api.app import app

        monkeypatch.setattr(config, "AI_API_KEY", "")

        with TestClient(app) as client:
            token = client.post("/auth/register", json=sample_user_data).json()["access_token"]
            headers = {"Authorization": f"Bearer {token}"}
            client.post("/notes", json={"title": "Keep me"}, headers=headers)

        assert Database.data_dir is None

        with TestClient(app) as client:
            notes = client.get("/notes", headers=headers).json()["notes"]

        assert [note["title"] for note in notes] == ["Keep me"]

        user_files = [p for p in data_dir.glob("*.json") if p.name != "profiles.json"]
        assert len(user_files) == 1
        assert list(json.loads(user_files[0].read_text())) == ["smarta-notes"]

    @pytest.mark.asyncio
    async def test_save_skips_unchanged_collections(self, data_dir):
        await Database.connect()
        try:
            notes = get_notes("user-1")
            Database.save_notes("user-1")
            assert not (data_dir / "user-1.json").exists()

            notes.create_note("Fresh")
            Database.save_notes("user-1")

            assert (data_dir / "user-1.json").exists()
            assert notes.dirty is False
        finally:
            await Database.disconnect()
