"""Tests for chat endpoints."""

from api.routes.chat import build_notes_context, history_turns
from api.services.fallbacks import READING_DEFAULT


class TestChatEndpoints:
    """Test chat endpoints with no AI credentials configured."""

    def test_chat_answers_with_fallback(self, api_client, auth_headers):
        response = api_client.post("/chat", json={"message": "Hello there"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user_message"]["type"] == "user"
        assert data["user_message"]["content"] == "Hello there"
        assert data["ai_message"]["type"] == "ai"
        assert data["ai_message"]["content"] == READING_DEFAULT
        # No key is not an outage, so no error is reported
        assert data["error"] is None

    def test_chat_requires_message(self, api_client, auth_headers):
        response = api_client.post("/chat", json={"message": ""}, headers=auth_headers)

        assert response.status_code == 422

    def test_chat_requires_auth(self, api_client):
        response = api_client.post(
            "/chat", json={"message": "Hi"}, headers={"Authorization": "Bearer bad"}
        )

        assert response.status_code == 401

    def test_history_lists_both_sides_in_order(self, api_client, auth_headers):
        api_client.post("/chat", json={"message": "one"}, headers=auth_headers)
        api_client.post("/chat", json={"message": "two"}, headers=auth_headers)

        messages = api_client.get("/chat", headers=auth_headers).json()

        assert [m["type"] for m in messages] == ["user", "ai", "user", "ai"]
        assert [messages[0]["content"], messages[2]["content"]] == ["one", "two"]
        assert len({m["id"] for m in messages}) == 4

    def test_clear_history(self, api_client, auth_headers):
        api_client.post("/chat", json={"message": "one"}, headers=auth_headers)

        response = api_client.delete("/chat", headers=auth_headers)

        assert response.status_code == 204
        assert api_client.get("/chat", headers=auth_headers).json() == []


class TestChatHelpers:
    def test_history_keeps_last_five_messages(self):
        from datetime import UTC, datetime

        from api.models import ChatMessage

        messages = [
            ChatMessage(
                id=str(i),
                type="user" if i % 2 == 0 else "ai",
                content=f"m{i}",
                timestamp=datetime.now(UTC),
            )
            for i in range(8)
        ]

        turns = history_turns(messages)

        assert [turn.content for turn in turns] == ["m3", "m4", "m5", "m6", "m7"]
        assert turns[0].role == "assistant"
        assert turns[1].role == "user"

    def test_notes_context_uses_first_ten_notes(self):
        from api.models import Note

        notes = [
            Note(id=str(i), title=f"Note {i}", content="x" * 300, type="text", category="Work")
            for i in range(12)
        ]

        context = build_notes_context(notes)

        assert context.startswith("The user has 12 notes.")
        assert "Note 9 (Work)" in context
        assert "Note 10" not in context
        assert "x" * 201 not in context
