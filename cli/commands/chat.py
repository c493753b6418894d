"""Chat and AI command handlers."""

import httpx

from ..config import API_URL, auth_headers, load_token
from .common import report_http_error


def send_message(message: str):
    """Send a chat message and print the assistant's reply."""
    token = load_token()
    if not token:
        print("Error: You must be logged in to chat. Use /register or /login.\n")
        return

    try:
        response = httpx.post(
            f"{API_URL}/chat",
            json={"message": message},
            headers=auth_headers(token),
            timeout=120.0,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "send message")
        return

    print(f"Assistant: {data['ai_message']['content']}\n")
    if data.get("error"):
        print(f"[{data['error']}]\n")


def view_history():
    """View the chat log."""
    token = load_token()
    if not token:
        print("Error: You must be logged in. Use /register or /login.\n")
        return

    try:
        response = httpx.get(f"{API_URL}/chat", headers=auth_headers(token), timeout=10.0)
        response.raise_for_status()
        messages = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "retrieve history")
        return

    if not messages:
        print("\nNo messages yet.\n")
        return

    print("\n=== Conversation History ===")
    for msg in messages:
        role = "You" if msg["type"] == "user" else "Assistant"
        timestamp = msg["timestamp"][:19]
        print(f"\n[{timestamp}] {role}:")
        print(msg["content"])
    print()


def clear_history():
    """Clear the chat log."""
    token = load_token()
    if not token:
        print("Error: You must be logged in. Use /register or /login.\n")
        return

    try:
        response = httpx.delete(f"{API_URL}/chat", headers=auth_headers(token), timeout=10.0)
        response.raise_for_status()
        print("\n✓ Chat history cleared.\n")
    except httpx.HTTPError as e:
        report_http_error(e, "clear history")


def summarize_youtube(url: str):
    """Summarise a YouTube video and save the summary as a note."""
    url = url.strip()
    if not url:
        print("Error: URL is required. Usage: /youtube <url>\n")
        return

    token = load_token()
    if not token:
        print("Error: You must be logged in. Use /register or /login.\n")
        return

    try:
        response = httpx.post(
            f"{API_URL}/ai/youtube",
            json={"url": url, "save_as_note": True},
            headers=auth_headers(token),
            timeout=120.0,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "summarize video")
        return

    summary = data["summary"]
    print(f"\n=== {summary['title']} ===\n")
    print(summary["content"])
    if data.get("note"):
        print(f"\n✓ Saved as note {data['note']['id']}\n")


def show_insights():
    """Print AI insights about the user's notes."""
    token = load_token()
    if not token:
        print("Error: You must be logged in. Use /register or /login.\n")
        return

    try:
        response = httpx.get(f"{API_URL}/ai/insights", headers=auth_headers(token), timeout=120.0)
        response.raise_for_status()
        insights = response.json()
    except httpx.HTTPError as e:
        report_http_error(e, "load insights")
        return

    print("\n=== Insights ===")
    for insight in insights:
        print(f"\n[{insight['type']}] {insight['content']}")
    print()
