"""Main CLI client with REPL loop."""

import os

from .commands import (
    clear_history,
    create_note,
    delete_note,
    export_notes,
    list_notes,
    login_user,
    logout_user,
    register_user,
    save_recording,
    send_message,
    show_insights,
    show_stats,
    star_note,
    summarize_youtube,
    upload_files,
    view_history,
    view_note,
)
from .config import load_token

# Commands taking no argument
SIMPLE_COMMANDS = {
    "/register": register_user,
    "/login": login_user,
    "/logout": logout_user,
    "/note": create_note,
    "/export": export_notes,
    "/stats": show_stats,
    "/history": view_history,
    "/clearchat": clear_history,
    "/insights": show_insights,
}

# Commands taking the rest of the line as argument
ARG_COMMANDS = {
    "/notes": list_notes,
    "/view": view_note,
    "/star": star_note,
    "/delete": delete_note,
    "/upload": upload_files,
    "/record": save_recording,
    "/youtube": summarize_youtube,
}


def print_help():
    print("\nAuth Commands:")
    print("  /register - Create a new user account")
    print("  /login - Login to an existing account")
    print("  /logout - Logout")
    print("\nNote Commands:")
    print("  /note - Create a new note in your editor")
    print("  /notes [query] - List notes, optionally filtered")
    print("  /view <id> - Show a note")
    print("  /star <id> - Star or unstar a note")
    print("  /delete <id> - Delete a note")
    print("  /upload <path> [<path> ...] - Turn files into notes")
    print("  /record <seconds> - Save an audio recording note")
    print("  /export - Download all notes as JSON")
    print("  /stats - Show dashboard counters")
    print("\nAssistant Commands:")
    print("  /history - View the chat log")
    print("  /clearchat - Clear the chat log")
    print("  /youtube <url> - Summarise a YouTube video into a note")
    print("  /insights - Show insights about your notes")
    print("\nUtility Commands:")
    print("  /clear - Clear the terminal screen")
    print("  /help - Show this help")
    print("\nAnything else is sent to the assistant. Type 'exit' or 'quit' to leave.")


def main():
    """CLI client for SmartNotes API."""
    print("Welcome to SmartNotes CLI!")
    print_help()
    print("Note: Make sure the API server is running (python -m api.server)\n")

    # Check if user is already logged in
    if load_token():
        print("✓ You are already logged in.\n")
    else:
        print("⚠ You are not logged in. Please /register or /login to chat.\n")

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if user_input.lower() in ["exit", "quit"]:
            print("\nGoodbye!")
            break

        if not user_input:
            continue

        command, _, args = user_input.partition(" ")
        command = command.lower()

        if command == "/help":
            print_help()
        elif command == "/clear":
            # Clear terminal screen (cross-platform)
            os.system("cls" if os.name == "nt" else "clear")
        elif command in SIMPLE_COMMANDS:
            SIMPLE_COMMANDS[command]()
        elif command in ARG_COMMANDS:
            ARG_COMMANDS[command](args)
        elif command.startswith("/"):
            print(f"Unknown command: {command}. Type /help for a list.\n")
        else:
            send_message(user_input)


if __name__ == "__main__":
    main()
