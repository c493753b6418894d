"""Authentication command handlers."""

from getpass import getpass

import httpx

from ..config import API_URL, delete_token, save_token
from .common import error_detail


def _submit(path: str, payload: dict, action: str) -> dict | None:
    try:
        response = httpx.post(f"{API_URL}{path}", json=payload, timeout=10.0)
        response.raise_for_status()
    except httpx.ConnectError:
        print("Error: Could not connect to API server.")
        print("Please start the server with: python -m api.server\n")
        return None
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 401:
            print("Error: Invalid email or password.\n")
        elif status == 403:
            print("Error: Your account has been disabled.\n")
        else:
            print(f"Error: {action} failed: {error_detail(e.response)}\n")
        return None
    except httpx.HTTPError as e:
        print(f"Error: API request failed: {e}\n")
        return None

    data = response.json()
    save_token(data["access_token"])
    return data["user"]


def register_user():
    """Handle user registration and auto-login."""
    print("\n=== User Registration ===")
    payload = {
        "full_name": input("Full name: ").strip(),
        "email": input("Email: ").strip(),
        "password": getpass("Password: "),
        "confirm_password": getpass("Confirm password: "),
    }

    user = _submit("/auth/register", payload, "Registration")
    if user:
        print("\n✓ Registration successful! You are now logged in.")
        print(f"  User ID: {user['id']}")
        print(f"  Email: {user['email']}")
        print(f"  Name: {user['full_name']}\n")


def login_user():
    """Handle user login."""
    print("\n=== User Login ===")
    payload = {"email": input("Email: ").strip(), "password": getpass("Password: ")}

    user = _submit("/auth/login", payload, "Login")
    if user:
        print("\n✓ Login successful!")
        print(f"  Welcome back, {user['full_name']}!\n")


def logout_user():
    """Handle user logout."""
    delete_token()
    print("\n✓ Logged out successfully.\n")
