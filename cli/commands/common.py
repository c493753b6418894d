"""Error reporting shared by command handlers."""

import httpx

from ..config import delete_token


def error_detail(response: httpx.Response, default: str = "Unknown error") -> str:
    """Human-readable detail from an API error response."""
    try:
        detail = response.json().get("detail", default)
    except ValueError:
        return default

    if isinstance(detail, dict) and "errors" in detail:
        return "; ".join(f"{field}: {message}" for field, message in detail["errors"].items())
    return str(detail)


def report_http_error(e: httpx.HTTPError, action: str, not_found: str | None = None):
    """Print a failed request the way every command reports it."""
    if isinstance(e, httpx.ConnectError):
        print("Error: Could not connect to API server.")
        print("Please start the server with: python -m api.server\n")
    elif isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        if status == 401:
            print("Error: Authentication failed. Please /login again.\n")
            delete_token()
        elif status == 403:
            print("Error: Your account has been disabled.\n")
            delete_token()
        elif status == 404 and not_found:
            print(f"Error: {not_found}\n")
        else:
            print(f"Error: Failed to {action}: {error_detail(e.response)}\n")
    else:
        print(f"Error: API request failed: {e}\n")
