"""Server entry point for running the SmartNotes API."""

import asyncio
import os
import signal

import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file before the app reads its config
load_dotenv()

APP_PATH = "api.app:app"


class Server:
    """Uvicorn server that shuts down cleanly on SIGINT and SIGTERM."""

    def __init__(self, config: uvicorn.Config):
        self.server = uvicorn.Server(config)

    def handle_exit(self, _sig, _frame):
        print("\n[INFO] Received shutdown signal, stopping server...")
        self.server.should_exit = True

    async def serve(self):
        signal.signal(signal.SIGINT, self.handle_exit)
        signal.signal(signal.SIGTERM, self.handle_exit)

        await self.server.serve()


def run_server(host: str | None = None, port: int | None = None, reload: bool = False):
    """Run the API server. Host and port default to API_HOST and API_PORT."""
    host = host or os.getenv("API_HOST", "0.0.0.0")
    port = port or int(os.getenv("API_PORT", "8000"))

    if reload:
        # Reload runs the app in a subprocess, so signal handling stays with uvicorn
        uvicorn.run(
            APP_PATH,
            host=host,
            port=port,
            reload=True,
            log_level="info",
            access_log=False,
        )
        return

    config = uvicorn.Config(APP_PATH, host=host, port=port, log_level="info", access_log=False)
    asyncio.run(Server(config).serve())


if __name__ == "__main__":
    run_server(reload=os.getenv("API_RELOAD", "true").lower() == "true")
