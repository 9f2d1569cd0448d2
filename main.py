"""
Phone store chatbot entry point.

Serves the chat endpoint over HTTP, or runs the same dialogue controller
in an interactive terminal session.

Usage:
    HTTP server:  python main.py
    Console mode: python main.py console
"""

import logging
import sys

from phonebot.config import settings

logger = logging.getLogger(__name__)


def _run_server_mode() -> None:
    """Serve POST /chatbot with uvicorn (requires Wit.ai and Gemini keys)."""
    import uvicorn

    from phonebot.server import create_app

    logger.info("Starting chatbot on %s:%d", settings.server.host, settings.server.port)
    uvicorn.run(
        create_app(),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Chat with the bot in the terminal."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server_mode()
