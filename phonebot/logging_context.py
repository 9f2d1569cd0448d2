"""Session ID logging context for following one chat through the logs.

The controller sets the session ID at the start of each turn. The handler
built by ``session_log_handler`` stamps it onto every record, so the format
string can print ``%(session_id)s`` for the resolver, catalog, composer and
third-party libraries alike.

Usage:
    from phonebot.logging_context import set_session_id, session_log_handler

    logging.basicConfig(handlers=[session_log_handler(LOG_FORMAT)])
    set_session_id("web-abc123")
    logger.info("Processing message")  # "... [web-abc123] INFO: Processing message"
"""

import logging
from contextvars import ContextVar
from typing import Optional

NO_SESSION = "-"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    """Set the session ID for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Adds ``session_id`` to records that do not carry one yet."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def session_log_handler(fmt: str, datefmt: Optional[str] = None) -> logging.Handler:
    """Stream handler whose records always have ``session_id`` set."""
    handler = logging.StreamHandler()
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def get_session_logger(name: str) -> logging.Logger:
    """Module logger that also stamps ``session_id`` for handlers added later."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
