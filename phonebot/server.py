"""
HTTP surface of the storefront assistant.

    POST /chatbot   one chat turn
    GET  /health    liveness probe
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from phonebot.config import settings
from phonebot.conversation.controller import DialogueController, build_controller
from phonebot.schemas.chat_schema import ChatRequest

logger = logging.getLogger(__name__)

SESSION_REQUIRED = "Session ID is required"
SESSION_HEADER = "session-id"
SESSION_PARAM = "sessionId"


def resolve_session_id(
    header_value: Optional[str], query_value: Optional[str], body_value: Optional[str]
) -> Optional[str]:
    """Header first, then query string, then body. Blank values are skipped."""
    for value in (header_value, query_value, body_value):
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


async def _read_json(request: Request) -> Any:
    """Raw request body as JSON, or an empty dict when it is not JSON."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}


def create_app(controller: Optional[DialogueController] = None) -> FastAPI:
    """Build the FastAPI app. Without a controller one is wired from settings on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "controller", None) is None
        if owned:
            app.state.controller = build_controller(settings)
            logger.info("Dialogue controller ready")
        yield
        if owned:
            await app.state.controller.aclose()
            logger.info("Dialogue controller closed")

    app = FastAPI(title="Phone Store Chatbot", lifespan=lifespan)
    app.state.controller = controller

    @app.post("/chatbot")
    async def chatbot(request: Request):
        body = await _read_json(request)
        body_session = body.get(SESSION_PARAM) if isinstance(body, dict) else None
        session_id = resolve_session_id(
            request.headers.get(SESSION_HEADER),
            request.query_params.get(SESSION_PARAM),
            body_session,
        )
        if session_id is None:
            return JSONResponse(status_code=400, content={"error": SESSION_REQUIRED})

        try:
            payload = ChatRequest.model_validate(body)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors()) from exc

        active: DialogueController = request.app.state.controller
        reply = await active.handle_message(session_id, payload.message)
        return reply.to_response().model_dump(by_alias=True, exclude_none=True)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app
