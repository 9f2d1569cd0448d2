from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from phonebot.conversation.context import ConversationContext

logger = logging.getLogger(__name__)


class SessionStore:
    """In-process conversation contexts keyed by session id.

    Contexts are created lazily, kept in least-recently-used order and
    dropped when the store exceeds ``max_sessions`` or a session has been
    idle longer than ``idle_ttl_sec``. Each session has its own asyncio
    lock; the controller holds it for a whole turn so two requests for the
    same session run one after the other.
    """

    def __init__(
        self,
        max_sessions: int,
        idle_ttl_sec: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_sessions = max_sessions
        self._idle_ttl_sec = idle_ttl_sec
        self._clock = clock
        self._contexts: OrderedDict[str, ConversationContext] = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._contexts

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock serializing turns for ``session_id``."""
        _require_session_id(session_id)
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def get_or_create(self, session_id: str) -> ConversationContext:
        """Return the session's context, allocating an empty one on first access."""
        _require_session_id(session_id)
        self._touch(session_id)
        context = self._contexts.get(session_id)
        if context is None:
            context = ConversationContext()
            self._contexts[session_id] = context
            logger.debug("Created context for session %s", session_id)
        self._contexts.move_to_end(session_id)
        self._prune()
        return context

    def get(self, session_id: str) -> Optional[ConversationContext]:
        return self._contexts.get(session_id)

    def commit(self, session_id: str, context: ConversationContext) -> None:
        """Store the context produced by a completed turn."""
        _require_session_id(session_id)
        self._contexts[session_id] = context
        self._contexts.move_to_end(session_id)
        self._touch(session_id)
        self._prune()

    def _touch(self, session_id: str) -> None:
        self._last_seen[session_id] = self._clock()

    def _prune(self) -> int:
        """Drop idle sessions, then the least recently used ones above the cap."""
        now = self._clock()
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if now - seen > self._idle_ttl_sec and not self._is_busy(session_id)
        ]
        for session_id in expired:
            self._evict(session_id)

        overflow = len(self._contexts) - self._max_sessions
        removed = len(expired)
        if overflow > 0:
            candidates = [sid for sid in self._contexts if not self._is_busy(sid)]
            for session_id in candidates[:overflow]:
                self._evict(session_id)
                removed += 1
        if removed:
            logger.info("Evicted %d session(s); %d active", removed, len(self._contexts))
        return removed

    def _is_busy(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def _evict(self, session_id: str) -> None:
        self._contexts.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        self._locks.pop(session_id, None)


def _require_session_id(session_id: str) -> None:
    if not session_id or not str(session_id).strip():
        raise ValueError("Session ID is required")
