"""Tests for the in-process session store."""

import asyncio

import pytest

from phonebot.conversation.context import ConversationContext
from phonebot.conversation.session_store import SessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestGetOrCreate:
    def test_creates_empty_context(self, store):
        context = store.get_or_create("web-1")
        assert context.last_product is None
        assert len(context.history) == 0
        assert "web-1" in store

    def test_returns_same_context(self, store):
        assert store.get_or_create("web-1") is store.get_or_create("web-1")

    def test_sessions_are_isolated(self, store):
        store.get_or_create("web-1").last_brand = "Samsung"
        assert store.get_or_create("web-2").last_brand is None

    @pytest.mark.parametrize("session_id", ["", "   "])
    def test_blank_session_id_rejected(self, store, session_id):
        with pytest.raises(ValueError, match="Session ID is required"):
            store.get_or_create(session_id)

    def test_get_does_not_create(self, store):
        assert store.get("web-404") is None
        assert len(store) == 0


class TestCommit:
    def test_commit_replaces_context(self, store):
        original = store.get_or_create("web-1")
        working = original.snapshot()
        working.last_brand = "Oppo"
        assert original.last_brand is None

        store.commit("web-1", working)
        assert store.get("web-1") is working


class TestEviction:
    def test_least_recently_used_evicted_over_cap(self):
        store = SessionStore(max_sessions=2, idle_ttl_sec=3600)
        store.get_or_create("a")
        store.get_or_create("b")
        store.get_or_create("a")
        store.get_or_create("c")
        assert "b" not in store
        assert "a" in store and "c" in store

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        store = SessionStore(max_sessions=10, idle_ttl_sec=60, clock=clock)
        store.get_or_create("old")
        clock.now = 61
        store.get_or_create("new")
        assert "old" not in store
        assert "new" in store

    @pytest.mark.asyncio
    async def test_locked_session_is_never_evicted(self):
        clock = FakeClock()
        store = SessionStore(max_sessions=1, idle_ttl_sec=60, clock=clock)
        async with store.lock("busy"):
            store.get_or_create("busy")
            clock.now = 120
            store.get_or_create("other")
            assert "busy" in store


class TestLocking:
    def test_same_lock_per_session(self, store):
        assert store.lock("web-1") is store.lock("web-1")

    def test_distinct_locks_across_sessions(self, store):
        assert store.lock("web-1") is not store.lock("web-2")

    @pytest.mark.asyncio
    async def test_lock_serializes_turns(self, store):
        order: list[str] = []

        async def turn(name: str) -> None:
            async with store.lock("web-1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(turn("first"), turn("second"))
        assert order == ["first-start", "first-end", "second-start", "second-end"]


class TestContextSnapshot:
    def test_snapshot_is_independent(self):
        context = ConversationContext()
        copy = context.snapshot()
        copy.consultation.fill("chụp ảnh")
        copy.record_turn("hoi_gia", {}, "giá", "trả lời")
        assert context.consultation.is_empty()
        assert len(context.history) == 0
