"""Tests for the in-memory session store."""

import asyncio
from datetime import timedelta

import pytest

from core.errors import SessionConflictError
from core.models import Turn, utcnow
from core.sessions import SessionStore


def test_get_or_create_is_idempotent(store):
    first = store.get_or_create("s1")
    assert store.get_or_create("s1") is first
    assert len(store) == 1


def test_append_is_ordered(store):
    store.get_or_create("s1")
    store.append("s1", Turn.user("hi"))
    store.append("s1", Turn.assistant("hello"))
    assert [t.role for t in store.get_or_create("s1").turns] == ["user", "assistant"]


def test_append_unknown_session_raises(store):
    with pytest.raises(KeyError):
        store.append("missing", Turn.user("hi"))


def test_history_snapshot_is_immutable(store):
    session = store.get_or_create("s1")
    store.append("s1", Turn.user("hi"))
    snapshot = session.history()
    store.append("s1", Turn.assistant("hello"))
    assert len(snapshot) == 1
    assert len(session.history()) == 2


def test_second_lease_conflicts():
    store = SessionStore()
    lease = store.lease("s1")
    with pytest.raises(SessionConflictError) as info:
        store.lease("s1")
    assert info.value.retryable
    lease.release()
    store.lease("s1").release()


def test_lease_release_is_idempotent(store):
    with store.lease("s1") as lease:
        assert store.is_leased("s1")
    lease.release()
    assert not store.is_leased("s1")


def test_evict_idle_removes_only_stale_sessions():
    store = SessionStore(idle_timeout=60)
    stale = store.get_or_create("stale")
    store.get_or_create("fresh")
    stale.last_active_at = utcnow() - timedelta(seconds=120)

    assert store.evict_idle() == ["stale"]
    assert "stale" not in store
    assert "fresh" in store


def test_evict_idle_skips_leased_sessions():
    store = SessionStore(idle_timeout=60)
    store.get_or_create("busy")
    lease = store.lease("busy")

    assert store.evict_idle(now=utcnow() + timedelta(hours=1)) == []
    assert "busy" in store

    lease.release()
    assert store.evict_idle(now=utcnow() + timedelta(hours=1)) == ["busy"]


@pytest.mark.asyncio
async def test_sweeper_evicts_in_background():
    store = SessionStore(idle_timeout=60)
    session = store.get_or_create("old")
    session.last_active_at = utcnow() - timedelta(hours=1)

    store.start_sweeper(0.01)
    for _ in range(50):
        if "old" not in store:
            break
        await asyncio.sleep(0.01)
    assert "old" not in store
    await store.close()
