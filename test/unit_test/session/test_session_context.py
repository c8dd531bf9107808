from __future__ import annotations

from mcp_bridge.session import SessionContext, SessionState, SessionStore


def test_load_without_tokens_is_uninitialized(store: SessionStore) -> None:
    ctx = SessionContext.load(store)
    assert ctx.token is None
    assert ctx.state is SessionState.UNINITIALIZED


def test_load_prefers_fixed_token_over_cache(store: SessionStore) -> None:
    store.write("cached")
    ctx = SessionContext.load(store, "fixed")
    assert ctx.token == "fixed"
    assert ctx.state is SessionState.READY


def test_load_uses_cached_token(store: SessionStore) -> None:
    store.write("cached")
    ctx = SessionContext.load(store)
    assert ctx.token == "cached"
    assert ctx.is_ready


def test_adopt_persists_new_token_only(store: SessionStore) -> None:
    ctx = SessionContext(store)
    ctx.adopt("t1")
    assert ctx.token == "t1"
    assert store.read() == "t1"

    store.clear()
    ctx.adopt("t1")  # unchanged token is not rewritten
    assert store.read() is None

    ctx.adopt(None)
    ctx.adopt("")
    assert ctx.token == "t1"


def test_adopt_does_not_change_state(store: SessionStore) -> None:
    ctx = SessionContext(store)
    ctx.adopt("t1")
    assert ctx.state is SessionState.UNINITIALIZED


def test_drop_forgets_token_but_keeps_store(store: SessionStore) -> None:
    ctx = SessionContext.load(store, "fixed")
    store.write("fixed")
    ctx.drop()
    assert ctx.token is None
    assert ctx.state is SessionState.INVALID
    assert store.read() == "fixed"
