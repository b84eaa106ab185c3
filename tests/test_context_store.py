from pathlib import Path

import pytest

from biotutor.agents.context import ConversationContext, ensure_valid_context
from biotutor.core.storage.context_store import InMemoryContextStore, SQLContextStore


def _state(ctx: ConversationContext) -> dict:
    return {
        "conversationContext": ctx.to_dict(),
        "messages": [{"role": "user", "content": "What is osmosis?"}],
        "responseType": "contentCollector",
        "threadId": "t1",
    }


@pytest.fixture(params=["sql", "memory"])
def store(request: pytest.FixtureRequest):
    if request.param == "sql":
        return SQLContextStore("sqlite://")
    return InMemoryContextStore()


@pytest.mark.anyio
async def test_round_trip_is_field_wise_equal(store) -> None:
    """
    A saved context reloads equal to its validated original.

    Args:
        store: The store under test.
    """
    ctx = ensure_valid_context(
        {"recentTopics": ["osmosis", "diffusion"], "keyEntities": {"water": "solvent"}, "lastTopic": "osmosis"}
    )
    await store.save("t1", _state(ctx))

    loaded = await store.load("t1")

    assert loaded == ctx
    assert await store.load_history("t1") == [{"role": "user", "content": "What is osmosis?"}]


@pytest.mark.anyio
async def test_missing_thread(store) -> None:
    """
    Unknown threads load as None with an empty history.

    Args:
        store: The store under test.
    """
    assert await store.load("missing") is None
    assert await store.load_history("missing") == []


@pytest.mark.anyio
async def test_save_overwrites_and_delete_removes(store) -> None:
    """
    Saving again replaces the state and deleting removes the thread.

    Args:
        store: The store under test.
    """
    await store.save("t1", _state(ConversationContext(("a",), {}, "a")))
    await store.save("t1", _state(ConversationContext(("b", "a"), {}, "b")))
    assert (await store.load("t1")).last_topic == "b"

    assert store.delete("t1") is True
    assert store.delete("t1") is False
    assert await store.load("t1") is None


@pytest.mark.anyio
async def test_loaded_context_is_validated(store) -> None:
    """
    Malformed stored contexts are normalized on load.

    Args:
        store: The store under test.
    """
    await store.save("t1", {"conversationContext": {"recentTopics": "oops", "lastTopic": 3}})
    assert await store.load("t1") == ConversationContext()


def test_sql_store_creates_sqlite_directory(tmp_path: Path) -> None:
    """
    A file-backed SQLite store creates its parent directory on first use.

    Args:
        tmp_path (Path): The temporary path fixture.
    """
    db_file = tmp_path / "nested" / "memory.db"
    store = SQLContextStore(f"sqlite:///{db_file.as_posix()}")
    store.save_state("t1", {"threadId": "t1"})
    assert db_file.exists()
    assert store.load_state("t1") == {"threadId": "t1"}


def test_in_memory_store_returns_copies() -> None:
    """
    Mutating a loaded state does not change the stored one.
    """
    store = InMemoryContextStore()
    store.save_state("t1", {"messages": []})
    store.load_state("t1")["messages"].append("x")
    assert store.load_state("t1") == {"messages": []}


@pytest.mark.anyio
async def test_load_conversation_returns_context_and_history(store) -> None:
    """
    One call yields both the validated context and the raw messages.

    Args:
        store: The store under test.
    """
    ctx = ConversationContext(("osmosis",), {"water": "solvent"}, "osmosis")
    await store.save("t1", _state(ctx))

    loaded, history = await store.load_conversation("t1")

    assert loaded == ctx
    assert history == [{"role": "user", "content": "What is osmosis?"}]
    assert await store.load_conversation("missing") == (None, [])
