"""Per-thread conversation persistence."""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import anyio
from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from biotutor.agents.context import ConversationContext, ensure_valid_context
from biotutor.core.state.base import _make_session_maker
from biotutor.core.state.conversation import ConversationRecord


def _context_from_state(state: dict[str, Any] | None) -> ConversationContext | None:
    if state is None:
        return None
    return ensure_valid_context(state.get("conversationContext"))


def _history_from_state(state: dict[str, Any] | None) -> list[dict[str, Any]]:
    if state is None:
        return []
    messages = state.get("messages")
    return list(messages) if isinstance(messages, list) else []


class SQLContextStore:
    """
    SQLAlchemy-backed store keeping one JSON state document per thread.
    """

    def __init__(self, db_url: str) -> None:
        """
        Initialize the SQLContextStore.

        Args:
            db_url (str): SQLAlchemy database URL, e.g. `sqlite:///~/biotutor/memory.db`.
        """
        self.db_url = db_url
        self._SessionMaker: sessionmaker | None = None

    def _ensure_sqlite_dir(self) -> None:
        url = make_url(self.db_url)
        if not url.drivername.startswith("sqlite"):
            return
        if url.database not in (None, "", ":memory:"):
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """
        Provide a session, creating the engine and tables on first use.

        Yields:
            Iterator[Session]: A new database session.
        """
        if self._SessionMaker is None:
            self._ensure_sqlite_dir()
            self._SessionMaker = _make_session_maker(self.db_url)
            logger.info("Initialized conversation store at {}", self.db_url)
        session = self._SessionMaker()
        try:
            yield session
        finally:
            session.close()

    def load_state(self, thread_id: str) -> dict[str, Any] | None:
        """
        Load the raw state document of a thread.

        Args:
            thread_id (str): The thread id.

        Returns:
            dict[str, Any] | None: The stored state, or None if absent or unreadable.
        """
        with self._session_scope() as s:
            record = s.get(ConversationRecord, thread_id)
            if record is None:
                return None
            try:
                state = json.loads(record.state_json)
            except (TypeError, ValueError) as e:
                logger.error("Corrupt state for thread {}: {}", thread_id, e)
                return None
        return state if isinstance(state, dict) else None

    def save_state(self, thread_id: str, state: dict[str, Any]) -> None:
        """
        Insert or replace the state document of a thread.

        Args:
            thread_id (str): The thread id.
            state (dict[str, Any]): JSON-serializable state.
        """
        payload = json.dumps(state, ensure_ascii=False)
        with self._session_scope() as s:
            record = s.get(ConversationRecord, thread_id)
            if record is None:
                s.add(ConversationRecord(thread_id=thread_id, state_json=payload))
            else:
                record.state_json = payload
            s.commit()
        logger.debug("Saved state for thread {}", thread_id)

    def delete(self, thread_id: str) -> bool:
        """
        Delete a thread.

        Args:
            thread_id (str): The thread id.

        Returns:
            bool: True if deleted, False otherwise.
        """
        with self._session_scope() as s:
            record = s.get(ConversationRecord, thread_id)
            if record:
                s.delete(record)
                s.commit()
                return True
            return False

    async def load(self, thread_id: str) -> ConversationContext | None:
        state = await anyio.to_thread.run_sync(self.load_state, thread_id)
        return _context_from_state(state)

    async def load_history(self, thread_id: str) -> list[dict[str, Any]]:
        state = await anyio.to_thread.run_sync(self.load_state, thread_id)
        return _history_from_state(state)

    async def load_conversation(
        self, thread_id: str
    ) -> tuple[ConversationContext | None, list[dict[str, Any]]]:
        """
        Read a thread's context and message history in one query.

        Args:
            thread_id (str): The thread id.

        Returns:
            tuple[ConversationContext | None, list[dict[str, Any]]]: The validated
                context (None if the thread is unknown) and the raw messages.
        """
        state = await anyio.to_thread.run_sync(self.load_state, thread_id)
        return _context_from_state(state), _history_from_state(state)

    async def save(self, thread_id: str, state: dict[str, Any]) -> None:
        await anyio.to_thread.run_sync(self.save_state, thread_id, state)


class InMemoryContextStore:
    """
    Process-local store. States are kept as JSON text so callers never share values.
    """

    def __init__(self) -> None:
        self._states: dict[str, str] = {}

    def load_state(self, thread_id: str) -> dict[str, Any] | None:
        raw = self._states.get(thread_id)
        return json.loads(raw) if raw is not None else None

    def save_state(self, thread_id: str, state: dict[str, Any]) -> None:
        self._states[thread_id] = json.dumps(state)

    def delete(self, thread_id: str) -> bool:
        return self._states.pop(thread_id, None) is not None

    async def load(self, thread_id: str) -> ConversationContext | None:
        return _context_from_state(self.load_state(thread_id))

    async def load_history(self, thread_id: str) -> list[dict[str, Any]]:
        return _history_from_state(self.load_state(thread_id))

    async def load_conversation(
        self, thread_id: str
    ) -> tuple[ConversationContext | None, list[dict[str, Any]]]:
        state = self.load_state(thread_id)
        return _context_from_state(state), _history_from_state(state)

    async def save(self, thread_id: str, state: dict[str, Any]) -> None:
        self.save_state(thread_id, state)
