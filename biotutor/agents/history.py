"""Message history normalization and filtering."""

import json
import uuid
from collections.abc import Mapping
from typing import Any, Iterable

from loguru import logger

from biotutor.agents.types import Message

_USER_ROLES = {"user", "human"}
_AI_ROLES = {"ai", "assistant"}


def _to_message(raw: Any) -> Message:
    """
    Coerce one raw history entry into a Message.

    Args:
        raw (Any): A Message, a mapping, or a plain string.

    Returns:
        Message: The normalized message.
    """
    if isinstance(raw, Message):
        return raw
    if isinstance(raw, str):
        return Message(role="ai", content=raw)
    if isinstance(raw, Mapping):
        role = str(raw.get("role") or "")
        if role in _USER_ROLES or raw.get("type") == "human":
            role = "user"
        else:
            role = "ai"
        content = raw.get("content")
        if not isinstance(content, str):
            content = json.dumps(dict(raw), default=str)
        metadata = raw.get("metadata")
        kwargs: dict[str, Any] = {
            "role": role,
            "content": content,
            "metadata": dict(metadata) if isinstance(metadata, Mapping) else {},
        }
        if isinstance(raw.get("timestamp"), str):
            kwargs["timestamp"] = raw["timestamp"]
        return Message(**kwargs)
    return Message(role="ai", content=str(raw))


def create_message_history(messages: Any) -> list[Message]:
    """
    Build a well-formed message list from stored or incoming history.

    Args:
        messages (Any): An iterable of messages, mappings, or strings.

    Returns:
        list[Message]: Normalized history; non-sequence input yields an empty list.
    """
    if not isinstance(messages, (list, tuple)):
        if messages is not None:
            logger.warning("Message history is not a list; starting empty history")
        return []
    return [_to_message(m) for m in messages]


def filter_messages_by_count(
    messages: list[Message], count: int = 10
) -> list[Message]:
    """
    Keep only the most recent messages.

    Args:
        messages (list[Message]): The message history.
        count (int, optional): Maximum number of messages to keep. Defaults to 10.

    Returns:
        list[Message]: The most recent `count` messages.
    """
    if len(messages) <= count:
        return list(messages)
    return list(messages[-count:])


def filter_messages_by_tokens(
    messages: list[Message], max_tokens: int = 4000, tokens_per_message: int = 100
) -> list[Message]:
    """
    Keep as many recent messages as fit within an approximate token budget.

    Token cost is estimated as one token per four characters plus a fixed
    per-message overhead.

    Args:
        messages (list[Message]): The message history.
        max_tokens (int, optional): The token budget. Defaults to 4000.
        tokens_per_message (int, optional): Fixed overhead per message. Defaults to 100.

    Returns:
        list[Message]: The newest messages that fit, in original order.
    """
    kept: list[Message] = []
    total = 0
    for msg in reversed(messages):
        size = -(-len(msg.content) // 4) + tokens_per_message
        if total + size > max_tokens:
            break
        kept.append(msg)
        total += size
    kept.reverse()
    return kept


def filter_messages_by_role(
    messages: list[Message], user_count: int = 5, ai_count: int = 5
) -> list[Message]:
    """
    Keep a bounded number of user and AI messages, preserving history order.

    Args:
        messages (list[Message]): The message history.
        user_count (int, optional): Maximum user messages. Defaults to 5.
        ai_count (int, optional): Maximum AI messages. Defaults to 5.

    Returns:
        list[Message]: The merged, ordered subset.
    """
    indexed = list(enumerate(messages))
    users = [(i, m) for i, m in indexed if m.role in _USER_ROLES]
    ais = [(i, m) for i, m in indexed if m.role in _AI_ROLES]
    users = users[-user_count:] if user_count > 0 else []
    ais = ais[-ai_count:] if ai_count > 0 else []
    merged = sorted(users + ais, key=lambda pair: pair[0])
    return [m for _, m in merged]


def advanced_message_filtering(
    messages: list[Message],
    max_messages: int = 15,
    max_tokens: int = 6000,
    user_message_count: int = 7,
    ai_message_count: int = 7,
    for_summary: bool = False,
) -> list[Message]:
    """
    Apply count, token, and role filtering in sequence.

    Summary mode widens every limit so the summary sees more of the thread.

    Args:
        messages (list[Message]): The message history.
        max_messages (int, optional): Count limit. Defaults to 15.
        max_tokens (int, optional): Token budget. Defaults to 6000.
        user_message_count (int, optional): User message limit. Defaults to 7.
        ai_message_count (int, optional): AI message limit. Defaults to 7.
        for_summary (bool, optional): Use the widened summary limits. Defaults to False.

    Returns:
        list[Message]: The filtered history.
    """
    if not messages:
        return []

    if for_summary:
        max_messages, max_tokens = 30, 7000
        user_message_count = ai_message_count = 15

    filtered = filter_messages_by_count(messages, max_messages)
    filtered = filter_messages_by_tokens(filtered, max_tokens)
    return filter_messages_by_role(filtered, user_message_count, ai_message_count)


def format_recent_messages(messages: Iterable[Message], count: int = 6) -> str:
    """
    Render recent history as "Student:" / "Tutor:" lines for prompts.

    Args:
        messages (Iterable[Message]): The message history.
        count (int, optional): Number of trailing messages to render. Defaults to 6.

    Returns:
        str: The rendered history, or an empty string.
    """
    recent = list(messages)[-count:] if count else []
    return "\n\n".join(
        f"{'Student' if m.role in _USER_ROLES else 'Tutor'}: {m.content}"
        for m in recent
    )


def add_ai_message(
    messages: list[Message], content: str, metadata: dict[str, Any] | None = None
) -> list[Message]:
    """
    Return a new history with an AI message appended.

    Args:
        messages (list[Message]): The current history.
        content (str): The AI message content.
        metadata (dict[str, Any] | None, optional): Extra message metadata. Defaults to None.

    Returns:
        list[Message]: The extended history.
    """
    return [
        *messages,
        Message(role="ai", content=content or "", metadata=metadata or {}),
    ]


def ensure_thread_id(thread_id: str | None = None) -> str:
    """
    Return the given thread id, or a fresh one.

    Args:
        thread_id (str | None, optional): The requested thread id. Defaults to None.

    Returns:
        str: A non-empty thread id.
    """
    if thread_id:
        return thread_id
    return f"thread-{uuid.uuid4()}"
