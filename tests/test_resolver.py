import pytest

from biotutor.agents.context import ConversationContext
from biotutor.agents.resolver import resolve_topic, rewrite_query
from biotutor.agents.types import ResponseType


def test_resolve_topic_priority() -> None:
    """
    Last topic wins, then the newest recent topic, then the first entity.
    """
    assert resolve_topic(ConversationContext(("Y",), {"Z": "d"}, "X")) == "X"
    assert resolve_topic(ConversationContext(("Y",), {"Z": "d"}, "")) == "Y"
    assert resolve_topic(ConversationContext((), {"Z": "d"}, "")) == "Z"
    assert resolve_topic(ConversationContext()) is None
    assert resolve_topic(None) is None


@pytest.mark.parametrize(
    "response_type, expected",
    [
        (ResponseType.TEACH, "Teach me about photosynthesis"),
        (ResponseType.CONTENT_COLLECTOR, "Tell me about photosynthesis"),
        (ResponseType.QUIZ, "Create a quiz about photosynthesis"),
        (ResponseType.EXAM_QUESTION, "Find exam questions about photosynthesis"),
        (ResponseType.MARK_SCHEME, "Find the mark scheme about photosynthesis"),
    ],
)
def test_rewrite_query_uses_verb_phrase(response_type: ResponseType, expected: str) -> None:
    """
    Referring queries are rewritten with the response type's verb phrase.

    Args:
        response_type (ResponseType): The routed response type.
        expected (str): The expected effective query.
    """
    resolved = rewrite_query("quiz me on it", "photosynthesis", response_type)
    assert resolved.effective == expected
    assert resolved.original == "quiz me on it"
    assert resolved.topic == "photosynthesis"
    assert resolved.rewritten is True


def test_rewrite_query_keeps_summary_and_unresolved_queries() -> None:
    """
    Summary queries and queries without a topic are left as they are.
    """
    summary = rewrite_query("recap that", "photosynthesis", ResponseType.SUMMARY)
    assert summary.effective == "recap that"
    assert summary.rewritten is False

    unresolved = rewrite_query("tell me more about it", None, ResponseType.TEACH)
    assert unresolved.effective == "tell me more about it"
    assert unresolved.topic is None
