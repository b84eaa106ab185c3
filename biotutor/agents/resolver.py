"""Resolution of contextual references to a concrete topic."""

from dataclasses import dataclass

from loguru import logger

from biotutor.agents.context import ConversationContext
from biotutor.agents.types import ResponseType

QUERY_VERB_PHRASES: dict[ResponseType, str] = {
    ResponseType.TEACH: "Teach me about",
    ResponseType.CONTENT_COLLECTOR: "Tell me about",
    ResponseType.QUIZ: "Create a quiz about",
    ResponseType.EXAM_QUESTION: "Find exam questions about",
    ResponseType.MARK_SCHEME: "Find the mark scheme about",
}


@dataclass(frozen=True)
class ResolvedQuery:
    """The user's query alongside the query actually sent downstream."""

    original: str
    effective: str
    topic: str | None = None

    @property
    def rewritten(self) -> bool:
        return self.effective != self.original


def resolve_topic(context: ConversationContext | None) -> str | None:
    """
    Derive the topic a contextual reference most likely points at.

    Priority: last topic, then the most recent topic, then the first key entity.

    Args:
        context (ConversationContext | None): The conversation context.

    Returns:
        str | None: The resolved topic, or None if the context holds nothing.
    """
    if context is None or context.is_empty:
        return None
    if context.last_topic:
        return context.last_topic
    if context.recent_topics:
        return context.recent_topics[0]
    if context.key_entities:
        return next(iter(context.key_entities))
    return None


def rewrite_query(
    query: str, topic: str | None, response_type: ResponseType
) -> ResolvedQuery:
    """
    Replace a referring query with an explicit instruction about the resolved topic.

    Args:
        query (str): The user's original query.
        topic (str | None): The resolved topic.
        response_type (ResponseType): The routed response type, which picks the verb phrase.

    Returns:
        ResolvedQuery: The original and effective queries.
    """
    verb = QUERY_VERB_PHRASES.get(response_type)
    if not topic or verb is None:
        return ResolvedQuery(original=query, effective=query, topic=topic)
    effective = f"{verb} {topic}"
    logger.info("Rewriting query '{}' to '{}'", query, effective)
    return ResolvedQuery(original=query, effective=effective, topic=topic)
