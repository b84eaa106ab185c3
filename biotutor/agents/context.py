"""Conversation context helpers."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

MAX_RECENT_TOPICS = 5

DOMAIN_KEYWORDS = [
    "photosynthesis",
    "respiration",
    "cell",
    "DNA",
    "RNA",
    "protein",
    "enzyme",
    "metabolism",
    "ecology",
    "evolution",
    "genetics",
    "chromosome",
    "mitosis",
    "meiosis",
    "inheritance",
    "taxonomy",
    "biodiversity",
    "ecosystem",
    "homeostasis",
    "hormone",
    "neuron",
    "muscle",
    "digestion",
    "circulation",
    "immunity",
    "reproduction",
]


@dataclass(frozen=True)
class ConversationContext:
    """
    Rolling per-thread memory of recent topics and named entities.

    `last_topic` uses the empty string as its "unset" marker.
    """

    recent_topics: tuple[str, ...] = ()
    key_entities: dict[str, str] = field(default_factory=dict)
    last_topic: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.recent_topics or self.key_entities or self.last_topic)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to the persisted camelCase form.

        Returns:
            dict[str, Any]: `{"recentTopics", "keyEntities", "lastTopic"}`.
        """
        return {
            "recentTopics": list(self.recent_topics),
            "keyEntities": dict(self.key_entities),
            "lastTopic": self.last_topic,
        }


def _pick(raw: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


def ensure_valid_context(raw: Any) -> ConversationContext:
    """
    Normalize any stored or incoming context into a well-typed value.

    Missing or malformed fields fall back to their defaults instead of being
    propagated. The input is never mutated; a new value is always returned.

    Args:
        raw (Any): None, a ConversationContext, or a mapping in camelCase or snake_case.

    Returns:
        ConversationContext: The validated context.
    """
    if isinstance(raw, ConversationContext):
        return ConversationContext(
            recent_topics=tuple(raw.recent_topics),
            key_entities=dict(raw.key_entities),
            last_topic=raw.last_topic,
        )
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning(
                "Discarding malformed conversation context of type {}",
                type(raw).__name__,
            )
        return ConversationContext()

    topics_raw = _pick(raw, "recentTopics", "recent_topics")
    entities_raw = _pick(raw, "keyEntities", "key_entities")
    last_raw = _pick(raw, "lastTopic", "last_topic")

    recent_topics: tuple[str, ...] = ()
    if isinstance(topics_raw, (list, tuple)):
        recent_topics = tuple(t for t in topics_raw if isinstance(t, str))

    key_entities: dict[str, str] = {}
    if isinstance(entities_raw, Mapping):
        key_entities = {
            str(k): "" if v is None else str(v) for k, v in entities_raw.items()
        }

    last_topic = last_raw if isinstance(last_raw, str) else ""

    return ConversationContext(
        recent_topics=recent_topics,
        key_entities=key_entities,
        last_topic=last_topic,
    )


def format_context_for_prompt(context: ConversationContext | None) -> str:
    """
    Render the context block that response prompts embed.

    Args:
        context (ConversationContext | None): The conversation context.

    Returns:
        str: The formatted block, or an empty string when there is nothing to say.
    """
    if context is None:
        return ""

    parts: list[str] = []
    if context.recent_topics:
        parts.append(f"Recent topics discussed: {', '.join(context.recent_topics)}.")
    if context.key_entities:
        concepts = "; ".join(
            f"{entity} ({desc or 'concept'})"
            for entity, desc in context.key_entities.items()
        )
        parts.append(f"Key biology concepts: {concepts}.")
    if context.last_topic:
        parts.append(f"The most recent primary topic was: {context.last_topic}.")
    if context.last_topic or context.recent_topics:
        referent = context.last_topic or context.recent_topics[0]
        parts.append(
            'If the user query includes words like "this", "it", "that", "these", '
            f'"the topic", etc., they are likely referring to "{referent}" '
            "or one of the recent topics."
        )

    if not parts:
        return ""
    return "CONVERSATION CONTEXT:\n" + "\n".join(parts) + "\n"


def extract_domain_topics(text: str) -> list[str]:
    """
    Find known biology keywords in a text.

    Args:
        text (str): The text to scan.

    Returns:
        list[str]: Matched keywords in keyword-list order.
    """
    lowered = (text or "").lower()
    return [kw for kw in DOMAIN_KEYWORDS if kw.lower() in lowered]
