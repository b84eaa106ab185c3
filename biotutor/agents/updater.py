"""Merging each turn's topic and entities back into the conversation context."""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from biotutor.agents.context import (
    MAX_RECENT_TOPICS,
    ConversationContext,
    ensure_valid_context,
)
from biotutor.agents.types import TextGenerator
from biotutor.utils.prompt_cfg import load_prompt

META_TOPIC_PATTERNS = (
    re.compile(r"\bsummar(y|ize|ise)", re.IGNORECASE),
    re.compile(r"recap", re.IGNORECASE),
    re.compile(r"overview", re.IGNORECASE),
)


@dataclass(frozen=True)
class TopicAnalysis:
    """Structured topic/entity extraction result."""

    main_topic: str = ""
    subtopics: list[str] = field(default_factory=list)
    entities: dict[str, str] = field(default_factory=dict)


def is_meta_topic(topic: str | None) -> bool:
    """
    Return True if a topic is really a summary/recap request.

    Args:
        topic (str | None): The candidate topic.

    Returns:
        bool: Whether the topic should be kept out of the topic history.
    """
    if not topic:
        return False
    lowered = topic.lower().strip()
    return any(p.search(lowered) for p in META_TOPIC_PATTERNS)


def _parse_analysis_payload(raw: str) -> dict[str, Any]:
    """
    Parse a raw extraction reply into a JSON object.

    Args:
        raw (str): The model reply, possibly with text around the JSON.

    Returns:
        dict[str, Any]: The parsed object.

    Raises:
        ValueError: If no JSON object can be parsed.
    """
    match = re.search(r"\{[\s\S]*\}", raw)
    candidate = match.group(0) if match else raw
    payload = json.loads(candidate)
    if not isinstance(payload, dict):
        raise ValueError("Topic analysis reply is not a JSON object")
    return payload


async def extract_topics_and_entities(
    message: str, generator: TextGenerator, prompt: str | None = None
) -> TopicAnalysis:
    """
    Ask the model for the main topic, subtopics, and entities of a message.

    Args:
        message (str): The message to analyze.
        generator (TextGenerator): The text generator.
        prompt (str | None, optional): Extraction template with a `{message}` slot. Defaults to the bundled prompt.

    Returns:
        TopicAnalysis: The extraction, or an empty analysis on any model or parse failure.
    """
    try:
        template = prompt or load_prompt("topic_extraction")
        result = await generator.invoke(template.format(message=message))
        payload = _parse_analysis_payload(str(result.content))
    except Exception as e:
        logger.warning("Topic extraction failed for '{}': {}", message[:100], e)
        return TopicAnalysis()

    main_topic = payload.get("mainTopic")
    subtopics = payload.get("subtopics")
    entities = payload.get("entities")
    return TopicAnalysis(
        main_topic=main_topic.strip() if isinstance(main_topic, str) else "",
        subtopics=[s for s in subtopics if isinstance(s, str)]
        if isinstance(subtopics, list)
        else [],
        entities={str(k): str(v) for k, v in entities.items()}
        if isinstance(entities, dict)
        else {},
    )


class ContextUpdater:
    """
    Records the turn's topic in the bounded recent-topic history.
    """

    def __init__(
        self,
        generator: TextGenerator | None = None,
        max_topics: int = MAX_RECENT_TOPICS,
        prompt: str | None = None,
    ) -> None:
        """
        Initialize the ContextUpdater.

        Args:
            generator (TextGenerator | None, optional): Model used to extract a topic when none is given. Defaults to None.
            max_topics (int, optional): Bound on the recent-topic history. Defaults to 5.
            prompt (str | None, optional): Extraction template override. Defaults to None.
        """
        self.generator = generator
        self.max_topics = max_topics
        self.prompt = prompt

    def _prepend(
        self,
        context: ConversationContext,
        topic: str,
        entities: dict[str, str] | None = None,
    ) -> ConversationContext:
        # Earlier occurrences of the same topic are kept.
        return ConversationContext(
            recent_topics=(topic, *context.recent_topics)[: self.max_topics],
            key_entities={**context.key_entities, **(entities or {})},
            last_topic=topic,
        )

    async def update(
        self,
        context: ConversationContext | None,
        query: str | None,
        topic: str | None,
        response_text: str = "",
    ) -> ConversationContext:
        """
        Return the context after this turn.

        Args:
            context (ConversationContext | None): The context before the turn.
            query (str | None): The user's query.
            topic (str | None): The turn's topic, if already known.
            response_text (str, optional): The generated response. Defaults to "".

        Returns:
            ConversationContext: The new context; the input is never mutated.
        """
        safe = ensure_valid_context(context)

        if topic:
            if is_meta_topic(topic):
                logger.info("Topic '{}' is a summary request; context unchanged", topic)
                return safe
            return self._prepend(safe, topic)

        if query and self.generator is not None:
            analysis = await extract_topics_and_entities(
                query, self.generator, self.prompt
            )
            if analysis.main_topic:
                return self._prepend(safe, analysis.main_topic, analysis.entities)
            logger.debug(
                "No topic extracted from '{}'; context unchanged", query[:100]
            )

        return safe
