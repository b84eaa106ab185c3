"""Domain classification: is a query within the tutor's subject area?"""

from typing import Iterable

from loguru import logger

from biotutor.agents.context import ConversationContext
from biotutor.agents.resolver import resolve_topic
from biotutor.agents.types import TextGenerator
from biotutor.utils.prompt_cfg import load_prompt

NON_DOMAIN_TOPICS = (
    "dns",
    "domain name system",
    "ip",
    "computer",
    "physics",
    "history",
    "mathematics",
    "literature",
    "politics",
    "economics",
    "geography",
    "art",
    "music",
)


def is_denied_topic(topic: str, denylist: Iterable[str] = NON_DOMAIN_TOPICS) -> bool:
    """
    Check a topic against the non-domain keyword denylist.

    Matching is a case-insensitive substring test, so short keywords such as
    "ip" or "art" also match inside longer words.

    Args:
        topic (str): The candidate topic.
        denylist (Iterable[str], optional): Keywords marking a topic as out of domain.

    Returns:
        bool: True if any denylisted keyword occurs in the topic.
    """
    lowered = topic.lower()
    return any(kw in lowered for kw in denylist)


class TopicClassifier:
    """
    Decides whether a query belongs to the tutor's domain.

    Contextual queries are judged by their resolved topic without a model call;
    everything else is sent to the text generator as a yes/no question.
    """

    def __init__(
        self,
        generator: TextGenerator,
        fail_open: bool = False,
        denylist: Iterable[str] | None = None,
        prompt: str | None = None,
    ) -> None:
        """
        Initialize the TopicClassifier.

        Args:
            generator (TextGenerator): The model used for the yes/no domain check.
            fail_open (bool, optional): Result returned when the model call fails. Defaults to False.
            denylist (Iterable[str] | None, optional): Non-domain keywords. Defaults to NON_DOMAIN_TOPICS.
            prompt (str | None, optional): Topic-check template with a `{query}` slot. Defaults to the bundled prompt.
        """
        self.generator = generator
        self.fail_open = fail_open
        self.denylist = tuple(denylist) if denylist is not None else NON_DOMAIN_TOPICS
        self._prompt = prompt

    @property
    def prompt(self) -> str:
        if self._prompt is None:
            self._prompt = load_prompt("topic_check")
        return self._prompt

    async def classify(
        self,
        text: str,
        context: ConversationContext | None = None,
        has_contextual_reference: bool = False,
    ) -> bool:
        """
        Return whether the text is in the tutor's domain.

        Args:
            text (str): The user's query.
            context (ConversationContext | None, optional): Context used to resolve references. Defaults to None.
            has_contextual_reference (bool, optional): Whether the query refers back to earlier turns. Defaults to False.

        Returns:
            bool: True if in domain. Model failures return `fail_open`.
        """
        if has_contextual_reference and context is not None:
            topic = resolve_topic(context)
            if topic:
                if is_denied_topic(topic, self.denylist):
                    logger.info("Context topic '{}' is outside the domain", topic)
                    return False
                logger.debug("Context topic '{}' assumed in domain", topic)
                return True
            logger.debug("No topic could be resolved from context for '{}'", text)

        try:
            result = await self.generator.invoke(self.prompt.format(query=text))
            response = str(result.content).lower().strip()
        except Exception as e:
            logger.error(
                "Topic check failed for '{}': {}; defaulting to {}",
                text,
                e,
                self.fail_open,
            )
            return self.fail_open

        logger.debug("Topic check for '{}' resulted in: {}", text, response)
        return "yes" in response
