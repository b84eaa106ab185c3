"""Intent routers: the scored pattern router and the model-backed variant."""

from typing import Sequence

from loguru import logger

from biotutor.agents.context import ConversationContext
from biotutor.agents.history import format_recent_messages
from biotutor.agents.policies import (
    analyze_query_intent,
    is_exam_question_request,
    is_information_query,
    is_mark_scheme_request,
    is_quiz_request,
    is_summary_request,
    is_teaching_query,
)
from biotutor.agents.references import has_contextual_reference
from biotutor.agents.types import Message, ResponseType, RoutingDecision, TextGenerator
from biotutor.utils.prompt_cfg import load_prompt

SHORT_QUERY_WORDS = 10

# Checked in order; the first keyword found in the reply wins.
ROUTER_RESPONSE_KEYWORDS: tuple[tuple[tuple[str, ...], ResponseType], ...] = (
    (("contentcollector", "information", "content"), ResponseType.CONTENT_COLLECTOR),
    (("quiz", "test", "assessment"), ResponseType.QUIZ),
    (("examquestion", "exam_question", "past paper"), ResponseType.EXAM_QUESTION),
    (("markscheme", "marking", "answers"), ResponseType.MARK_SCHEME),
    (("summary", "summarize", "summarise"), ResponseType.SUMMARY),
    (("teach", "teaching", "explain", "tutor"), ResponseType.TEACH),
)


def match_priority_rules(query: str) -> ResponseType | None:
    """
    Apply the literal high-priority rules: summary, mark scheme, exam question.

    Args:
        query (str): The user query.

    Returns:
        ResponseType | None: The matched response type, or None to continue routing.
    """
    if is_summary_request(query):
        return ResponseType.SUMMARY
    if is_mark_scheme_request(query):
        return ResponseType.MARK_SCHEME
    if is_exam_question_request(query):
        return ResponseType.EXAM_QUESTION
    return None


class LexicalIntentRouter:
    """
    Pattern-and-score router. Pure and synchronous; no model calls.
    """

    def __init__(self, short_query_words: int = SHORT_QUERY_WORDS) -> None:
        """
        Initialize the LexicalIntentRouter.

        Args:
            short_query_words (int, optional): Ambiguous queries shorter than this route to contentCollector. Defaults to 10.
        """
        self.short_query_words = short_query_words

    def _decide(self, text: str) -> ResponseType:
        priority = match_priority_rules(text)
        if priority is not None:
            return priority
        if is_quiz_request(text):
            return ResponseType.QUIZ

        scores = analyze_query_intent(text)
        information_match = is_information_query(text)
        teaching_match = is_teaching_query(text)

        if scores.information > 0 or scores.teaching > 0:
            if scores.information > scores.teaching:
                return ResponseType.CONTENT_COLLECTOR
            if scores.teaching > scores.information:
                return ResponseType.TEACH
            if information_match:
                return ResponseType.CONTENT_COLLECTOR
            if teaching_match:
                return ResponseType.TEACH
            return ResponseType.CONTENT_COLLECTOR

        if information_match:
            return ResponseType.CONTENT_COLLECTOR
        if teaching_match:
            return ResponseType.TEACH

        if len(text.split(" ")) < self.short_query_words:
            logger.debug("Short ambiguous query; defaulting to contentCollector")
            return ResponseType.CONTENT_COLLECTOR
        logger.debug("Long ambiguous query; defaulting to teach")
        return ResponseType.TEACH

    def route(
        self,
        query: str,
        recent_messages: Sequence[Message] | None = None,
        context: ConversationContext | None = None,
    ) -> RoutingDecision:
        """
        Route a query to one of the six response types.

        Args:
            query (str): The latest user message.
            recent_messages (Sequence[Message] | None, optional): Recent history; unused by this router. Defaults to None.
            context (ConversationContext | None, optional): Conversation context; unused by this router. Defaults to None.

        Returns:
            RoutingDecision: The decision. Any internal error yields the default teach decision.
        """
        try:
            text = query.strip().lower()
            response_type = self._decide(text)
            decision = RoutingDecision.for_type(
                response_type, has_contextual_reference(text)
            )
        except Exception as e:
            logger.error("Error in router; defaulting to teach: {}", e)
            return RoutingDecision.default()

        logger.info(
            "Router decided {} for query '{}'",
            decision.response_type.value,
            query[:100],
        )
        return decision

    async def aroute(
        self,
        query: str,
        recent_messages: Sequence[Message] | None = None,
        context: ConversationContext | None = None,
    ) -> RoutingDecision:
        return self.route(query, recent_messages, context)


def parse_router_response(reply: str) -> ResponseType:
    """
    Map a free-text model reply onto a response type.

    Args:
        reply (str): The model's routing answer.

    Returns:
        ResponseType: The first keyword-table match, or teach.
    """
    lowered = reply.lower().strip()
    for keywords, response_type in ROUTER_RESPONSE_KEYWORDS:
        if any(kw in lowered for kw in keywords):
            return response_type
    logger.warning("Unexpected router reply '{}'; defaulting to teach", reply)
    return ResponseType.TEACH


class LLMIntentRouter:
    """
    Router that asks the text generator for the intent.

    Summary, mark-scheme and exam-question requests are still decided by the
    literal rules before any model call.
    """

    def __init__(
        self,
        generator: TextGenerator,
        prompt: str | None = None,
        history_count: int = 6,
    ) -> None:
        """
        Initialize the LLMIntentRouter.

        Args:
            generator (TextGenerator): The model asked for the routing decision.
            prompt (str | None, optional): Router template with `{recent_messages}` and `{query}` slots. Defaults to the bundled prompt.
            history_count (int, optional): Number of recent messages shown to the model. Defaults to 6.
        """
        self.generator = generator
        self.history_count = history_count
        self._prompt = prompt

    @property
    def prompt(self) -> str:
        if self._prompt is None:
            self._prompt = load_prompt("router")
        return self._prompt

    async def aroute(
        self,
        query: str,
        recent_messages: Sequence[Message] | None = None,
        context: ConversationContext | None = None,
    ) -> RoutingDecision:
        """
        Route a query using literal rules first and the model otherwise.

        Args:
            query (str): The latest user message.
            recent_messages (Sequence[Message] | None, optional): Recent history for the prompt. Defaults to None.
            context (ConversationContext | None, optional): Conversation context; unused. Defaults to None.

        Returns:
            RoutingDecision: The decision. Model or parsing errors yield the default teach decision.
        """
        try:
            has_ref = has_contextual_reference(query)
            priority = match_priority_rules(query.strip().lower())
            if priority is not None:
                logger.info("Router matched priority rule {}", priority.value)
                return RoutingDecision.for_type(priority, has_ref)

            history = format_recent_messages(recent_messages or [], self.history_count)
            full_prompt = self.prompt.format(
                recent_messages=history or "No previous messages", query=query
            )
            result = await self.generator.invoke(full_prompt)
            response_type = parse_router_response(str(result.content))
        except Exception as e:
            logger.error("Error in model router; defaulting to teach: {}", e)
            return RoutingDecision.default()

        logger.info("Model router decided {}", response_type.value)
        return RoutingDecision.for_type(response_type, has_ref)
