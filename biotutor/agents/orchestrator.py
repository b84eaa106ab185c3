"""Turn orchestrator that routes, resolves, retrieves, checks, generates, and persists."""

from loguru import logger

from biotutor.agents.classifier import TopicClassifier
from biotutor.agents.context import ConversationContext, ensure_valid_context
from biotutor.agents.generation import (
    GENERIC_APOLOGY,
    ResponseGenerator,
    out_of_domain_response,
)
from biotutor.agents.history import (
    create_message_history,
    ensure_thread_id,
    filter_messages_by_count,
)
from biotutor.agents.resolver import resolve_topic, rewrite_query
from biotutor.agents.retrieval import retrieve_documents
from biotutor.agents.types import (
    ContextStore,
    ConversationState,
    DocumentRetriever,
    IntentRouter,
    Message,
    ResponseType,
    RetrievalTarget,
    RoutingDecision,
    TurnResult,
)
from biotutor.agents.updater import ContextUpdater

PERSISTED_MESSAGES = 30


class TutorOrchestrator:
    """
    Coordinate the components of a single conversational turn.
    """

    def __init__(
        self,
        router: IntentRouter,
        classifier: TopicClassifier,
        updater: ContextUpdater,
        generators: dict[ResponseType, ResponseGenerator],
        store: ContextStore | None = None,
        content_retriever: DocumentRetriever | None = None,
        exam_retriever: DocumentRetriever | None = None,
    ) -> None:
        """
        Initialize the TutorOrchestrator.

        Args:
            router (IntentRouter): Picks the response type.
            classifier (TopicClassifier): Domain check for non-summary turns.
            updater (ContextUpdater): Records the turn's topic.
            generators (dict[ResponseType, ResponseGenerator]): One generator per response type.
            store (ContextStore | None, optional): Per-thread persistence. Defaults to None.
            content_retriever (DocumentRetriever | None, optional): Source for teaching material. Defaults to None.
            exam_retriever (DocumentRetriever | None, optional): Source for past papers and mark schemes. Defaults to None.
        """
        self.router = router
        self.classifier = classifier
        self.updater = updater
        self.generators = generators
        self.store = store
        self.content_retriever = content_retriever
        self.exam_retriever = exam_retriever

    async def _load_state(self, thread_id: str, user_input: str) -> ConversationState:
        raw_context = None
        raw_history: list = []
        loaded = True
        if self.store is not None:
            try:
                raw_context, raw_history = await self.store.load_conversation(
                    thread_id
                )
            except Exception as e:
                logger.error("Failed to load state for thread {}: {}", thread_id, e)
                raw_context, raw_history, loaded = None, [], False
        return ConversationState(
            thread_id=thread_id,
            query=user_input,
            context=ensure_valid_context(raw_context),
            messages=create_message_history(raw_history),
            loaded=loaded,
        )

    def _retriever_for(self, target: RetrievalTarget) -> DocumentRetriever | None:
        if target is RetrievalTarget.CONTENT:
            return self.content_retriever
        if target is RetrievalTarget.EXAM_PAPERS:
            return self.exam_retriever
        return None

    async def _save_state(
        self,
        state: ConversationState,
        context: ConversationContext,
        response: str,
    ) -> None:
        if self.store is None:
            return
        if not state.loaded:
            logger.warning(
                "Skipping save for thread {}: stored state could not be read",
                state.thread_id,
            )
            return
        messages = [
            *state.messages,
            Message(role="user", content=state.query),
            Message(
                role="ai",
                content=response,
                metadata={"responseType": state.response_type.value}
                if state.response_type
                else {},
            ),
        ]
        messages = filter_messages_by_count(messages, PERSISTED_MESSAGES)
        payload = {
            "conversationContext": context.to_dict(),
            "messages": [m.to_dict() for m in messages],
            "responseType": state.response_type.value if state.response_type else None,
            "threadId": state.thread_id,
        }
        try:
            await self.store.save(state.thread_id, payload)
        except Exception as e:
            logger.error("Failed to save state for thread {}: {}", state.thread_id, e)

    async def handle_turn(self, thread_id: str | None, user_input: str) -> TurnResult:
        """
        Process one user message end to end.

        Args:
            thread_id (str | None): The conversation thread; a new id is created when missing.
            user_input (str): The user's message.

        Returns:
            TurnResult: The response and the turn's decisions. Never raises.
        """
        thread_id = ensure_thread_id(thread_id)
        prior_context = ConversationContext()
        try:
            state = await self._load_state(thread_id, user_input)
            prior_context = state.context
            return await self._run(state)
        except Exception as e:
            logger.exception(
                "Unexpected error handling turn for thread {}: {}", thread_id, e
            )
            return TurnResult(
                thread_id=thread_id,
                response=GENERIC_APOLOGY,
                decision=RoutingDecision.default(),
                query=user_input,
                effective_query=user_input,
                context=prior_context,
            )

    async def _run(self, state: ConversationState) -> TurnResult:
        decision = await self.router.aroute(state.query, state.messages, state.context)
        state.response_type = decision.response_type
        state.has_contextual_reference = decision.has_contextual_reference

        state.effective_query = state.query
        if decision.has_contextual_reference:
            state.resolved_topic = resolve_topic(state.context)
            resolved = rewrite_query(
                state.query, state.resolved_topic, decision.response_type
            )
            state.effective_query = resolved.effective

        state.documents = await retrieve_documents(
            self._retriever_for(decision.retrieval_target), state.effective_query
        )

        is_summary = decision.response_type is ResponseType.SUMMARY
        if not is_summary:
            in_domain = await self.classifier.classify(
                state.query, state.context, decision.has_contextual_reference
            )
            if not in_domain:
                logger.info("Query '{}' is outside the domain", state.query[:100])
                response = out_of_domain_response(
                    decision.response_type, state.resolved_topic
                )
                await self._save_state(state, state.context, response)
                return self._result(state, decision, response, state.context, False)

        generator = self.generators[decision.response_type]
        response = await generator.generate(
            state.effective_query, state.documents, state.context, state.messages
        )

        if is_summary:
            context = state.context
        else:
            context = await self.updater.update(
                state.context,
                state.query,
                state.resolved_topic or state.query,
                response,
            )

        await self._save_state(state, context, response)
        return self._result(state, decision, response, context, True)

    @staticmethod
    def _result(
        state: ConversationState,
        decision: RoutingDecision,
        response: str,
        context: ConversationContext,
        in_domain: bool,
    ) -> TurnResult:
        return TurnResult(
            thread_id=state.thread_id,
            response=response,
            decision=decision,
            query=state.query,
            effective_query=state.effective_query or state.query,
            context=context,
            resolved_topic=state.resolved_topic,
            in_domain=in_domain,
            documents=state.documents,
        )
