"""Response generators, one per response type."""

from dataclasses import dataclass
from typing import Sequence

from loguru import logger

from biotutor.agents.context import ConversationContext, format_context_for_prompt
from biotutor.agents.history import advanced_message_filtering, format_recent_messages
from biotutor.agents.types import Document, Message, ResponseType, TextGenerator
from biotutor.utils.prompt_cfg import load_prompt

PROMPT_NAMES: dict[ResponseType, str] = {
    ResponseType.TEACH: "teach",
    ResponseType.CONTENT_COLLECTOR: "content_collector",
    ResponseType.QUIZ: "quiz",
    ResponseType.EXAM_QUESTION: "exam_question",
    ResponseType.MARK_SCHEME: "mark_scheme",
    ResponseType.SUMMARY: "summary",
}

APOLOGIES: dict[ResponseType, str] = {
    ResponseType.TEACH: (
        "Sorry, I encountered an error while generating a teaching response. "
        "Please try rephrasing your question."
    ),
    ResponseType.CONTENT_COLLECTOR: (
        "Sorry, I encountered an error while retrieving information. "
        "Please try rephrasing your question."
    ),
    ResponseType.QUIZ: (
        "Sorry, I encountered an error while generating a quiz. "
        "Please try rephrasing your request."
    ),
    ResponseType.EXAM_QUESTION: (
        "Sorry, I encountered an error while retrieving exam questions. "
        "Please try a different topic or rephrasing your request."
    ),
    ResponseType.MARK_SCHEME: (
        "Sorry, I encountered an error while retrieving mark schemes. "
        "Please try a different topic or rephrasing your request."
    ),
    ResponseType.SUMMARY: (
        "I apologize, but I wasn't able to create a summary of our conversation "
        "at this time. Please try again later."
    ),
}

GENERIC_APOLOGY = (
    "Sorry, I encountered an error while processing your request. I am a biology "
    "tutor and can help with topics in that field if you have questions."
)

NO_CONTEXT_RESPONSE = (
    "I am a biology tutor specialized in topics for which I have reference "
    "information. Unfortunately, I don't have any relevant information about this "
    "topic in my database. I can help you with questions related to biology such as "
    "cells, DNA, proteins, ecosystems, evolution, and other biological topics if they "
    "are in my reference materials."
)

_SUGGESTED_TOPICS = (
    "Cell structure and function",
    "DNA and genetics",
    "Protein synthesis",
    "Photosynthesis",
    "Ecosystems and ecology",
    "Human anatomy and physiology",
)


def out_of_domain_response(
    response_type: ResponseType, topic: str | None = None
) -> str:
    """
    Build the canned reply for a query outside the tutor's domain.

    Args:
        response_type (ResponseType): The routed response type.
        topic (str | None, optional): The resolved topic of a contextual query. Defaults to None.

    Returns:
        str: The reply text.
    """
    if not topic:
        return NO_CONTEXT_RESPONSE

    activity = {
        ResponseType.QUIZ: "creating quizzes",
        ResponseType.EXAM_QUESTION: "finding exam questions",
        ResponseType.MARK_SCHEME: "finding mark schemes",
        ResponseType.TEACH: "teaching",
    }.get(response_type, "providing information")
    suggestions = "\n".join(f"- {t}" for t in _SUGGESTED_TOPICS)
    return (
        f'I noticed you\'re asking about "{topic}". However, as a biology tutor, '
        f"I'm specialized in {activity} only on biology topics, and \"{topic}\" "
        "appears to be outside my area of expertise.\n\n"
        f"I'd be happy to help with any biology topic, such as:\n{suggestions}\n\n"
        "Would you like to explore one of these topics instead?"
    )


def format_documents(documents: Sequence[Document]) -> str:
    """Join retrieved passages into the reference block of a prompt."""
    return "\n\n".join(doc.page_content for doc in documents if doc.page_content)


@dataclass
class ResponseGenerator:
    """
    Fills a response-type prompt template and calls the text generator.
    """

    response_type: ResponseType
    generator: TextGenerator
    template: str | None = None
    history_count: int = 6
    max_messages: int = 15
    max_tokens: int = 6000
    require_documents: bool = False

    def _template(self) -> str:
        if self.template is None:
            self.template = load_prompt(PROMPT_NAMES[self.response_type])
        return self.template

    def build_prompt(
        self,
        query: str,
        documents: Sequence[Document],
        context: ConversationContext | None,
        messages: Sequence[Message],
    ) -> str:
        """
        Render the full prompt for this response type.

        Args:
            query (str): The effective query.
            documents (Sequence[Document]): Retrieved passages.
            context (ConversationContext | None): The conversation context.
            messages (Sequence[Message]): The conversation history.

        Returns:
            str: The prompt text.
        """
        context_block = format_context_for_prompt(context)

        if self.response_type is ResponseType.SUMMARY:
            history = advanced_message_filtering(list(messages), for_summary=True)
            return self._template().format(
                conversation_history=format_recent_messages(history, len(history))
                or "No previous messages",
                conversation_context=context_block,
            )

        history = advanced_message_filtering(
            list(messages), max_messages=self.max_messages, max_tokens=self.max_tokens
        )
        recent = format_recent_messages(history, self.history_count)
        if recent:
            context_block = f"{context_block}\nRecent Conversation:\n{recent}\n"
        return self._template().format(
            conversation_context=context_block,
            context=format_documents(documents),
            query=query,
        )

    async def generate(
        self,
        query: str,
        documents: Sequence[Document] = (),
        context: ConversationContext | None = None,
        messages: Sequence[Message] = (),
    ) -> str:
        """
        Generate the response text.

        Args:
            query (str): The effective query.
            documents (Sequence[Document], optional): Retrieved passages. Defaults to ().
            context (ConversationContext | None, optional): The conversation context. Defaults to None.
            messages (Sequence[Message], optional): The conversation history. Defaults to ().

        Returns:
            str: The model reply, or this type's apology text if generation fails.
        """
        if self.require_documents and not documents:
            logger.info(
                "No documents for {} response; using canned reply",
                self.response_type.value,
            )
            return NO_CONTEXT_RESPONSE

        try:
            prompt = self.build_prompt(query, documents, context, messages)
            result = await self.generator.invoke(prompt)
            text = str(result.content).strip()
        except Exception as e:
            logger.error(
                "Error generating {} response: {}", self.response_type.value, e
            )
            return APOLOGIES[self.response_type]

        if not text:
            logger.warning("Empty {} response from model", self.response_type.value)
            return APOLOGIES[self.response_type]
        return text


def build_generators(
    generator: TextGenerator,
    require_documents: bool = False,
    max_messages: int = 15,
    max_tokens: int = 6000,
) -> dict[ResponseType, ResponseGenerator]:
    """
    Create one response generator per response type.

    Args:
        generator (TextGenerator): The shared text generator.
        require_documents (bool, optional): Answer with the canned no-information reply when retrieval is empty. Defaults to False.
        max_messages (int, optional): History count limit for non-summary prompts. Defaults to 15.
        max_tokens (int, optional): History token budget for non-summary prompts. Defaults to 6000.

    Returns:
        dict[ResponseType, ResponseGenerator]: Generators keyed by response type.
    """
    return {
        rt: ResponseGenerator(
            response_type=rt,
            generator=generator,
            max_messages=max_messages,
            max_tokens=max_tokens,
            require_documents=require_documents and rt is not ResponseType.SUMMARY,
        )
        for rt in ResponseType
    }
