"""Shared types for routing, context resolution, and turn orchestration."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, Sequence

if TYPE_CHECKING:
    from biotutor.agents.context import ConversationContext


class ResponseType(str, Enum):
    """The six response generators a turn can be routed to."""

    TEACH = "teach"
    CONTENT_COLLECTOR = "contentCollector"
    QUIZ = "quiz"
    EXAM_QUESTION = "examQuestion"
    MARK_SCHEME = "markScheme"
    SUMMARY = "summary"


class RetrievalTarget(str, Enum):
    """Which document collection a routed turn reads from."""

    CONTENT = "content"
    EXAM_PAPERS = "examPapers"
    NONE = "none"


_EXAM_TYPES = {ResponseType.EXAM_QUESTION, ResponseType.MARK_SCHEME}


@dataclass(frozen=True)
class RoutingDecision:
    """
    Immutable routing result produced once per turn.
    """

    response_type: ResponseType
    retrieval_target: RetrievalTarget
    has_contextual_reference: bool = False

    @classmethod
    def for_type(
        cls, response_type: ResponseType, has_contextual_reference: bool = False
    ) -> "RoutingDecision":
        """
        Build a decision, deriving the retrieval target from the response type.

        Args:
            response_type (ResponseType): The selected response type.
            has_contextual_reference (bool, optional): Whether the query refers back to earlier turns. Defaults to False.

        Returns:
            RoutingDecision: The decision with its retrieval target filled in.
        """
        if response_type is ResponseType.SUMMARY:
            target = RetrievalTarget.NONE
        elif response_type in _EXAM_TYPES:
            target = RetrievalTarget.EXAM_PAPERS
        else:
            target = RetrievalTarget.CONTENT
        return cls(
            response_type=response_type,
            retrieval_target=target,
            has_contextual_reference=has_contextual_reference,
        )

    @classmethod
    def default(cls) -> "RoutingDecision":
        """Decision used whenever routing fails."""
        return cls.for_type(ResponseType.TEACH, has_contextual_reference=False)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Message:
    """A single entry of the conversation history."""

    role: str
    content: str
    timestamp: str = field(default_factory=_now_iso)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class Document:
    """A retrieved reference passage."""

    page_content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Generation:
    """Output of a text generator call."""

    content: str


@dataclass
class ConversationState:
    """
    Per-turn working value. Owned by one in-flight request and discarded afterwards.
    """

    thread_id: str
    query: str
    context: "ConversationContext"
    messages: list[Message] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)
    loaded: bool = True
    response_type: ResponseType | None = None
    has_contextual_reference: bool = False
    effective_query: str | None = None
    resolved_topic: str | None = None


@dataclass
class TurnResult:
    """Top-level result for a single orchestrated turn."""

    thread_id: str
    response: str
    decision: RoutingDecision
    query: str
    effective_query: str
    context: "ConversationContext"
    resolved_topic: str | None = None
    in_domain: bool = True
    documents: list[Document] = field(default_factory=list)


class TextGenerator(Protocol):
    """Interface for the underlying text-generation model."""

    async def invoke(self, prompt: str) -> Generation:  # pragma: no cover - interface
        """Send a prompt and return the generated text. May raise."""
        ...


class DocumentRetriever(Protocol):
    """Interface for ranked passage retrieval."""

    async def get_relevant_documents(
        self, query: str
    ) -> list[Document]:  # pragma: no cover - interface
        """Return passages relevant to the query. May raise."""
        ...


class ContextStore(Protocol):
    """Interface for per-thread conversation persistence."""

    async def load_conversation(
        self, thread_id: str
    ) -> tuple["ConversationContext | None", list[dict[str, Any]]]:  # pragma: no cover - interface
        """Return the stored context and raw message history from one read."""
        ...

    async def save(
        self, thread_id: str, state: dict[str, Any]
    ) -> None:  # pragma: no cover - interface
        """Persist the thread state."""
        ...


class IntentRouter(Protocol):
    """Interface shared by the lexical and model-backed routers."""

    async def aroute(
        self,
        query: str,
        recent_messages: Sequence[Message],
        context: "ConversationContext",
    ) -> RoutingDecision:  # pragma: no cover - interface
        """Return the routing decision for a query."""
        ...
