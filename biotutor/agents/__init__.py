"""Tutor agent package.

Provides the routing and context-resolution core of the biology tutor: intent
routing, contextual reference resolution, domain classification, context
updates, and the turn orchestrator that ties them together.
"""

from biotutor.agents.types import (
    Document,
    Generation,
    Message,
    ResponseType,
    RetrievalTarget,
    RoutingDecision,
    TurnResult,
)
from biotutor.agents.context import ConversationContext, ensure_valid_context
from biotutor.agents.references import has_contextual_reference
from biotutor.agents.resolver import resolve_topic, rewrite_query
from biotutor.agents.classifier import TopicClassifier
from biotutor.agents.understanding import LexicalIntentRouter, LLMIntentRouter
from biotutor.agents.updater import ContextUpdater
from biotutor.agents.retrieval import LlamaIndexRetriever, StaticRetriever
from biotutor.agents.generation import ResponseGenerator, build_generators
from biotutor.agents.orchestrator import TutorOrchestrator

__all__ = [
    "ContextUpdater",
    "ConversationContext",
    "Document",
    "Generation",
    "LexicalIntentRouter",
    "LlamaIndexRetriever",
    "LLMIntentRouter",
    "Message",
    "ResponseGenerator",
    "ResponseType",
    "RetrievalTarget",
    "RoutingDecision",
    "StaticRetriever",
    "TopicClassifier",
    "TurnResult",
    "TutorOrchestrator",
    "build_generators",
    "ensure_valid_context",
    "has_contextual_reference",
    "resolve_topic",
    "rewrite_query",
]
