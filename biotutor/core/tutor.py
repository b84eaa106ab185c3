from loguru import logger

from biotutor.agents.classifier import TopicClassifier
from biotutor.agents.generation import build_generators
from biotutor.agents.orchestrator import TutorOrchestrator
from biotutor.agents.retrieval import load_directory_retriever
from biotutor.agents.types import (
    ContextStore,
    DocumentRetriever,
    IntentRouter,
    TextGenerator,
)
from biotutor.agents.understanding import LexicalIntentRouter, LLMIntentRouter
from biotutor.agents.updater import ContextUpdater
from biotutor.core.storage.context_store import SQLContextStore
from biotutor.utils.env_cfg import load_model_env, load_path_env, load_router_env
from biotutor.utils.ollama_cfg import OllamaGenerator
from biotutor.utils.openai_cfg import OpenAIGenerator


def build_text_generator(provider: str | None = None) -> TextGenerator:
    """
    Create the text generator for the configured provider.

    Args:
        provider (str | None, optional): "openai" or "ollama". Defaults to `LLM_PROVIDER`.

    Returns:
        TextGenerator: The generator.

    Raises:
        ValueError: If the provider is unknown.
    """
    provider = (provider or load_model_env().provider).lower()
    if provider == "openai":
        return OpenAIGenerator()
    if provider == "ollama":
        return OllamaGenerator()
    logger.error("ValueError: Unsupported LLM provider '{}'", provider)
    raise ValueError(f"Unsupported LLM provider '{provider}'")


def build_router(strategy: str, generator: TextGenerator) -> IntentRouter:
    """
    Create the intent router for a strategy name.

    Args:
        strategy (str): "lexical" or "llm".
        generator (TextGenerator): Used by the model-backed router.

    Returns:
        IntentRouter: The router.

    Raises:
        ValueError: If the strategy is unknown.
    """
    if strategy == "lexical":
        return LexicalIntentRouter()
    if strategy == "llm":
        return LLMIntentRouter(generator)
    logger.error("ValueError: Unsupported router strategy '{}'", strategy)
    raise ValueError(f"Unsupported router strategy '{strategy}'")


def build_tutor(
    generator: TextGenerator | None = None,
    store: ContextStore | None = None,
    content_retriever: DocumentRetriever | None = None,
    exam_retriever: DocumentRetriever | None = None,
) -> TutorOrchestrator:
    """
    Wire a TutorOrchestrator from the environment configuration.

    Any collaborator passed explicitly replaces the configured one.

    Args:
        generator (TextGenerator | None, optional): Text generator. Defaults to the `LLM_PROVIDER` generator.
        store (ContextStore | None, optional): Conversation store. Defaults to a SQLContextStore at `SESSION_STORE`.
        content_retriever (DocumentRetriever | None, optional): Teaching material. Defaults to `CONTENT_DOCS_PATH` if set.
        exam_retriever (DocumentRetriever | None, optional): Past papers. Defaults to `EXAM_DOCS_PATH` if set.

    Returns:
        TutorOrchestrator: The orchestrator.
    """
    router_config = load_router_env()
    path_config = load_path_env()

    generator = generator or build_text_generator()
    store = store or SQLContextStore(path_config.session_store)
    if content_retriever is None and path_config.content_docs is not None:
        content_retriever = load_directory_retriever(path_config.content_docs)
    if exam_retriever is None and path_config.exam_docs is not None:
        exam_retriever = load_directory_retriever(path_config.exam_docs)

    logger.info(
        "Building tutor: router={}, fail_open={}",
        router_config.strategy,
        router_config.fail_open,
    )
    return TutorOrchestrator(
        router=build_router(router_config.strategy, generator),
        classifier=TopicClassifier(generator, fail_open=router_config.fail_open),
        updater=ContextUpdater(generator, max_topics=router_config.max_recent_topics),
        generators=build_generators(
            generator,
            max_messages=router_config.history_max_messages,
            max_tokens=router_config.history_max_tokens,
        ),
        store=store,
        content_retriever=content_retriever,
        exam_retriever=exam_retriever,
    )
