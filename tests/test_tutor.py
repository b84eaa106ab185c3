import pytest

from biotutor.agents.understanding import LexicalIntentRouter, LLMIntentRouter
from biotutor.core.storage.context_store import InMemoryContextStore
from biotutor.core.tutor import build_router, build_text_generator, build_tutor
from biotutor.utils.ollama_cfg import OllamaGenerator
from tests.fakes import FakeGenerator


def test_build_text_generator_selects_provider() -> None:
    """
    The provider name selects the adapter.
    """
    assert isinstance(build_text_generator("ollama"), OllamaGenerator)
    with pytest.raises(ValueError):
        build_text_generator("unknown")


def test_build_router_strategies() -> None:
    """
    Both router strategies are available and unknown names are rejected.
    """
    generator = FakeGenerator()
    assert isinstance(build_router("lexical", generator), LexicalIntentRouter)
    assert isinstance(build_router("llm", generator), LLMIntentRouter)
    with pytest.raises(ValueError):
        build_router("random", generator)


def test_build_tutor_uses_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    The factory wires router strategy and fail-open setting from the environment.

    Args:
        monkeypatch (pytest.MonkeyPatch): Fixture to override environment.
    """
    monkeypatch.setenv("ROUTER_STRATEGY", "llm")
    monkeypatch.setenv("TOPIC_CHECK_FAIL_OPEN", "1")
    monkeypatch.setenv("MAX_RECENT_TOPICS", "3")
    monkeypatch.delenv("CONTENT_DOCS_PATH", raising=False)
    monkeypatch.delenv("EXAM_DOCS_PATH", raising=False)
    store = InMemoryContextStore()

    tutor = build_tutor(generator=FakeGenerator(), store=store)

    assert isinstance(tutor.router, LLMIntentRouter)
    assert tutor.classifier.fail_open is True
    assert tutor.updater.max_topics == 3
    assert tutor.store is store
    assert tutor.content_retriever is None
    assert len(tutor.generators) == 6
