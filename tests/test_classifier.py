import pytest

from biotutor.agents.classifier import TopicClassifier, is_denied_topic
from biotutor.agents.context import ConversationContext
from tests.fakes import FailingGenerator, FakeGenerator


def test_is_denied_topic_uses_substring_match() -> None:
    """
    Denylist matching is case-insensitive substring matching.
    """
    assert is_denied_topic("DNS servers") is True
    assert is_denied_topic("Quantum Physics") is True
    assert is_denied_topic("photosynthesis") is False


@pytest.mark.anyio
async def test_contextual_denied_topic_skips_model() -> None:
    """
    A denied context topic is rejected without a model call.
    """
    generator = FakeGenerator("yes")
    classifier = TopicClassifier(generator)
    ctx = ConversationContext(last_topic="DNS")
    assert await classifier.classify("tell me more about it", ctx, True) is False
    assert generator.prompts == []


@pytest.mark.anyio
async def test_contextual_domain_topic_skips_model() -> None:
    """
    A non-denied context topic is accepted without a model call.
    """
    generator = FakeGenerator("no")
    classifier = TopicClassifier(generator)
    ctx = ConversationContext(recent_topics=("photosynthesis",))
    assert await classifier.classify("quiz me on this", ctx, True) is True
    assert generator.prompts == []


@pytest.mark.anyio
async def test_unresolvable_reference_asks_model() -> None:
    """
    When no topic can be resolved the model decides.
    """
    generator = FakeGenerator("Yes.")
    classifier = TopicClassifier(generator, prompt="Is this biology? {query}")
    assert await classifier.classify("explain it", ConversationContext(), True) is True
    assert generator.prompts == ["Is this biology? explain it"]


@pytest.mark.anyio
async def test_model_answer_controls_result() -> None:
    """
    The result is whether the model reply contains "yes".
    """
    classifier = TopicClassifier(FakeGenerator("  NO  "))
    assert await classifier.classify("What is the capital of France?") is False

    generator = FakeGenerator("yes")
    assert await TopicClassifier(generator).classify("What is osmosis?") is True
    assert "Query: What is osmosis?" in generator.prompts[0]


@pytest.mark.anyio
@pytest.mark.parametrize("fail_open", [False, True])
async def test_model_failure_returns_configured_default(fail_open: bool) -> None:
    """
    Model failures return the fail-open setting instead of raising.

    Args:
        fail_open (bool): The configured failure default.
    """
    generator = FailingGenerator()
    classifier = TopicClassifier(generator, fail_open=fail_open)
    assert await classifier.classify("What is osmosis?") is fail_open
    assert generator.calls == 1
