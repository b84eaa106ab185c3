import pytest

from biotutor.agents.references import has_contextual_reference


@pytest.mark.parametrize(
    "text",
    [
        "tell me about it",
        "Can you quiz me on this?",
        "Explain the process again",
        "What did you say earlier?",
        "Go back to the previous topic",
    ],
)
def test_detects_references(text: str) -> None:
    """
    Anaphora and back-reference wording are detected.

    Args:
        text (str): The query.
    """
    assert has_contextual_reference(text) is True


@pytest.mark.parametrize("text", ["what is DNA", "", None, "Explain mitosis", "Define osmosis"])
def test_ignores_self_contained_queries(text: str | None) -> None:
    """
    Queries without reference words, and empty input, are not references.

    Args:
        text (str | None): The query.
    """
    assert has_contextual_reference(text) is False


def test_matches_whole_words_only() -> None:
    """
    Reference words inside longer words do not count.
    """
    assert has_contextual_reference("Describe mitochondria in kit form") is False
    assert has_contextual_reference("Thistle seeds") is False
