import pytest

from biotutor.agents.context import (
    ConversationContext,
    ensure_valid_context,
    extract_domain_topics,
    format_context_for_prompt,
)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        {"recentTopics": None},
        {"recentTopics": "photosynthesis"},
        {"keyEntities": ["not", "a", "dict"]},
        {"lastTopic": None},
        {"recentTopics": 3, "keyEntities": "x", "lastTopic": 7},
        "garbage",
        42,
    ],
)
def test_ensure_valid_context_repairs_malformed_input(raw: object) -> None:
    """
    Malformed or partial contexts are normalized to well-typed defaults.

    Args:
        raw (object): The malformed context.
    """
    ctx = ensure_valid_context(raw)
    assert isinstance(ctx.recent_topics, tuple)
    assert all(isinstance(t, str) for t in ctx.recent_topics)
    assert isinstance(ctx.key_entities, dict)
    assert isinstance(ctx.last_topic, str)


def test_ensure_valid_context_accepts_camel_and_snake_case() -> None:
    """
    Both persisted camelCase and snake_case mappings are understood.
    """
    camel = ensure_valid_context(
        {"recentTopics": ["cells"], "keyEntities": {"ATP": "energy"}, "lastTopic": "cells"}
    )
    snake = ensure_valid_context(
        {"recent_topics": ["cells"], "key_entities": {"ATP": "energy"}, "last_topic": "cells"}
    )
    assert camel == snake
    assert camel.recent_topics == ("cells",)
    assert camel.key_entities == {"ATP": "energy"}


def test_ensure_valid_context_drops_and_stringifies_items() -> None:
    """
    Non-string topics are dropped and entity values are stringified.
    """
    ctx = ensure_valid_context(
        {"recentTopics": ["dna", 5, None, "rna"], "keyEntities": {"n": 2, "m": None}}
    )
    assert ctx.recent_topics == ("dna", "rna")
    assert ctx.key_entities == {"n": "2", "m": ""}


def test_ensure_valid_context_does_not_mutate_input() -> None:
    """
    Validation returns a new value and leaves the input untouched.
    """
    raw = {"recentTopics": ["a", 1], "keyEntities": {"k": "v"}}
    ctx = ensure_valid_context(raw)
    assert raw == {"recentTopics": ["a", 1], "keyEntities": {"k": "v"}}
    ctx.key_entities["other"] = "x"
    assert "other" not in raw["keyEntities"]


def test_to_dict_round_trips_through_validation() -> None:
    """
    Serializing and re-validating a context yields an equal value.
    """
    ctx = ConversationContext(("mitosis", "meiosis"), {"spindle": "fibres"}, "mitosis")
    assert ensure_valid_context(ctx.to_dict()) == ctx
    assert ctx.to_dict() == {
        "recentTopics": ["mitosis", "meiosis"],
        "keyEntities": {"spindle": "fibres"},
        "lastTopic": "mitosis",
    }


def test_format_context_for_prompt() -> None:
    """
    The prompt block names recent topics, concepts, and the referent.
    """
    assert format_context_for_prompt(ConversationContext()) == ""
    assert format_context_for_prompt(None) == ""

    block = format_context_for_prompt(
        ConversationContext(("photosynthesis",), {"chlorophyll": "pigment"}, "photosynthesis")
    )
    assert block.startswith("CONVERSATION CONTEXT:")
    assert "Recent topics discussed: photosynthesis." in block
    assert "chlorophyll (pigment)" in block
    assert 'likely referring to "photosynthesis"' in block


def test_extract_domain_topics() -> None:
    """
    Keyword extraction finds biology keywords case-insensitively.
    """
    assert extract_domain_topics("How does dna replicate during Mitosis?") == [
        "DNA",
        "mitosis",
    ]
    assert extract_domain_topics("") == []


def test_is_empty_reflects_any_stored_memory() -> None:
    """
    A context is empty only when it holds no topics, entities, or last topic.
    """
    assert ConversationContext().is_empty
    assert not ConversationContext(("cells",), {}, "").is_empty
    assert not ConversationContext((), {"ATP": "energy"}, "").is_empty
    assert not ConversationContext((), {}, "cells").is_empty
