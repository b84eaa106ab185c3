import pytest

from biotutor.agents.policies import (
    analyze_query_intent,
    is_exam_question_request,
    is_mark_scheme_request,
    is_summary_request,
)
from biotutor.agents.types import ResponseType, RetrievalTarget
from biotutor.agents.understanding import LexicalIntentRouter

SHORT_AMBIGUOUS = "photosynthesis in green plants"
LONG_AMBIGUOUS = (
    "photosynthesis in green plants with chlorophyll pigments inside leaves of many plants growing"
)


@pytest.fixture
def router() -> LexicalIntentRouter:
    return LexicalIntentRouter()


@pytest.mark.parametrize(
    "query, expected",
    [
        ("summarize our conversation", ResponseType.SUMMARY),
        ("  Summarize   our  Conversation ", ResponseType.SUMMARY),
        ("Can you give me a recap?", ResponseType.SUMMARY),
        ("What's the mark scheme for photosynthesis questions?", ResponseType.MARK_SCHEME),
        ("Show me past exam questions on photosynthesis", ResponseType.EXAM_QUESTION),
        ("Quiz me on cell biology", ResponseType.QUIZ),
        ("What is photosynthesis?", ResponseType.CONTENT_COLLECTOR),
        ("Explain how photosynthesis works", ResponseType.TEACH),
        ("why do leaves change colour", ResponseType.TEACH),
        ("is photosynthesis faster in summer", ResponseType.CONTENT_COLLECTOR),
        ("list the enzymes and tutor me", ResponseType.CONTENT_COLLECTOR),
        (SHORT_AMBIGUOUS, ResponseType.CONTENT_COLLECTOR),
        (LONG_AMBIGUOUS, ResponseType.TEACH),
    ],
)
def test_route_priority_order(
    router: LexicalIntentRouter, query: str, expected: ResponseType
) -> None:
    """
    Each query is routed by the first matching rule.

    Args:
        router (LexicalIntentRouter): The router under test.
        query (str): The user query.
        expected (ResponseType): The expected response type.
    """
    assert router.route(query).response_type is expected


def test_marking_vocabulary_beats_exam_vocabulary(router: LexicalIntentRouter) -> None:
    """
    Queries mentioning both past papers and marking go to the mark scheme.
    """
    query = "Find exam questions on enzymes and grade my answer"
    assert is_exam_question_request(query.lower()) is False
    assert is_mark_scheme_request(query.lower()) is True
    assert router.route(query).response_type is ResponseType.MARK_SCHEME


@pytest.mark.parametrize(
    "query, target",
    [
        ("summarize our conversation", RetrievalTarget.NONE),
        ("Show me past exam questions on photosynthesis", RetrievalTarget.EXAM_PAPERS),
        ("What's the mark scheme for photosynthesis questions?", RetrievalTarget.EXAM_PAPERS),
        ("Quiz me on cell biology", RetrievalTarget.CONTENT),
        ("What is photosynthesis?", RetrievalTarget.CONTENT),
    ],
)
def test_retrieval_target_follows_response_type(
    router: LexicalIntentRouter, query: str, target: RetrievalTarget
) -> None:
    """
    The retrieval target is derived from the response type.

    Args:
        router (LexicalIntentRouter): The router under test.
        query (str): The user query.
        target (RetrievalTarget): The expected retrieval target.
    """
    assert router.route(query).retrieval_target is target


def test_route_flags_contextual_reference(router: LexicalIntentRouter) -> None:
    """
    Routing also reports whether the query refers back to earlier turns.
    """
    decision = router.route("Quiz me on it")
    assert decision.response_type is ResponseType.QUIZ
    assert decision.has_contextual_reference is True
    assert router.route("Quiz me on cell biology").has_contextual_reference is False


def test_route_failure_defaults_to_teach(router: LexicalIntentRouter) -> None:
    """
    Any internal error yields the default teach decision.
    """
    decision = router.route(None)  # type: ignore[arg-type]
    assert decision.response_type is ResponseType.TEACH
    assert decision.retrieval_target is RetrievalTarget.CONTENT
    assert decision.has_contextual_reference is False


def test_short_query_threshold_is_configurable() -> None:
    """
    The ambiguous-query word threshold can be changed.
    """
    assert (
        LexicalIntentRouter(short_query_words=3).route(SHORT_AMBIGUOUS).response_type
        is ResponseType.TEACH
    )


@pytest.mark.anyio
async def test_aroute_matches_route(router: LexicalIntentRouter) -> None:
    """
    The async form returns the same decision as the sync form.
    """
    query = "Explain how photosynthesis works"
    assert await router.aroute(query) == router.route(query)


def test_is_summary_request() -> None:
    """
    Summary detection covers the exact phrase and summary vocabulary.
    """
    assert is_summary_request("SUMMARIZE OUR CONVERSATION") is True
    assert is_summary_request("give me an overview") is True
    assert is_summary_request("summarise the lesson") is True
    assert is_summary_request("photosynthesis in summer") is False
    assert is_summary_request(None) is False


def test_analyze_query_intent_scores() -> None:
    """
    Weighted scores follow the strong and moderate families plus bonuses.
    """
    teach = analyze_query_intent("Explain how photosynthesis works")
    assert teach.teaching == 6
    assert teach.information == 0

    info = analyze_query_intent("What is photosynthesis?")
    assert info.information == 3
    assert info.teaching == 0

    explain_what = analyze_query_intent("explain what osmosis is")
    assert explain_what.information == 1
    assert explain_what.teaching == 2

    yes_no = analyze_query_intent("is photosynthesis faster in summer")
    assert yes_no.information == 2

    exam = analyze_query_intent("show me past exam questions on photosynthesis")
    assert exam.exam_question == 6
    assert exam.mark_scheme == 0
