"""Routing policies: pattern families and intent scoring for the lexical router."""

import re
from dataclasses import dataclass

from loguru import logger

_I = re.IGNORECASE


def _words(*alternatives: str) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(alternatives) + r")\b", _I)


SUMMARY_EXACT = "summarize our conversation"

SUMMARY_PATTERNS = (
    re.compile(r"\bsummar(y|ize|ise)", _I),
    re.compile(r"\brecap\b", _I),
    re.compile(r"\boverview\b", _I),
)

MARK_SCHEME_PATTERN = _words(
    "mark scheme",
    "marking scheme",
    "model answer",
    "examiner",
    "how to answer",
    "grading",
    "answers for",
    "mark allocation",
    "marking criteria",
    "sample answers",
    "correct answer",
    "scoring",
    "how marks are awarded",
    "grade scheme",
    "answer scheme",
    "mark against",
    "how to mark",
    "mark my answer",
    "check my answer",
    "assess my answer",
    "evaluate my answer",
    "compare with answers",
    "solution guide",
    "answer key",
    "scoring guide",
    "examiner report",
    "grade my",
    "check against mark scheme",
    "marking guidelines",
    "correct my",
    "score my",
    "marking guide",
)

EXAM_QUESTION_PATTERN = _words(
    "exam",
    "past paper",
    "exam question",
    "exam questions",
    "question paper",
    "past exam",
    "previous exam",
    "exam practice",
    "exam papers",
    "specimen paper",
    "sample paper",
    "revision paper",
    "practice exam",
    "practice question",
    "example question",
    "example questions",
    "past year",
    "previous paper",
    "previous year",
    "exam-style",
    "exam-style question",
    "real exam",
    "biology exam",
    "paper question",
    "past year question",
    "find me questions",
    "show me questions",
    "get exam",
    "find exam",
    "sample exam",
    "get past paper",
    r"paper\s+[123]",
)

MARKING_VOCABULARY = _words(
    "mark",
    "marking",
    "grade",
    "assess",
    "evaluate",
    "correct",
    "score",
    "compare",
    "solution",
    "answer key",
)

QUIZ_PATTERN = re.compile(
    r"quiz|test|questions|question me|assess|assessment|multiple choice|"
    r"practice questions|problem set|exercise|evaluate|check my knowledge|"
    r"test my understanding|give me a quiz",
    _I,
)

INFORMATION_PATTERN = _words(
    "what is",
    "what are",
    "who",
    "when",
    "where",
    "define",
    "list",
    "meaning of",
    "definition of",
    "tell me about",
    "facts about",
    "information on",
    "details on",
    "which chapter",
    "in the textbook",
    "which page",
    "reference",
    "textbook",
    "a-level",
    "section",
    "chapter",
    "where can i find",
    "information about",
    "term",
    "terminology",
    "describe",
    "concept",
    "encyclopedia",
    "biology term",
    "what does",
    "what do",
    "definition",
    "factsheet",
    "quick facts",
    "details",
    "information",
    "key points",
    r"does.*involve",
    "is there",
    "are there",
    "does",
    "is it",
    "are they",
    "can it",
    "can they",
)

TEACHING_PATTERN = _words(
    "explain",
    "teach",
    "help me understand",
    "how does",
    "why does",
    "i want to learn",
    "can you teach",
    "tutor",
    "understand",
    "elaborate",
    "describe the process",
    "show me how",
    "revision",
    "revise",
    "learn about",
    "study",
    "revising",
)

TEACHING_EXCLUSION = _words("explain what", "tell me what", "describe what")

# Weighted families for the information/teaching scores.
STRONG_INFO = tuple(
    re.compile(p, _I)
    for p in (
        r"\bwhat is\b",
        r"\bwhat are\b",
        r"\bdefine\b",
        r"\blist\b",
        r"\bfacts about\b",
        r"\binformation on\b",
        r"\bdetails on\b",
        r"\bfactsheet\b",
        r"\bdefinition of\b",
        r"\bmeaning of\b",
        r"^does\b",
        r"\bis there\b",
        r"\bdo\b.*\binvolve\b",
    )
)

MODERATE_INFO = tuple(
    re.compile(p, _I)
    for p in (
        r"\bwhat does\b",
        r"\bwhat do\b",
        r"\btell me about\b",
        r"\bin the textbook\b",
        r"\bwhich page\b",
        r"\bwhich chapter\b",
        r"\bterm\b",
        r"\bterminology\b",
        r"\bconcept\b",
        r"\bdoes\b.*\binvolve\b",
        r"\bdoes\b.*\buse\b",
        r"\bdoes\b.*\brequire\b",
        r"\bdoes\b.*\boccur\b",
        r"\bis\b.*\bpart of\b",
        r"\bare\b.*\binvolved in\b",
    )
)

STRONG_TEACH = tuple(
    re.compile(p, _I)
    for p in (
        r"\bhelp me understand\b",
        r"\bcan you teach\b",
        r"\bi want to learn\b",
        r"\bexplain how\b",
        r"\bexplain why\b",
        r"\bwhy does\b",
        r"\bwhy do\b",
        r"\btutor\b",
    )
)

MODERATE_TEACH = tuple(
    re.compile(p, _I)
    for p in (
        r"\bexplain\b",
        r"\bunderstand\b",
        r"\belaborate\b",
        r"\bdescribe the process\b",
        r"\bshow me how\b",
        r"\brevision\b",
        r"\brevise\b",
        r"\blearn about\b",
        r"\bstudy\b",
    )
)

EXAM_SCORE_PATTERNS = tuple(
    re.compile(p, _I)
    for p in (
        r"\bpast exam\b",
        r"\bexam question\b",
        r"\bpast paper\b",
        r"\bquestion paper\b",
        r"\bexam papers\b",
        r"\bspecimen paper\b",
        r"\bsample paper\b",
        r"\bpractice exam\b",
        r"\bexam-style\b",
        r"\bexample question\b",
        r"\bget exam\b",
        r"\bfind exam\b",
        r"\bbiology exam\b",
    )
)

EXAM_SCORE_EXCLUSION = _words(
    "mark", "marking", "grade", "assess", "evaluate", "correct", "score"
)

STRONG_WEIGHT = 3
MODERATE_WEIGHT = 2
EXAM_WEIGHT = 4
MARK_SCHEME_WEIGHT = 5

_YES_NO_PREFIXES = ("does ", "is ", "are ", "can ")
_DOMAIN_TERMS = re.compile(
    r"respiration|photosynthesis|mitosis|meiosis|digestion|genetics|inheritance|"
    r"cells|tissues|organs|systems|ecology|evolution|physiology",
    _I,
)
_EXAM_TERMS = re.compile(r"exam|paper|question|practice", _I)
_ASSESSING_TERMS = re.compile(r"answer|marking|grade|score|assess|evaluate|correct", _I)
_EXAM_CONTENT_TERMS = re.compile(r"paper|exam|question", _I)


@dataclass
class IntentScores:
    """
    Weighted evidence for each intent category.
    """

    information: int = 0
    teaching: int = 0
    exam_question: int = 0
    mark_scheme: int = 0


def is_summary_request(text: str | None) -> bool:
    """
    Return True for requests to summarize or recap the conversation.

    Args:
        text (str | None): The user query.

    Returns:
        bool: Whether the query is a summary request.
    """
    if not text:
        return False
    normalized = " ".join(text.lower().split())
    if normalized == SUMMARY_EXACT:
        return True
    return any(p.search(normalized) for p in SUMMARY_PATTERNS)


def is_mark_scheme_request(text: str | None) -> bool:
    """Return True if the query asks for mark schemes, marking, or model answers."""
    return bool(text) and MARK_SCHEME_PATTERN.search(text) is not None


def is_exam_question_request(text: str | None) -> bool:
    """
    Return True for past-paper requests that carry no marking vocabulary.

    Marking vocabulary always defers the query to the mark-scheme rule.
    """
    if not text:
        return False
    return (
        EXAM_QUESTION_PATTERN.search(text) is not None
        and MARKING_VOCABULARY.search(text) is None
    )


def is_quiz_request(text: str | None) -> bool:
    """Return True if the query asks to be quizzed or tested."""
    return bool(text) and QUIZ_PATTERN.search(text) is not None


def is_information_query(text: str | None) -> bool:
    """Return True if the query matches any information-seeking phrase."""
    return bool(text) and INFORMATION_PATTERN.search(text) is not None


def is_teaching_query(text: str | None) -> bool:
    """Return True if the query asks to be taught, excluding 'explain what' style phrasing."""
    if not text:
        return False
    return (
        TEACHING_PATTERN.search(text) is not None
        and TEACHING_EXCLUSION.search(text) is None
    )


def analyze_query_intent(text: str) -> IntentScores:
    """
    Score a query against the weighted information and teaching families.

    Exam-question and mark-scheme scores are computed for diagnostics only.

    Args:
        text (str): The user query.

    Returns:
        IntentScores: The non-negative category scores.
    """
    normalized = text.lower().strip()
    scores = IntentScores()

    scores.information += STRONG_WEIGHT * sum(
        1 for p in STRONG_INFO if p.search(normalized)
    )
    scores.information += MODERATE_WEIGHT * sum(
        1 for p in MODERATE_INFO if p.search(normalized)
    )
    scores.teaching += STRONG_WEIGHT * sum(
        1 for p in STRONG_TEACH if p.search(normalized)
    )
    scores.teaching += MODERATE_WEIGHT * sum(
        1 for p in MODERATE_TEACH if p.search(normalized)
    )

    if not EXAM_SCORE_EXCLUSION.search(normalized):
        scores.exam_question += EXAM_WEIGHT * sum(
            1 for p in EXAM_SCORE_PATTERNS if p.search(normalized)
        )
    scores.mark_scheme += MARK_SCHEME_WEIGHT * len(
        {m.group(0).lower() for m in MARK_SCHEME_PATTERN.finditer(normalized)}
    )

    if re.search(r"\bhow\b.*\bwork", normalized):
        scores.teaching += 1
    if re.search(r"\bwhy\b.*\bhappen", normalized):
        scores.teaching += 1
    if re.search(r"\bwhy\b", normalized):
        scores.teaching += 1
    if re.search(r"\bexplain what\b", normalized):
        scores.information += 1

    if normalized.startswith(_YES_NO_PREFIXES):
        if scores.information == 0 and scores.teaching == 0:
            scores.information += 2
            logger.debug("Yes/no question detected; information score set to 2")

    if _DOMAIN_TERMS.search(normalized) and _EXAM_TERMS.search(normalized):
        scores.exam_question += 2
    if _ASSESSING_TERMS.search(normalized) and _EXAM_CONTENT_TERMS.search(normalized):
        scores.mark_scheme += 3

    logger.debug(
        "Intent scores for '{}': information={}, teaching={}, exam={}, mark_scheme={}",
        normalized[:100],
        scores.information,
        scores.teaching,
        scores.exam_question,
        scores.mark_scheme,
    )
    return scores
