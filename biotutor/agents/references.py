"""Detection of back-references to earlier turns ("tell me more about this")."""

import re

CONTEXTUAL_REFERENCE_PATTERNS = (
    re.compile(
        r"\b(this|it|that|these|those|their|they|the topic|the concept|"
        r"the process|he|she|we|us|our|its)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(refer|previous|earlier|before|last|mentioned|above|said)\b",
        re.IGNORECASE,
    ),
)


def has_contextual_reference(text: str | None) -> bool:
    """
    Return True if the text contains anaphora or back-reference wording.

    Args:
        text (str | None): The latest user message.

    Returns:
        bool: Whether any reference word appears as a whole word.
    """
    if not text:
        return False
    return any(p.search(text) for p in CONTEXTUAL_REFERENCE_PATTERNS)
