"""Snippet extraction for search result previews."""

import re

ELLIPSIS = "..."

# Sentence-ending punctuation followed by whitespace
_SENTENCE_END = re.compile(r"[.!?]\s+")


def make_snippet(text: str, max_length: int) -> str:
    """Trim text to at most ``max_length`` characters for display.

    Prefers to stop after a full sentence, falls back to the last word
    boundary, and only cuts mid-word when the text has no whitespace. An
    ellipsis is appended when the cut falls inside a sentence.

    Args:
        text: Plain text (a stripped excerpt).
        max_length: Maximum snippet length, ellipsis included.

    Returns:
        The snippet.
    """
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) <= max_length:
        return text

    budget = max(max_length - len(ELLIPSIS), 1)
    window = text[: budget + 1]

    sentence_ends = list(_SENTENCE_END.finditer(window))
    # Only accept a sentence boundary that keeps at least half the budget
    if sentence_ends and sentence_ends[-1].start() + 1 >= budget // 2:
        return window[: sentence_ends[-1].start() + 1]

    cut = window.rfind(" ")
    if cut <= 0:
        cut = budget
    return window[:cut].rstrip(" ,;:-") + ELLIPSIS
