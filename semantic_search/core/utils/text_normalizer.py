import re

from ..domain.exceptions import InvalidInputError, TextTooShortError

MAX_TEXT_LENGTH = 8000
MIN_TEXT_LENGTH = 10
TRUNCATION_MARKER = "..."

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(
        raw_text: str,
        max_length: int = MAX_TEXT_LENGTH,
        min_length: int = MIN_TEXT_LENGTH,
) -> str:
    """
    Clean raw text before it is sent for embedding.

    Markup tags become a single space, whitespace runs collapse to one
    space, and text over ``max_length`` is cut at that character count with
    ``TRUNCATION_MARKER`` appended (so a truncated result is
    ``max_length + len(TRUNCATION_MARKER)`` characters long).

    Raises:
        InvalidInputError: if no text was given
        TextTooShortError: if the normalized text is shorter than ``min_length``
    """
    if raw_text is None or not isinstance(raw_text, str):
        raise InvalidInputError("Text is required for embedding generation")

    cleaned = _TAG_RE.sub(" ", raw_text)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()

    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + TRUNCATION_MARKER

    if len(cleaned) < min_length:
        raise TextTooShortError(
            f"Text too short for meaningful embedding ({len(cleaned)} < {min_length} characters)",
            length=len(cleaned),
            min_length=min_length,
        )

    return cleaned
