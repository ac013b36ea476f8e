"""Core utilities"""
from .similarity import cosine_similarity, rank_candidates
from .text_normalizer import (
    normalize_text,
    MAX_TEXT_LENGTH,
    MIN_TEXT_LENGTH,
    TRUNCATION_MARKER,
)

__all__ = [
    "cosine_similarity",
    "rank_candidates",
    "normalize_text",
    "MAX_TEXT_LENGTH",
    "MIN_TEXT_LENGTH",
    "TRUNCATION_MARKER",
]
