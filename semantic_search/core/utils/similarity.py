import logging
import math
from typing import Iterable, List, Optional, Sequence

from ..domain.entities.indexed_document import IndexedDocument, ScoredResult
from ..domain.exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)


def cosine_similarity(vector_a: Optional[Sequence[float]], vector_b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two equal-length vectors, in [-1, 1].

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: if either vector is missing/empty or the lengths differ
    """
    if not vector_a or not vector_b:
        raise DimensionMismatchError("Both vectors are required for similarity calculation")
    if len(vector_a) != len(vector_b):
        raise DimensionMismatchError(
            f"Vector dimensions differ: {len(vector_a)} != {len(vector_b)}"
        )

    dot_product = 0.0
    squared_a = 0.0
    squared_b = 0.0
    for a, b in zip(vector_a, vector_b):
        dot_product += a * b
        squared_a += a * a
        squared_b += b * b

    if squared_a == 0 or squared_b == 0:
        return 0.0

    return dot_product / (math.sqrt(squared_a) * math.sqrt(squared_b))


def rank_candidates(
        query_vector: Sequence[float],
        candidates: Iterable[IndexedDocument],
        limit: int,
        threshold: float,
) -> List[ScoredResult]:
    """
    Score every candidate against the query vector and return the best matches.

    Candidates without a vector are ignored and candidates whose stored vector
    cannot be compared are logged and dropped. Results below ``threshold`` are
    filtered out, the rest are sorted by descending score (ties keep the
    candidates' input order) and truncated to ``limit``.
    """
    scored: List[ScoredResult] = []
    for document in candidates:
        if not document.vector:
            continue
        try:
            score = cosine_similarity(query_vector, document.vector)
        except DimensionMismatchError as e:
            logger.warning(
                f"Failed to calculate similarity for document {document.id} "
                f"in {document.collection_id}: {e}"
            )
            continue
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(f"Malformed vector for document {document.id} in {document.collection_id}: {e}")
            continue
        if score >= threshold:
            scored.append(ScoredResult(document=document, score=score))

    # list.sort is stable, so equal scores keep store order
    scored.sort(key=lambda result: result.score, reverse=True)
    return scored[:max(limit, 0)]
