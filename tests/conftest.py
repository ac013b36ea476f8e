"""
Shared pytest fixtures for all tests.

This module provides reusable fixtures for:
- A deterministic embedding service built on the real base class
- A mock document store
- Sample indexed documents
"""

import math
from typing import Dict, List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from semantic_search.adapters.embedding.base_embedding import BaseEmbeddingService
from semantic_search.core.domain.entities.indexed_document import IndexedDocument
from semantic_search.core.ports.document_store import DocumentStore


class StaticEmbeddingService(BaseEmbeddingService):
    """
    Embedding service returning preset vectors.

    Texts are looked up after normalization; unknown texts get
    ``default_vector``. Every provider call is recorded in ``requests``.
    """

    provider_name = "static"

    def __init__(
            self,
            vectors: Optional[Dict[str, List[float]]] = None,
            default_vector: Sequence[float] = (1.0, 0.0),
            errors: Optional[Dict[str, Exception]] = None,
            **kwargs,
    ):
        kwargs.setdefault("batch_delay", 0)
        super().__init__(model_name="static-model", **kwargs)
        self.vectors = vectors or {}
        self.default_vector = list(default_vector)
        self.errors = errors or {}
        self.requests: List[str] = []
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return self._configured

    def initialize(self, **_) -> None:
        self._configured = True

    async def _request_embedding(self, text: str) -> List[float]:
        self.requests.append(text)
        if text in self.errors:
            raise self.errors[text]
        return self.vectors.get(text, self.default_vector)

    def get_model_info(self):
        return {"provider": self.provider_name, "model_name": self.model_name}


def unit_vector_with_score(score: float) -> List[float]:
    """2-d vector whose cosine similarity with [1, 0] equals ``score``"""
    return [score, math.sqrt(max(0.0, 1 - score * score))]


# ============================================================================
# SAMPLE DOMAIN ENTITIES
# ============================================================================

@pytest.fixture
def make_document():
    """Factory for indexed documents."""
    def _make(
            doc_id: str,
            vector: Optional[List[float]] = None,
            collection_id: str = "articles",
            **fields,
    ) -> IndexedDocument:
        return IndexedDocument(
            id=doc_id,
            collection_id=collection_id,
            fields={"title": f"Document {doc_id}", **fields},
            vector=vector,
            metadata={"model": "static-model", "dimensions": len(vector)} if vector else None,
        )
    return _make


@pytest.fixture
def scored_documents(make_document) -> List[IndexedDocument]:
    """Five documents scoring 0.9, 0.6, 0.4, 0.8, 0.2 against the query vector [1, 0]."""
    scores = [0.9, 0.6, 0.4, 0.8, 0.2]
    return [
        make_document(f"doc-{i}", unit_vector_with_score(score))
        for i, score in enumerate(scores)
    ]


# ============================================================================
# MOCK SERVICES
# ============================================================================

@pytest.fixture
def embedding_service() -> StaticEmbeddingService:
    """Initialized embedding service whose default query vector is [1, 0]."""
    service = StaticEmbeddingService()
    service.initialize()
    return service


@pytest.fixture
def mock_document_store() -> DocumentStore:
    """Mock document store; tests set find_many/count/update behavior."""
    store = AsyncMock(spec=DocumentStore)
    store.find_many.return_value = []
    store.count.return_value = 0
    return store
