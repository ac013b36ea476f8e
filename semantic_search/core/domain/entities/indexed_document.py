from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


@dataclass
class IndexedDocument:
    """Domain entity representing a stored record that may carry an embedding"""
    id: str
    collection_id: str
    fields: Dict[str, Any] = field(default_factory=dict)
    vector: Optional[List[float]] = None
    metadata: Optional[Dict[str, Any]] = None
    locale: Optional[str] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.vector)

    def without_embedding(self) -> "IndexedDocument":
        """Copy of the document with vector and embedding metadata removed"""
        return replace(self, vector=None, metadata=None)

    def to_dict(self, include_embedding: bool = True) -> Dict[str, Any]:
        # identity keys are written last so stored fields cannot shadow them
        data: Dict[str, Any] = {
            **self.fields,
            "id": self.id,
            "collection_id": self.collection_id,
            "locale": self.locale,
        }
        if include_embedding:
            data["vector"] = self.vector
            data["metadata"] = self.metadata
        return data


@dataclass
class ScoredResult:
    """A document paired with its similarity to the query"""
    document: IndexedDocument
    score: float
    collection_id: Optional[str] = None

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        data = self.document.to_dict(include_embedding=include_embedding)
        data["similarity_score"] = self.score
        if self.collection_id is not None:
            data["collection_id"] = self.collection_id
        return data


@dataclass
class SearchResult:
    """Ranked results of a single-collection search"""
    query: str
    collection_id: str
    results: List[ScoredResult]
    metadata: Dict[str, Any]
    include_embedding: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "collection_id": self.collection_id,
            "results": [r.to_dict(include_embedding=self.include_embedding) for r in self.results],
            "metadata": self.metadata,
        }


@dataclass
class CollectionSearchError:
    """Recorded failure of one collection inside a multi-collection search"""
    collection_id: str
    kind: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "results": [],
            "error": {"kind": self.kind, "message": self.message},
        }


@dataclass
class MultiSearchResult:
    """Outcome of a search across several collections"""
    query: str
    collection_ids: List[str]
    aggregated: bool
    results: List[ScoredResult] = field(default_factory=list)
    collection_results: List[SearchResult] = field(default_factory=list)
    errors: List[CollectionSearchError] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def successful_searches(self) -> int:
        return len(self.collection_ids) - len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        if self.aggregated:
            results: List[Dict[str, Any]] = [r.to_dict() for r in self.results]
        else:
            # one block per collection, in request order
            blocks = {r.collection_id: r.to_dict() for r in self.collection_results}
            blocks.update({e.collection_id: e.to_dict() for e in self.errors})
            results = [blocks[c] for c in self.collection_ids if c in blocks]
        return {
            "query": self.query,
            "collection_ids": self.collection_ids,
            "results": results,
            "errors": [e.to_dict()["error"] | {"collection_id": e.collection_id} for e in self.errors],
            "metadata": self.metadata,
        }
