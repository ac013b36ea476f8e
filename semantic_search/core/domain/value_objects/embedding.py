from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class EmbeddingVector:
    """Value object representing an embedding vector"""
    values: List[float]
    model_name: str
    dimensions: int

    def __post_init__(self):
        if len(self.values) != self.dimensions:
            raise ValueError(f"Expected {self.dimensions} dimensions, got {len(self.values)}")


@dataclass(frozen=True)
class EmbeddingMetadata:
    """
    Describes how a stored vector was produced.

    Written next to the vector and replaced as a whole whenever the
    document is re-embedded.
    """
    model: str
    generated_at: str
    dimensions: int
    processed_text: str
    original_length: int
    processed_length: int

    def to_dict(self) -> Dict[str, Any]:
        """Persisted representation of the metadata field"""
        return {
            "model": self.model,
            "generatedAt": self.generated_at,
            "dimensions": self.dimensions,
            "processedText": self.processed_text,
            "originalLength": self.original_length,
            "processedLength": self.processed_length,
        }


@dataclass(frozen=True)
class EmbeddingResult:
    """Outcome of embedding one text"""
    vector: EmbeddingVector
    processed_text: str
    original_length: int
    processed_length: int

    @property
    def values(self) -> List[float]:
        return self.vector.values

    def to_metadata(self, generated_at: Optional[datetime] = None) -> EmbeddingMetadata:
        generated_at = generated_at or datetime.now(UTC)
        return EmbeddingMetadata(
            model=self.vector.model_name,
            generated_at=generated_at.isoformat(),
            dimensions=self.vector.dimensions,
            processed_text=self.processed_text,
            original_length=self.original_length,
            processed_length=self.processed_length,
        )


@dataclass(frozen=True)
class SearchQuery:
    """Value object representing a search query"""
    text: str
    collection_ids: List[str]
    limit: int = 10
    threshold: float = 0.1
    filters: Dict[str, Any] = field(default_factory=dict)
    include_embedding: bool = False
    locale: Optional[str] = None

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if not -1 <= self.threshold <= 1:
            raise ValueError("threshold must be between -1 and 1")
