from abc import ABC, abstractmethod
from typing import List, Dict, Any
from ..domain.value_objects.embedding import EmbeddingResult


class EmbeddingService(ABC):
    """Port for embedding generation services"""

    @abstractmethod
    def initialize(self, **credentials: Any) -> None:
        """
        Prepare the provider handle.

        Must be called once before any embedding is generated; services that
        were never initialized raise ProviderNotConfiguredError.
        """
        pass

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether initialize() succeeded"""
        pass

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for a single text.

        Args:
            text: Raw text to embed; it is normalized before the provider call

        Returns:
            EmbeddingResult with the vector and the normalized text
        """
        pass

    @abstractmethod
    async def generate_embeddings_batch(self, texts: List[str]) -> List[EmbeddingResult]:
        """
        Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed

        Returns:
            One EmbeddingResult per input, in input order
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """Return information about the embedding model"""
        pass

    async def close(self) -> None:
        """Release network resources held by the service"""
        pass
