import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List

from ...core.ports.embedding_service import EmbeddingService
from ...core.domain.value_objects.embedding import EmbeddingResult, EmbeddingVector
from ...core.domain.exceptions import (
    InvalidInputError,
    ProviderNotConfiguredError,
    ProviderUnavailableError,
)
from ...core.utils.text_normalizer import normalize_text, MAX_TEXT_LENGTH, MIN_TEXT_LENGTH

logger = logging.getLogger(__name__)


class BaseEmbeddingService(EmbeddingService, ABC):
    """
    Base class for embedding services with common functionality.

    Subclasses only implement the single provider request; normalization,
    the initialization guard and batch grouping live here.
    """

    provider_name = "base"

    def __init__(
            self,
            model_name: str,
            timeout: float = 60,
            batch_size: int = 10,
            batch_delay: float = 1.0,
            max_text_length: int = MAX_TEXT_LENGTH,
            min_text_length: int = MIN_TEXT_LENGTH,
    ):
        self.model_name = model_name
        self.timeout = timeout
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_text_length = max_text_length
        self.min_text_length = min_text_length
        self._dimensions = None

    @abstractmethod
    async def _request_embedding(self, text: str) -> List[float]:
        """Send one normalized text to the provider and return its vector"""
        pass

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise ProviderNotConfiguredError(
                f"{self.provider_name} embedding service not initialized. Check your configuration."
            )

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Normalize text and embed it with a single provider call"""
        self._ensure_configured()

        processed_text = normalize_text(
            text,
            max_length=self.max_text_length,
            min_length=self.min_text_length,
        )

        values = await self._request_embedding(processed_text)
        if not values:
            raise ProviderUnavailableError("Provider returned an empty embedding")

        self._dimensions = len(values)
        logger.debug(f"Generated embedding for text of length {len(processed_text)}")

        return EmbeddingResult(
            vector=EmbeddingVector(
                values=list(values),
                model_name=self.model_name,
                dimensions=len(values),
            ),
            processed_text=processed_text,
            original_length=len(text),
            processed_length=len(processed_text),
        )

    async def generate_embeddings_batch(self, texts: List[str]) -> List[EmbeddingResult]:
        """
        Embed texts in groups of ``batch_size``.

        Groups run one after another with ``batch_delay`` seconds between
        them; items inside a group are embedded concurrently. The first
        failing item fails the whole batch, no partial result is returned.
        """
        if not texts:
            raise InvalidInputError("Texts are required for batch embedding generation")
        self._ensure_configured()

        results: List[EmbeddingResult] = []
        total = len(texts)
        logger.info(f"Generating embeddings for {total} texts (batch_size={self.batch_size})")

        for start in range(0, total, self.batch_size):
            group = texts[start:start + self.batch_size]
            try:
                # gather keeps input order regardless of completion order
                group_results = await asyncio.gather(
                    *(self.generate_embedding(text) for text in group)
                )
            except Exception as e:
                logger.error(f"Batch embedding generation failed for batch starting at index {start}: {e}")
                raise
            results.extend(group_results)

            if start + self.batch_size < total:
                await asyncio.sleep(self.batch_delay)

        logger.info(f"Successfully generated {len(results)} embeddings")
        return results
