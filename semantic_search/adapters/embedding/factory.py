import logging
from typing import Optional

import httpx

from .openai_embedding import OpenAIEmbeddingService
from .ollama_embedding import OllamaEmbeddingService
from .base_embedding import BaseEmbeddingService
from ...config import AppSettings

logger = logging.getLogger(__name__)


def build_embedding_service(
        settings: AppSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseEmbeddingService:
    """Create and initialize the embedding service selected by EMBEDDING_PROVIDER"""
    common = dict(
        timeout=settings.EMBEDDING_TIMEOUT,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
        batch_delay=settings.EMBEDDING_BATCH_DELAY,
        max_text_length=settings.TEXT_MAX_LENGTH,
        min_text_length=settings.TEXT_MIN_LENGTH,
        transport=transport,
    )

    provider = settings.EMBEDDING_PROVIDER.lower()
    if provider == "openai":
        service = OpenAIEmbeddingService(
            base_url=str(settings.OPENAI_BASE_URL),
            model_name=settings.OPENAI_EMBEDDING_MODEL,
            **common,
        )
        api_key = settings.OPENAI_API_KEY.get_secret_value() if settings.OPENAI_API_KEY else None
        service.initialize(api_key=api_key)
    elif provider == "ollama":
        service = OllamaEmbeddingService(
            base_url=str(settings.OLLAMA_EMBEDDING_BASE_URL),
            model_name=settings.OLLAMA_EMBEDDING_MODEL,
            **common,
        )
        service.initialize()
    else:
        raise RuntimeError(f"Unsupported EMBEDDING_PROVIDER: {settings.EMBEDDING_PROVIDER}")

    logger.info(f"Embedding provider selected: {provider} (configured={service.is_configured})")
    return service
