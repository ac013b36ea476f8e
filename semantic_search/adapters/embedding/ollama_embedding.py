import httpx
import logging
from typing import Any, Dict, List, Optional

from .base_embedding import BaseEmbeddingService
from ...core.domain.exceptions import (
    EmbeddingProviderError,
    InvalidCredentialsError,
    ProviderUnavailableError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


class OllamaEmbeddingService(BaseEmbeddingService):
    """Ollama implementation; a local server needs no credentials"""

    provider_name = "ollama"

    def __init__(
            self,
            base_url: str = "http://localhost:11434",
            model_name: str = "mxbai-embed-large",
            transport: Optional[httpx.AsyncBaseTransport] = None,
            **kwargs: Any,
    ):
        super().__init__(model_name=model_name, **kwargs)
        self.base_url = base_url.rstrip('/')
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def initialize(self, **_: Any) -> None:
        # Use more conservative limits for local connections
        limits = httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            limits=limits,
            follow_redirects=True,
            transport=self._transport,
        )
        logger.info(f"Ollama embedding service initialized (model={self.model_name}, url={self.base_url})")

    async def _request_embedding(self, text: str) -> List[float]:
        try:
            response = await self.client.post(
                "/api/embed",
                json={"model": self.model_name, "input": text},
            )
            response.raise_for_status()
            embeddings = response.json().get("embeddings")
            if not embeddings:
                raise ProviderUnavailableError("No embeddings in response")
            return embeddings[0]

        except httpx.HTTPStatusError as e:
            error = self._classify_error(e.response.status_code)
            logger.error(f"Ollama error: HTTP {e.response.status_code} - {e.response.text}")
            raise error from e
        except httpx.TimeoutException as e:
            logger.error(f"Timeout after {self.timeout}s waiting for Ollama")
            raise ProviderUnavailableError("Embedding request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Request error talking to Ollama: {e}")
            raise ProviderUnavailableError(f"Embedding request failed: {e}") from e
        except (AttributeError, ValueError) as e:
            logger.error(f"Malformed Ollama response: {e}")
            raise ProviderUnavailableError("Malformed embedding response") from e

    @staticmethod
    def _classify_error(status_code: int) -> EmbeddingProviderError:
        if status_code in (401, 403):
            return InvalidCredentialsError("Ollama rejected the request credentials", status_code)
        if status_code == 429:
            return RateLimitedError("Ollama rate limit exceeded", status_code)
        return ProviderUnavailableError(f"Ollama returned HTTP {status_code}", status_code)

    def get_model_info(self) -> Dict[str, Any]:
        """Return embedding model information"""
        dimensions = self._dimensions
        if dimensions is None:
            dimension_map = {
                "mxbai-embed-large": 1024,
                "nomic-embed-text": 768,
                "all-minilm": 384,
            }
            dimensions = next(
                (dim for model, dim in dimension_map.items() if model in self.model_name),
                None
            )
        return {
            "model_name": self.model_name,
            "dimensions": dimensions,
            "provider": self.provider_name,
            "base_url": self.base_url,
            "batch_size": self.batch_size,
            "configured": self.is_configured,
        }

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
