import httpx
import logging
from typing import Any, Dict, List, Optional

from .base_embedding import BaseEmbeddingService
from ...core.domain.exceptions import (
    EmbeddingProviderError,
    InvalidCredentialsError,
    ProviderUnavailableError,
    QuotaExceededError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


class OpenAIEmbeddingService(BaseEmbeddingService):
    """Embedding service for the OpenAI embeddings API (and compatible endpoints)"""

    provider_name = "openai"

    def __init__(
            self,
            base_url: str = "https://api.openai.com/v1",
            model_name: str = "text-embedding-ada-002",
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

    def initialize(self, api_key: Optional[str] = None, **_: Any) -> None:
        """Create the HTTP client; without an API key the service stays unconfigured"""
        if not api_key:
            logger.warning("OpenAI API key not found. Embedding service will not function.")
            return

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=self._transport,
        )
        logger.info(f"OpenAI embedding service initialized (model={self.model_name})")

    async def _request_embedding(self, text: str) -> List[float]:
        try:
            response = await self.client.post(
                "/embeddings",
                json={"model": self.model_name, "input": text},
            )
            response.raise_for_status()
            body = response.json()
            return body["data"][0]["embedding"]

        except httpx.HTTPStatusError as e:
            error = self._classify_error(e.response)
            logger.error(
                f"Failed to generate embedding: HTTP {e.response.status_code} ({error.kind}) - {e.response.text}"
            )
            raise error from e
        except httpx.TimeoutException as e:
            logger.error(f"Embedding request timed out after {self.timeout}s")
            raise ProviderUnavailableError("Embedding request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Embedding request failed: {e}")
            raise ProviderUnavailableError(f"Embedding request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed embedding response: {e}")
            raise ProviderUnavailableError("Malformed embedding response") from e

    @staticmethod
    def _classify_error(response: httpx.Response) -> EmbeddingProviderError:
        """Map an OpenAI error response to the provider error taxonomy"""
        status_code = response.status_code
        code = None
        try:
            error_body = response.json().get("error") or {}
            code = error_body.get("code") or error_body.get("type")
        except (ValueError, AttributeError):
            pass

        if code == "insufficient_quota":
            return QuotaExceededError("OpenAI API quota exceeded", status_code)
        if code == "invalid_api_key" or status_code == 401:
            return InvalidCredentialsError("Invalid OpenAI API key", status_code)
        if code == "rate_limit_exceeded" or status_code == 429:
            return RateLimitedError("OpenAI API rate limit exceeded", status_code)
        return ProviderUnavailableError(f"OpenAI API returned HTTP {status_code}", status_code)

    def get_model_info(self) -> Dict[str, Any]:
        """Return embedding model information"""
        return {
            "model_name": self.model_name,
            "dimensions": self._dimensions,
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
