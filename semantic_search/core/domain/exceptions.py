from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""
    kind = "domain_error"

    @property
    def public_message(self) -> str:
        """Text that may be shown to API clients"""
        return str(self)


class InvalidInputError(DomainException):
    """Raised when a required query, collection or text is missing or malformed"""
    kind = "invalid_input"


class CollectionNotFoundError(DomainException):
    """Raised when a collection is not known to the service"""
    kind = "collection_not_found"


class DocumentNotFoundError(DomainException):
    """Raised when a document is not found"""
    kind = "document_not_found"


class TextTooShortError(DomainException):
    """Raised when normalized text is too short for a meaningful embedding"""
    kind = "text_too_short"

    def __init__(self, message: str, length: int = 0, min_length: int = 0):
        super().__init__(message)
        self.length = length
        self.min_length = min_length


class DimensionMismatchError(DomainException):
    """Raised when two vectors cannot be compared"""
    kind = "dimension_mismatch"


class EmbeddingProviderError(DomainException):
    """Base class for failures reported by (or about) the embedding provider.

    ``kind`` is a stable identifier safe to expose to API clients; the
    exception message may contain provider details and is only logged.
    """
    kind = "provider_unavailable"
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def public_message(self) -> str:
        return PROVIDER_ERROR_MESSAGES.get(self.kind, "Embedding provider error")


class ProviderNotConfiguredError(EmbeddingProviderError):
    """Raised when the embedding provider is used before initialization"""
    kind = "provider_not_configured"


class QuotaExceededError(EmbeddingProviderError):
    """Raised when the provider account has run out of quota"""
    kind = "quota_exceeded"


class InvalidCredentialsError(EmbeddingProviderError):
    """Raised when the provider rejects the configured credentials"""
    kind = "invalid_credentials"


class RateLimitedError(EmbeddingProviderError):
    """Raised when the provider throttles requests; safe to retry after backoff"""
    kind = "rate_limited"
    retryable = True


class ProviderUnavailableError(EmbeddingProviderError):
    """Raised for any other provider failure (timeouts, 5xx, malformed responses)"""
    kind = "provider_unavailable"


PROVIDER_ERROR_MESSAGES = {
    ProviderNotConfiguredError.kind: "Embedding provider is not configured",
    QuotaExceededError.kind: "Embedding provider quota exceeded",
    InvalidCredentialsError.kind: "Embedding provider rejected the configured credentials",
    RateLimitedError.kind: "Embedding provider rate limit exceeded, retry later",
    ProviderUnavailableError.kind: "Embedding provider unavailable",
}
