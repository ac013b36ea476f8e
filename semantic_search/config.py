from pydantic_settings import BaseSettings
from pydantic import Field, HttpUrl, SecretStr, ValidationError
from typing import Dict, List, Optional, Literal
import logging

from .core.domain.value_objects.field_value import DEFAULT_TEXT_FIELDS

logger = logging.getLogger(__name__)


class CriticalConfigError(Exception):
    """Custom exception for critical configuration failures."""
    pass


class AppSettings(BaseSettings):
    # Pydantic model configuration
    model_config = {
        'extra': 'ignore',
        'env_file': '.env',
        'env_file_encoding': 'utf-8',
        'validate_default': True,
    }

    # -- Embedding provider selection --
    EMBEDDING_PROVIDER: Literal['openai', 'ollama'] = Field(
        default='openai',
        description="Which embedding provider to use: openai or ollama."
    )

    # OpenAI
    OPENAI_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="OpenAI API key used for embedding generation."
    )
    OPENAI_BASE_URL: HttpUrl = Field(
        default='https://api.openai.com/v1',
        description="OpenAI compatible API base URL."
    )
    OPENAI_EMBEDDING_MODEL: str = Field(
        default="text-embedding-ada-002",
        description="OpenAI embedding model."
    )

    # Ollama
    OLLAMA_EMBEDDING_BASE_URL: HttpUrl = Field(
        default='http://localhost:11434',
        description='Ollama Embedding base URL.'
    )
    OLLAMA_EMBEDDING_MODEL: str = Field(
        default="mxbai-embed-large",
        description="The Ollama embedding model to be used."
    )

    # Embedding requests
    EMBEDDING_TIMEOUT: int = Field(
        default=60,
        description="Timeout per embedding request (seconds)."
    )
    EMBEDDING_BATCH_SIZE: int = Field(
        default=10,
        gt=0,
        description="Number of texts embedded concurrently within one batch group."
    )
    EMBEDDING_BATCH_DELAY: float = Field(
        default=1.0,
        ge=0,
        description="Pause between batch groups (seconds) to stay under provider rate limits."
    )

    # Text preprocessing
    TEXT_MAX_LENGTH: int = Field(
        default=8000,
        gt=0,
        description="Normalized text longer than this is truncated before embedding."
    )
    TEXT_MIN_LENGTH: int = Field(
        default=10,
        ge=0,
        description="Normalized text shorter than this is rejected as too short."
    )

    # Search
    SEARCH_DEFAULT_LIMIT: int = Field(default=10, gt=0)
    SEARCH_MAX_LIMIT: int = Field(default=50, gt=0)
    SEARCH_DEFAULT_THRESHOLD: float = Field(default=0.1, ge=-1, le=1)
    SEARCH_RETRIEVAL_CEILING: int = Field(
        default=1000,
        gt=0,
        description="Maximum number of candidates fetched from the store per search."
    )
    SEARCH_AGGREGATION_OVERFETCH: float = Field(
        default=1.5,
        ge=1,
        description="Per-collection limit multiplier for aggregated multi-collection search."
    )

    # Collections and auto-indexing
    COLLECTION_FIELDS: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "api::article.article": list(DEFAULT_TEXT_FIELDS),
            "api::blog.blog": list(DEFAULT_TEXT_FIELDS),
        },
        description="JSON mapping of collection id to the ordered fields used for text extraction."
    )
    AUTO_INDEX_ENABLED: bool = Field(
        default=True,
        description="Attach embeddings to documents on create/update."
    )
    AUTO_INDEX_EXCLUDED_PREFIXES: List[str] = Field(
        default_factory=lambda: ["admin::", "plugin::"],
        description="Collection id prefixes of internal collections that are never embedded."
    )

    # Database (SQLite) for document persistence
    DATABASE_URL: str = Field("sqlite+aiosqlite:///./data/semantic_search.db")

    # FastAPI settings
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8000)
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")


# Instantiate settings. This will load, validate, and expose the settings.
# Pydantic will raise a ValidationError if required fields are missing or types are wrong.
try:
    settings = AppSettings()
except ValidationError as e:
    error_messages = []
    for error in e.errors():
        field = ".".join(str(loc) for loc in error['loc'])
        message = error['msg']
        error_messages.append(f"  - Field '{field}': {message}")

    full_error_message = "Environment variable validation failed!\n" + "\n".join(error_messages) + \
                         "\nPlease check your .env file or environment settings."
    logger.error(full_error_message)

    raise CriticalConfigError(full_error_message) from e
