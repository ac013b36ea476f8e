from fastapi import Request, HTTPException, Depends

from ..config import settings

# Port interfaces
from ..core.ports.embedding_service import EmbeddingService
from ..core.ports.document_store import DocumentStore

# Use-case classes
from ..core.use_cases.semantic_search import SemanticSearchUseCase
from ..core.use_cases.embedding_stats import EmbeddingStatsUseCase
from ..core.use_cases.embedding_indexing import EmbeddingIndexingUseCase


# Dependency provider functions
def get_embedding_service(request: Request) -> EmbeddingService:
    embedder = getattr(request.app.state, "embedding_service", None)
    if embedder is None:
        raise HTTPException(status_code=500, detail="EmbeddingService not initialized")
    return embedder


def get_document_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "document_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="DocumentStore not initialized")
    return store


def get_semantic_search_use_case(
        embedding_service: EmbeddingService = Depends(get_embedding_service),
        document_store: DocumentStore = Depends(get_document_store),
) -> SemanticSearchUseCase:
    return SemanticSearchUseCase(
        embedding_service=embedding_service,
        document_store=document_store,
        known_collections=settings.COLLECTION_FIELDS.keys(),
        default_limit=settings.SEARCH_DEFAULT_LIMIT,
        max_limit=settings.SEARCH_MAX_LIMIT,
        default_threshold=settings.SEARCH_DEFAULT_THRESHOLD,
        retrieval_ceiling=settings.SEARCH_RETRIEVAL_CEILING,
        aggregation_overfetch=settings.SEARCH_AGGREGATION_OVERFETCH,
    )


def get_embedding_stats_use_case(
        document_store: DocumentStore = Depends(get_document_store),
) -> EmbeddingStatsUseCase:
    return EmbeddingStatsUseCase(
        document_store=document_store,
        known_collections=settings.COLLECTION_FIELDS.keys(),
    )


def get_embedding_indexing_use_case(
        embedding_service: EmbeddingService = Depends(get_embedding_service),
        document_store: DocumentStore = Depends(get_document_store),
) -> EmbeddingIndexingUseCase:
    return EmbeddingIndexingUseCase(
        embedding_service=embedding_service,
        document_store=document_store,
        collection_fields=settings.COLLECTION_FIELDS,
        min_text_length=settings.TEXT_MIN_LENGTH,
        retrieval_ceiling=settings.SEARCH_RETRIEVAL_CEILING,
    )
