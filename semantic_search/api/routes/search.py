from typing import Optional, List, Dict, Any
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ...api.deps import (
    get_semantic_search_use_case,
    get_embedding_stats_use_case,
    get_embedding_indexing_use_case,
)
from ...core.use_cases.semantic_search import SemanticSearchUseCase
from ...core.use_cases.embedding_stats import EmbeddingStatsUseCase
from ...core.use_cases.embedding_indexing import EmbeddingIndexingUseCase

router = APIRouter()


# Pydantic models for request/response
class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    collection_id: str = Field(..., min_length=1)
    limit: Optional[int] = Field(None, gt=0, description="Capped at SEARCH_MAX_LIMIT")
    threshold: Optional[float] = Field(None, ge=-1, le=1)
    filters: Optional[Dict[str, Any]] = None
    locale: Optional[str] = None


class FilteredSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    collection_id: str = Field(..., min_length=1)
    limit: Optional[int] = Field(None, gt=0)
    threshold: Optional[float] = Field(None, ge=-1, le=1)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    published: Optional[str] = Field(None, pattern="^(published|draft)$")
    custom_fields: Optional[Dict[str, Any]] = None


class MultiSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    collection_ids: List[str] = Field(..., min_length=1)
    limit: Optional[int] = Field(None, gt=0)
    threshold: Optional[float] = Field(None, ge=-1, le=1)
    filters: Optional[Dict[str, Any]] = None
    aggregate_results: bool = True


class EnvelopeResponse(BaseModel):
    success: bool = True
    data: Any


@router.post("/search", response_model=EnvelopeResponse)
async def search(
    req: SearchRequest,
    use_case: SemanticSearchUseCase = Depends(get_semantic_search_use_case)
):
    """
    Perform semantic search on a single collection.
    """
    result = await use_case.search(
        query_text=req.query,
        collection_id=req.collection_id,
        limit=req.limit,
        threshold=req.threshold,
        filters=req.filters,
        locale=req.locale,
    )
    return EnvelopeResponse(data=result.to_dict())


@router.post("/search/filtered", response_model=EnvelopeResponse)
async def filtered_search(
    req: FilteredSearchRequest,
    use_case: SemanticSearchUseCase = Depends(get_semantic_search_use_case)
):
    """
    Semantic search with date range, publication state and custom field filters.
    """
    result = await use_case.search_with_filters(
        query_text=req.query,
        collection_id=req.collection_id,
        date_from=req.date_from,
        date_to=req.date_to,
        published=req.published,
        custom_fields=req.custom_fields,
        limit=req.limit,
        threshold=req.threshold,
    )
    return EnvelopeResponse(data=result.to_dict())


@router.post("/multi-search", response_model=EnvelopeResponse)
async def multi_search(
    req: MultiSearchRequest,
    use_case: SemanticSearchUseCase = Depends(get_semantic_search_use_case)
):
    """
    Perform semantic search across multiple collections.
    """
    result = await use_case.multi_search(
        query_text=req.query,
        collection_ids=req.collection_ids,
        limit=req.limit,
        threshold=req.threshold,
        filters=req.filters,
        aggregate_results=req.aggregate_results,
    )
    return EnvelopeResponse(data=result.to_dict())


@router.get("/stats", response_model=EnvelopeResponse)
async def get_stats(
    collection_id: Optional[str] = Query(None),
    use_case: EmbeddingStatsUseCase = Depends(get_embedding_stats_use_case)
):
    """
    Get embedding coverage statistics for one or all collections.
    """
    stats = await use_case.get_stats(collection_id)
    return EnvelopeResponse(data=stats)


@router.post("/reindex/{collection_id}", response_model=EnvelopeResponse)
async def reindex_collection(
    collection_id: str,
    only_missing: bool = Query(True),
    use_case: EmbeddingIndexingUseCase = Depends(get_embedding_indexing_use_case)
):
    """
    Generate embeddings for documents of a collection that were stored without one.
    """
    summary = await use_case.reindex_collection(collection_id, only_missing=only_missing)
    return EnvelopeResponse(data=summary)
