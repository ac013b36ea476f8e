import asyncio
import logging
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..domain.entities.indexed_document import (
    CollectionSearchError,
    MultiSearchResult,
    ScoredResult,
    SearchResult,
)
from ..domain.exceptions import CollectionNotFoundError, InvalidInputError
from ..domain.value_objects.embedding import SearchQuery
from ..ports.document_store import DocumentStore, VECTOR_PRESENT
from ..ports.embedding_service import EmbeddingService
from ..utils.similarity import rank_candidates

logger = logging.getLogger(__name__)


class SemanticSearchUseCase:
    """Use case for meaning-based search over one or more collections"""

    def __init__(
            self,
            embedding_service: EmbeddingService,
            document_store: DocumentStore,
            known_collections: Optional[Iterable[str]] = None,
            default_limit: int = 10,
            max_limit: int = 50,
            default_threshold: float = 0.1,
            retrieval_ceiling: int = 1000,
            aggregation_overfetch: float = 1.5,
    ):
        self.embedding_service = embedding_service
        self.document_store = document_store
        self.known_collections = set(known_collections) if known_collections else None
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.default_threshold = default_threshold
        self.retrieval_ceiling = retrieval_ceiling
        self.aggregation_overfetch = aggregation_overfetch

    def _check_collection(self, collection_id: str) -> None:
        if not collection_id:
            raise InvalidInputError("Collection id is required")
        if self.known_collections is not None and collection_id not in self.known_collections:
            raise CollectionNotFoundError(f"Collection {collection_id} not found")

    def _build_query(
            self,
            query_text: str,
            collection_ids: List[str],
            limit: Optional[int],
            threshold: Optional[float],
            filters: Optional[Dict[str, Any]] = None,
            include_embedding: bool = False,
            locale: Optional[str] = None,
    ) -> SearchQuery:
        if not query_text or not query_text.strip():
            raise InvalidInputError("Query is required")
        limit = self.default_limit if limit is None else limit
        threshold = self.default_threshold if threshold is None else threshold
        try:
            return SearchQuery(
                text=query_text,
                collection_ids=collection_ids,
                limit=min(limit, self.max_limit),
                threshold=threshold,
                filters=dict(filters or {}),
                include_embedding=include_embedding,
                locale=locale,
            )
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

    async def search(
            self,
            query_text: str,
            collection_id: str,
            limit: Optional[int] = None,
            threshold: Optional[float] = None,
            filters: Optional[Dict[str, Any]] = None,
            include_embedding: bool = False,
            locale: Optional[str] = None,
    ) -> SearchResult:
        """
        Search a single collection.

        Embedding failures propagate unchanged: without a query vector there
        is no result, not an empty one.

        Args:
            query_text: Search query
            collection_id: Collection to search
            limit: Number of results to return (capped at max_limit)
            threshold: Minimum similarity score of returned results
            filters: Store filters combined with the "has a vector" predicate
            include_embedding: Keep vector and embedding metadata on results
            locale: Optional locale passed to the store

        Returns:
            SearchResult with ranked results and search metadata
        """
        self._check_collection(collection_id)
        query = self._build_query(
            query_text, [collection_id], limit, threshold, filters, include_embedding, locale
        )
        return await self._search_collection(query, collection_id)

    async def _search_collection(self, query: SearchQuery, collection_id: str) -> SearchResult:
        try:
            query_result = await self.embedding_service.generate_embedding(query.text)

            candidates = await self.document_store.find_many(
                collection_id,
                filters={VECTOR_PRESENT: True, **query.filters},
                limit=self.retrieval_ceiling,
                locale=query.locale,
            )

            ranked = rank_candidates(
                query_result.values,
                candidates,
                limit=query.limit,
                threshold=query.threshold,
            )
        except Exception as e:
            logger.error(f'Semantic search failed for query "{query.text}" in {collection_id}: {e}')
            raise

        if not query.include_embedding:
            ranked = [
                ScoredResult(document=r.document.without_embedding(), score=r.score)
                for r in ranked
            ]

        logger.debug(
            f'Semantic search completed: {len(ranked)} results for "{query.text}" '
            f'in {collection_id} ({len(candidates)} candidates)'
        )

        return SearchResult(
            query=query.text,
            collection_id=collection_id,
            results=ranked,
            include_embedding=query.include_embedding,
            metadata={
                "total_results": len(ranked),
                "query_processing": {
                    "original_query": query.text,
                    "processed_text": query_result.processed_text,
                    "embedding_dimensions": query_result.vector.dimensions,
                },
                "search_options": {
                    "limit": query.limit,
                    "threshold": query.threshold,
                    "locale": query.locale,
                    "filters_applied": bool(query.filters),
                    "applied_filters": query.filters,
                },
            },
        )

    async def multi_search(
            self,
            query_text: str,
            collection_ids: List[str],
            limit: Optional[int] = None,
            threshold: Optional[float] = None,
            filters: Optional[Dict[str, Any]] = None,
            aggregate_results: bool = True,
            locale: Optional[str] = None,
    ) -> MultiSearchResult:
        """
        Search several collections concurrently.

        A collection whose search fails is recorded as an error entry and
        never aborts the others. With ``aggregate_results`` the per-collection
        results are merged into one list ranked by score; otherwise one block
        per collection is returned.
        """
        if not collection_ids:
            raise InvalidInputError("Collection ids are required")
        # de-duplicate, keep request order
        collection_ids = list(dict.fromkeys(collection_ids))
        for collection_id in collection_ids:
            self._check_collection(collection_id)
        query = self._build_query(query_text, collection_ids, limit, threshold, filters, locale=locale)

        sub_query = query
        if aggregate_results:
            # over-fetch so the merge can pick the true global top-k
            sub_query = replace(query, limit=math.ceil(query.limit * self.aggregation_overfetch))

        async def search_one(collection_id: str):
            try:
                return await self._search_collection(sub_query, collection_id)
            except Exception as e:
                logger.warning(f"Search failed for collection {collection_id}: {e}")
                return CollectionSearchError(
                    collection_id=collection_id,
                    kind=getattr(e, "kind", "internal_error"),
                    message=getattr(e, "public_message", "Search failed"),
                )

        outcomes = await asyncio.gather(*(search_one(c) for c in collection_ids))

        searches = [o for o in outcomes if isinstance(o, SearchResult)]
        errors = [o for o in outcomes if isinstance(o, CollectionSearchError)]

        result = MultiSearchResult(
            query=query.text,
            collection_ids=collection_ids,
            aggregated=aggregate_results,
            errors=errors,
        )

        if aggregate_results:
            merged: List[ScoredResult] = [
                ScoredResult(document=r.document, score=r.score, collection_id=search.collection_id)
                for search in searches
                for r in search.results
            ]
            merged.sort(key=lambda r: r.score, reverse=True)
            result.results = merged[:query.limit]
            counts = {s.collection_id: len(s.results) for s in searches}
            failed = {e.collection_id for e in errors}
            result.metadata = {
                "total_results": len(result.results),
                "searched_collections": collection_ids,
                "individual_results": [
                    {"collection_id": c, "count": counts.get(c, 0), "has_error": c in failed}
                    for c in collection_ids
                ],
                "successful_searches": result.successful_searches,
                "failed_searches": len(errors),
            }
        else:
            result.collection_results = searches
            result.metadata = {
                "total_collections": len(collection_ids),
                "successful_searches": result.successful_searches,
                "failed_searches": len(errors),
            }

        logger.info(
            f'Multi-collection search for "{query.text}": '
            f"{result.successful_searches}/{len(collection_ids)} collections succeeded"
        )
        return result

    async def search_with_filters(
            self,
            query_text: str,
            collection_id: str,
            date_from: Optional[str] = None,
            date_to: Optional[str] = None,
            published: Optional[str] = None,
            custom_fields: Optional[Dict[str, Any]] = None,
            **options: Any,
    ) -> SearchResult:
        """
        Search with common filter shortcuts.

        Args:
            date_from: Lower bound (inclusive) on ``created_at``
            date_to: Upper bound (inclusive) on ``created_at``
            published: "published" keeps documents with ``published_at`` set,
                "draft" keeps documents without it
            custom_fields: Extra store filters merged as-is
        """
        search_filters: Dict[str, Any] = {}

        if date_from or date_to:
            date_filter = {}
            if date_from:
                date_filter["$gte"] = date_from
            if date_to:
                date_filter["$lte"] = date_to
            search_filters["created_at"] = date_filter

        if published == "published":
            search_filters["published_at"] = {"$notNull": True}
        elif published == "draft":
            search_filters["published_at"] = {"$null": True}
        elif published is not None:
            raise InvalidInputError(f"Unknown publication state: {published}")

        if custom_fields:
            search_filters.update(custom_fields)

        return await self.search(query_text, collection_id, filters=search_filters, **options)

