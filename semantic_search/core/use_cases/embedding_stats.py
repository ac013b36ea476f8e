import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

from ..domain.exceptions import CollectionNotFoundError
from ..ports.document_store import DocumentStore, VECTOR_PRESENT

logger = logging.getLogger(__name__)


def format_coverage(total: int, with_embedding: int) -> str:
    if total <= 0:
        return "0.00%"
    return f"{with_embedding / total * 100:.2f}%"


class EmbeddingStatsUseCase:
    """Report how many documents of each collection already hold a vector"""

    def __init__(self, document_store: DocumentStore, known_collections: Iterable[str]):
        self.document_store = document_store
        self.known_collections = list(known_collections)

    async def collection_stats(self, collection_id: str) -> Dict[str, Any]:
        total, with_embedding = await asyncio.gather(
            self.document_store.count(collection_id),
            self.document_store.count(collection_id, filters={VECTOR_PRESENT: True}),
        )
        return {
            "total": total,
            "with_embedding": with_embedding,
            "coverage": format_coverage(total, with_embedding),
        }

    async def get_stats(self, collection_id: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """
        Embedding coverage per collection.

        Args:
            collection_id: Report a single collection; all known collections when omitted

        Returns:
            Mapping of collection id to {total, with_embedding, coverage}
        """
        if collection_id:
            if self.known_collections and collection_id not in self.known_collections:
                raise CollectionNotFoundError(f"Collection {collection_id} not found")
            collection_ids = [collection_id]
        else:
            collection_ids = self.known_collections

        stats = await asyncio.gather(*(self.collection_stats(c) for c in collection_ids))
        logger.debug(f"Computed embedding stats for {len(collection_ids)} collections")
        return dict(zip(collection_ids, stats))
