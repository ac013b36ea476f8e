import logging
from typing import Any, Dict, List, Mapping, Sequence

from .auto_index import extract_text
from ..domain.value_objects.field_value import DEFAULT_TEXT_FIELDS
from ..domain.entities.indexed_document import IndexedDocument
from ..domain.exceptions import CollectionNotFoundError, InvalidInputError, TextTooShortError
from ..domain.value_objects.embedding import EmbeddingResult
from ..ports.document_store import DocumentStore, VECTOR_PRESENT
from ..ports.embedding_service import EmbeddingService
from ..utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)


class EmbeddingIndexingUseCase:
    """Write embeddings for documents that already exist in the store"""

    def __init__(
            self,
            embedding_service: EmbeddingService,
            document_store: DocumentStore,
            collection_fields: Mapping[str, Sequence[str]],
            min_text_length: int = 10,
            retrieval_ceiling: int = 1000,
    ):
        self.embedding_service = embedding_service
        self.document_store = document_store
        self.collection_fields = dict(collection_fields)
        self.min_text_length = min_text_length
        self.retrieval_ceiling = retrieval_ceiling

    async def store_embedding(
            self,
            collection_id: str,
            document_id: str,
            result: EmbeddingResult,
    ) -> IndexedDocument:
        """Persist vector and metadata of one document, replacing any previous embedding"""
        if not collection_id or not document_id:
            raise InvalidInputError("Document id and collection id are required")

        updated = await self.document_store.update(
            collection_id,
            document_id,
            {
                "vector": result.values,
                "metadata": result.to_metadata().to_dict(),
            },
        )
        logger.debug(f"Stored embedding for {collection_id} document {document_id}")
        return updated

    async def reindex_collection(self, collection_id: str, only_missing: bool = True) -> Dict[str, Any]:
        """
        Generate and store embeddings for the documents of a collection.

        Texts are embedded as one batch before anything is written, so a
        provider failure leaves the collection untouched.

        Args:
            collection_id: Collection to index
            only_missing: Skip documents that already hold a vector

        Returns:
            Summary with processed and skipped document counts
        """
        if collection_id not in self.collection_fields:
            raise CollectionNotFoundError(f"Collection {collection_id} not found")

        filters = {VECTOR_PRESENT: False} if only_missing else None
        documents = await self.document_store.find_many(
            collection_id, filters=filters, limit=self.retrieval_ceiling
        )
        fields = self.collection_fields.get(collection_id) or DEFAULT_TEXT_FIELDS

        pending: List[IndexedDocument] = []
        texts: List[str] = []
        for document in documents:
            text = extract_text(document.fields, fields)
            try:
                # a single too-short text would otherwise fail the whole batch
                normalize_text(text, min_length=self.min_text_length)
            except (TextTooShortError, InvalidInputError):
                continue
            pending.append(document)
            texts.append(text)

        skipped = len(documents) - len(pending)
        if not texts:
            logger.info(f"Nothing to index in {collection_id} ({skipped} documents skipped)")
            return {"collection_id": collection_id, "processed": 0, "skipped": skipped}

        results = await self.embedding_service.generate_embeddings_batch(texts)

        for document, result in zip(pending, results):
            await self.store_embedding(collection_id, document.id, result)

        logger.info(f"Indexed {len(pending)} documents in {collection_id} ({skipped} skipped)")
        return {"collection_id": collection_id, "processed": len(pending), "skipped": skipped}
