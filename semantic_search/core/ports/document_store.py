from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from ..domain.entities.indexed_document import IndexedDocument

# Pseudo-field understood by every store: True matches documents holding a
# vector, False matches documents without one.
VECTOR_PRESENT = "vector_present"


class DocumentStore(ABC):
    """Port for the document store that owns records, vectors and metadata"""

    @abstractmethod
    async def find_many(
            self,
            collection_id: str,
            filters: Optional[Dict[str, Any]] = None,
            limit: Optional[int] = None,
            locale: Optional[str] = None,
    ) -> List[IndexedDocument]:
        """
        Fetch documents of a collection.

        Args:
            collection_id: Collection to read from
            filters: Store filter object; may contain VECTOR_PRESENT
            limit: Maximum number of documents returned
            locale: Optional locale restriction

        Returns:
            Matching documents in store order
        """
        pass

    @abstractmethod
    async def count(self, collection_id: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count documents of a collection matching the filters"""
        pass

    @abstractmethod
    async def update(self, collection_id: str, document_id: str, data: Dict[str, Any]) -> IndexedDocument:
        """
        Write fields of an existing document.

        ``vector`` and ``metadata`` keys replace the stored embedding; any
        other key is merged into the document fields.
        """
        pass
