from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from ...api.deps import get_document_store
from ...adapters.persistence.sqlite_document_store import SQLiteDocumentStore
from ...core.domain.entities.indexed_document import IndexedDocument

router = APIRouter()


class DocumentWriteRequest(BaseModel):
    data: Dict[str, Any] = Field(..., description="Document fields")
    id: Optional[str] = None
    locale: Optional[str] = None


class DocumentResponse(BaseModel):
    id: str
    collection_id: str
    locale: Optional[str]
    fields: Dict[str, Any]
    has_embedding: bool
    metadata: Optional[Dict[str, Any]]


def to_response_model(document: IndexedDocument) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        collection_id=document.collection_id,
        locale=document.locale,
        fields=document.fields,
        has_embedding=document.has_embedding,
        metadata=document.metadata,
    )


@router.post("/{collection_id}", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    collection_id: str,
    body: DocumentWriteRequest,
    store: SQLiteDocumentStore = Depends(get_document_store)
):
    """
    Create a document; configured collections get an embedding attached on the way in.
    """
    document = await store.create(collection_id, body.data, document_id=body.id, locale=body.locale)
    return to_response_model(document)


@router.put("/{collection_id}/{document_id}", response_model=DocumentResponse)
async def update_document(
    collection_id: str,
    document_id: str,
    body: DocumentWriteRequest,
    store: SQLiteDocumentStore = Depends(get_document_store)
):
    """
    Update document fields; the embedding is regenerated from the updated text.
    """
    document = await store.update(collection_id, document_id, body.data)
    return to_response_model(document)
