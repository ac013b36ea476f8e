"""
Tests for the HTTP routes and the error mapping.

A fresh FastAPI app is assembled per test with the real routers and error
handlers; startup is skipped and app.state is filled with test doubles.
"""
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from semantic_search.api.errors import error_status, register_exception_handlers
from semantic_search.api.routes.documents import router as documents_router
from semantic_search.api.routes.health import router as health_router
from semantic_search.api.routes.search import router as search_router
from semantic_search.core.domain.entities.indexed_document import IndexedDocument
from semantic_search.core.domain.exceptions import (
    CollectionNotFoundError,
    DocumentNotFoundError,
    InvalidCredentialsError,
    InvalidInputError,
    ProviderNotConfiguredError,
    QuotaExceededError,
    RateLimitedError,
    TextTooShortError,
)
from semantic_search.core.ports.document_store import DocumentStore

from conftest import StaticEmbeddingService, unit_vector_with_score

ARTICLES = "api::article.article"
BLOGS = "api::blog.blog"


def build_app(embedding_service, document_store) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(search_router, prefix="/api/semantic-search")
    app.include_router(documents_router, prefix="/api/documents")
    app.include_router(health_router, prefix="/health")
    app.state.embedding_service = embedding_service
    app.state.document_store = document_store
    return app


@pytest.fixture
def client(embedding_service, mock_document_store):
    return TestClient(build_app(embedding_service, mock_document_store), raise_server_exceptions=False)


def article(doc_id: str, score: float) -> IndexedDocument:
    return IndexedDocument(
        id=doc_id,
        collection_id=ARTICLES,
        fields={"title": f"Article {doc_id}"},
        vector=unit_vector_with_score(score),
        metadata={"model": "static-model"},
    )


class TestErrorStatus:

    @pytest.mark.parametrize("error,expected", [
        (InvalidInputError("x"), 400),
        (TextTooShortError("x"), 400),
        (CollectionNotFoundError("x"), 404),
        (DocumentNotFoundError("x"), 404),
        (ProviderNotConfiguredError("x"), 503),
        (RateLimitedError("x"), 503),
        (QuotaExceededError("x"), 502),
        (InvalidCredentialsError("x"), 502),
        (RuntimeError("x"), 500),
    ])
    def test_mapping(self, error, expected):
        assert error_status(error) == expected


class TestSearchRoutes:

    def test_search(self, client, mock_document_store):
        mock_document_store.find_many.return_value = [article("a1", 0.9), article("a2", 0.05)]

        response = client.post(
            "/api/semantic-search/search",
            json={"query": "machine learning", "collection_id": ARTICLES},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        results = body["data"]["results"]
        assert [r["id"] for r in results] == ["a1"]
        assert results[0]["similarity_score"] == pytest.approx(0.9)
        assert "vector" not in results[0]

    def test_short_query_is_bad_request(self, client):
        response = client.post(
            "/api/semantic-search/search",
            json={"query": "ab", "collection_id": ARTICLES},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["kind"] == "text_too_short"

    def test_unknown_collection_is_not_found(self, client):
        response = client.post(
            "/api/semantic-search/search",
            json={"query": "machine learning", "collection_id": "api::recipe.recipe"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "collection_not_found"

    def test_provider_error_is_sanitized(self, mock_document_store):
        service = StaticEmbeddingService(
            errors={"machine learning": QuotaExceededError("sk-live-123 quota detail", 429)}
        )
        service.initialize()
        client = TestClient(build_app(service, mock_document_store))

        response = client.post(
            "/api/semantic-search/search",
            json={"query": "machine learning", "collection_id": ARTICLES},
        )

        assert response.status_code == 502
        assert response.json()["error"]["kind"] == "quota_exceeded"
        assert "sk-live" not in response.text

    def test_unconfigured_provider_is_unavailable(self, mock_document_store):
        client = TestClient(build_app(StaticEmbeddingService(), mock_document_store))

        response = client.post(
            "/api/semantic-search/search",
            json={"query": "machine learning", "collection_id": ARTICLES},
        )

        assert response.status_code == 503

    def test_filtered_search(self, client, mock_document_store):
        response = client.post(
            "/api/semantic-search/search/filtered",
            json={"query": "machine learning", "collection_id": ARTICLES, "published": "draft"},
        )

        assert response.status_code == 200
        filters = mock_document_store.find_many.await_args.kwargs["filters"]
        assert filters["published_at"] == {"$null": True}

    def test_multi_search_partial_failure(self, client, mock_document_store):
        async def find_many(collection_id, filters=None, limit=None, locale=None):
            if collection_id == BLOGS:
                raise RuntimeError("database is locked")
            return [article("a1", 0.8)]

        mock_document_store.find_many.side_effect = find_many

        response = client.post(
            "/api/semantic-search/multi-search",
            json={"query": "machine learning", "collection_ids": [ARTICLES, BLOGS]},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["metadata"]["successful_searches"] == 1
        assert [r["id"] for r in data["results"]] == ["a1"]
        assert data["errors"] == [
            {"kind": "internal_error", "message": "Search failed", "collection_id": BLOGS}
        ]

    def test_stats(self, client, mock_document_store):
        async def count(collection_id, filters=None):
            return 7 if filters else 10

        mock_document_store.count.side_effect = count

        response = client.get("/api/semantic-search/stats", params={"collection_id": ARTICLES})

        assert response.status_code == 200
        assert response.json()["data"] == {
            ARTICLES: {"total": 10, "with_embedding": 7, "coverage": "70.00%"}
        }

    def test_reindex(self, client, mock_document_store):
        mock_document_store.find_many.return_value = [
            IndexedDocument(id="a1", collection_id=ARTICLES, fields={"title": "A long enough title"}),
        ]

        response = client.post(f"/api/semantic-search/reindex/{ARTICLES}")

        assert response.status_code == 200
        assert response.json()["data"] == {"collection_id": ARTICLES, "processed": 1, "skipped": 0}
        mock_document_store.update.assert_awaited_once()

    def test_unhandled_error_is_generic(self, client, mock_document_store):
        mock_document_store.count.side_effect = RuntimeError("disk on fire")

        response = client.get("/api/semantic-search/stats")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": {"kind": "internal_error", "message": "Internal server error"},
        }


class TestDocumentRoutes:

    def test_create_document(self, client, mock_document_store):
        mock_document_store.create = AsyncMock(return_value=IndexedDocument(
            id="a1", collection_id=ARTICLES, fields={"title": "Hello there"}, vector=[1.0, 0.0],
        ))

        response = client.post(f"/api/documents/{ARTICLES}", json={"data": {"title": "Hello there"}, "id": "a1"})

        assert response.status_code == 201
        assert response.json()["has_embedding"] is True
        mock_document_store.create.assert_awaited_once_with(
            ARTICLES, {"title": "Hello there"}, document_id="a1", locale=None
        )

    def test_update_missing_document(self, client, mock_document_store):
        mock_document_store.update.side_effect = DocumentNotFoundError("Document a9 not found")

        response = client.put(f"/api/documents/{ARTICLES}/a9", json={"data": {"title": "x"}})

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "document_not_found"


class TestHealth:

    def test_health_reports_provider(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["embedding_provider"]["provider"] == "static"
