"""
Tests for the auto-index write hook and text extraction.
"""
from unittest.mock import AsyncMock

import pytest

from semantic_search.core.domain.exceptions import ProviderUnavailableError
from semantic_search.core.use_cases.auto_index import AutoIndexUseCase, extract_text

from conftest import StaticEmbeddingService


@pytest.fixture
def auto_index(embedding_service):
    return AutoIndexUseCase(
        embedding_service=embedding_service,
        collection_fields={
            "api::article.article": ["title", "content"],
            "plugin::users.user": ["username"],
        },
    )


class TestExtractText:

    def test_joins_fields_in_order(self):
        data = {"content": "Body text", "title": "Title"}

        assert extract_text(data, ["title", "content"]) == "Title Body text"

    def test_skips_missing_and_empty_fields(self):
        data = {"title": "", "summary": None, "tags": [], "extra": {}, "content": "Only this"}

        assert extract_text(data, ["title", "summary", "tags", "extra", "content"]) == "Only this"

    def test_flattens_rich_text(self):
        data = {"content": [{"type": "paragraph", "children": [{"type": "text", "text": "Deep learning"}]}]}

        assert extract_text(data, ["content"]) == "Deep learning"


class TestAutoIndex:

    @pytest.mark.asyncio
    async def test_attaches_vector_and_metadata(self, auto_index, embedding_service):
        payload = {"title": "Neural networks", "content": "<p>How they learn</p>"}

        result = await auto_index.before_write("api::article.article", payload)

        assert result["vector"] == [1.0, 0.0]
        metadata = result["metadata"]
        assert metadata["model"] == "static-model"
        assert metadata["dimensions"] == 2
        assert metadata["processedText"] == "Neural networks How they learn"
        assert metadata["originalLength"] == len("Neural networks <p>How they learn</p>")
        assert metadata["processedLength"] == len("Neural networks How they learn")
        assert "generatedAt" in metadata
        assert embedding_service.requests == ["Neural networks How they learn"]

    @pytest.mark.asyncio
    async def test_short_text_is_skipped(self, auto_index, embedding_service):
        payload = {"title": "Hi"}

        result = await auto_index.before_write("api::article.article", payload)

        assert "vector" not in result
        assert embedding_service.requests == []

    @pytest.mark.asyncio
    async def test_excluded_prefix_is_never_embedded(self, auto_index, embedding_service):
        payload = {"username": "a rather long username"}

        result = await auto_index.before_write("plugin::users.user", payload)

        assert result == {"username": "a rather long username"}
        assert embedding_service.requests == []

    @pytest.mark.asyncio
    async def test_unconfigured_collection_is_skipped(self, auto_index, embedding_service):
        result = await auto_index.before_write("api::recipe.recipe", {"title": "Long enough title"})

        assert "vector" not in result
        assert embedding_service.requests == []

    @pytest.mark.asyncio
    async def test_disabled(self, embedding_service):
        auto_index = AutoIndexUseCase(
            embedding_service, {"api::article.article": ["title"]}, enabled=False
        )

        result = await auto_index.before_write("api::article.article", {"title": "Long enough title"})

        assert "vector" not in result

    @pytest.mark.asyncio
    async def test_provider_failure_fails_open(self, caplog):
        service = StaticEmbeddingService(
            errors={"Long enough title": ProviderUnavailableError("down", 503)}
        )
        service.initialize()
        auto_index = AutoIndexUseCase(service, {"api::article.article": ["title"]})

        result = await auto_index.before_write("api::article.article", {"title": "Long enough title"})

        assert result == {"title": "Long enough title"}
        assert "provider_unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_failure_fails_open(self):
        service = AsyncMock()
        service.generate_embedding.side_effect = RuntimeError("boom")
        auto_index = AutoIndexUseCase(service, {"api::article.article": ["title"]})

        result = await auto_index.before_write("api::article.article", {"title": "Long enough title"})

        assert result == {"title": "Long enough title"}

    @pytest.mark.asyncio
    async def test_explicit_vector_is_kept(self, auto_index, embedding_service):
        payload = {"title": "Neural networks", "vector": [0.3, 0.4], "metadata": {"model": "x"}}

        result = await auto_index.before_write("api::article.article", payload, action="update")

        assert result["vector"] == [0.3, 0.4]
        assert embedding_service.requests == []
