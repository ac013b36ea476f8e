"""
Tests for embedding coverage statistics.
"""
import pytest

from semantic_search.core.domain.exceptions import CollectionNotFoundError
from semantic_search.core.ports.document_store import VECTOR_PRESENT
from semantic_search.core.use_cases.embedding_stats import EmbeddingStatsUseCase, format_coverage


def counts(table):
    """count side effect: table maps collection id to (total, with_embedding)"""
    async def _count(collection_id, filters=None):
        total, with_embedding = table.get(collection_id, (0, 0))
        return with_embedding if filters == {VECTOR_PRESENT: True} else total
    return _count


class TestFormatCoverage:

    @pytest.mark.parametrize("total,with_embedding,expected", [
        (10, 7, "70.00%"),
        (3, 1, "33.33%"),
        (4, 4, "100.00%"),
        (0, 0, "0.00%"),
    ])
    def test_format(self, total, with_embedding, expected):
        assert format_coverage(total, with_embedding) == expected


class TestEmbeddingStats:

    @pytest.mark.asyncio
    async def test_single_collection(self, mock_document_store):
        mock_document_store.count.side_effect = counts({"articles": (10, 7)})
        use_case = EmbeddingStatsUseCase(mock_document_store, ["articles", "blogs"])

        stats = await use_case.get_stats("articles")

        assert stats == {"articles": {"total": 10, "with_embedding": 7, "coverage": "70.00%"}}

    @pytest.mark.asyncio
    async def test_all_known_collections(self, mock_document_store):
        mock_document_store.count.side_effect = counts({"articles": (10, 7)})
        use_case = EmbeddingStatsUseCase(mock_document_store, ["articles", "blogs"])

        stats = await use_case.get_stats()

        assert list(stats) == ["articles", "blogs"]
        assert stats["blogs"] == {"total": 0, "with_embedding": 0, "coverage": "0.00%"}

    @pytest.mark.asyncio
    async def test_unknown_collection(self, mock_document_store):
        use_case = EmbeddingStatsUseCase(mock_document_store, ["articles"])

        with pytest.raises(CollectionNotFoundError):
            await use_case.get_stats("recipes")
