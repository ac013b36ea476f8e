import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..domain.value_objects.field_value import DEFAULT_TEXT_FIELDS, to_field_value, flatten_to_text
from ..ports.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


def extract_text(data: Mapping[str, Any], fields: Iterable[str]) -> str:
    """
    Concatenate the text of the given fields, in order.

    Missing and empty fields are skipped; lists and nested structures are
    flattened to their textual content.
    """
    parts: List[str] = []
    for field_name in fields:
        raw = data.get(field_name)
        if raw is None or raw == "" or raw == [] or raw == {}:
            continue
        text = flatten_to_text(to_field_value(raw))
        if text:
            parts.append(text)
    return " ".join(parts).strip()


class AutoIndexUseCase:
    """
    Attach embeddings to documents on their way into the store.

    ``before_write`` is registered as a store write hook. It fails open:
    whatever goes wrong, the payload is returned and the write proceeds,
    only without a fresh embedding.
    """

    def __init__(
            self,
            embedding_service: EmbeddingService,
            collection_fields: Mapping[str, Sequence[str]],
            excluded_prefixes: Sequence[str] = ("admin::", "plugin::"),
            min_text_length: int = 10,
            enabled: bool = True,
    ):
        self.embedding_service = embedding_service
        self.collection_fields = dict(collection_fields)
        self.excluded_prefixes = tuple(excluded_prefixes)
        self.min_text_length = min_text_length
        self.enabled = enabled

    def fields_for(self, collection_id: str) -> Sequence[str]:
        return self.collection_fields.get(collection_id) or DEFAULT_TEXT_FIELDS

    def should_index(self, collection_id: str) -> bool:
        if not self.enabled:
            return False
        if collection_id.startswith(self.excluded_prefixes):
            return False
        return collection_id in self.collection_fields

    async def before_write(
            self,
            collection_id: str,
            payload: Dict[str, Any],
            action: str = "create",
    ) -> Dict[str, Any]:
        """Return the payload, with ``vector`` and ``metadata`` attached when embedding succeeds"""
        if not self.should_index(collection_id):
            return payload
        if payload.get("vector") is not None:
            # caller is writing an embedding explicitly
            return payload

        try:
            text_content = extract_text(payload, self.fields_for(collection_id))
            if len(text_content) < self.min_text_length:
                logger.debug(f"Skipping embedding generation for {collection_id} - insufficient text content")
                return payload

            result = await self.embedding_service.generate_embedding(text_content)

            payload["vector"] = result.values
            payload["metadata"] = result.to_metadata().to_dict()
            logger.info(f"Generated embedding for {collection_id} document ({action})")

        except Exception as e:
            # never block content creation/update on an embedding failure
            kind = getattr(e, "kind", type(e).__name__)
            logger.error(f"Failed to generate embedding for {collection_id} document ({kind}): {e}")

        return payload

