import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import Column, String, DateTime, JSON, Integer, select, func

from ...core.ports.document_store import DocumentStore, VECTOR_PRESENT
from ...core.domain.entities.indexed_document import IndexedDocument
from ...core.domain.exceptions import DocumentNotFoundError, InvalidInputError

logger = logging.getLogger(__name__)

Base = declarative_base()

# (collection_id, payload, action) -> payload to persist
BeforeWriteHook = Callable[[str, Dict[str, Any], str], Awaitable[Dict[str, Any]]]

EMBEDDING_KEYS = ("vector", "metadata")


# ORM models
class DocumentRecordModel(Base):
    __tablename__ = "documents"
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True, index=True)
    collection_id = Column(String, nullable=False, index=True)
    locale = Column(String, nullable=True)
    data = Column(JSON, nullable=False)
    vector = Column(JSON, nullable=True)
    # Rename attribute to avoid conflict with declarative metadata; column name stays "metadata"
    metadata_json = Column('metadata', JSON, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


def _matches_condition(value: Any, condition: Any) -> bool:
    """Evaluate one field condition; plain values mean equality"""
    if not isinstance(condition, dict):
        return value == condition

    for operator, operand in condition.items():
        if operator == "$eq":
            ok = value == operand
        elif operator == "$ne":
            ok = value != operand
        elif operator == "$in":
            if not isinstance(operand, (list, tuple, set)):
                raise InvalidInputError("Filter operator $in expects a list of values")
            ok = value in list(operand)
        elif operator == "$null":
            ok = (value is None) == bool(operand)
        elif operator == "$notNull":
            ok = (value is not None) == bool(operand)
        elif operator in ("$gt", "$gte", "$lt", "$lte"):
            if value is None:
                return False
            try:
                ok = {
                    "$gt": value > operand,
                    "$gte": value >= operand,
                    "$lt": value < operand,
                    "$lte": value <= operand,
                }[operator]
            except TypeError:
                return False
        else:
            raise InvalidInputError(f"Unsupported filter operator: {operator}")
        if not ok:
            return False
    return True


def matches_filters(document: IndexedDocument, filters: Optional[Dict[str, Any]]) -> bool:
    """Check a document against a store filter object"""
    for field_name, condition in (filters or {}).items():
        if field_name == VECTOR_PRESENT:
            if document.has_embedding != bool(condition):
                return False
            continue
        if field_name == "vector":
            value = document.vector
        elif field_name == "locale":
            value = document.locale
        else:
            value = document.fields.get(field_name)
        if not _matches_condition(value, condition):
            return False
    return True


class SQLiteDocumentStore(DocumentStore):
    """
    Document store backed by SQLite via SQLAlchemy Async.

    Fields live in a JSON column and filters are evaluated in Python, which
    is adequate for the collection sizes a brute-force similarity scan
    supports. Registered before-write hooks run on create and update,
    before the row is committed.
    """

    def __init__(self, database_url: str):
        """
        Args:
            database_url: SQLAlchemy database URL, e.g. "sqlite+aiosqlite:///./data/semantic_search.db"
        """
        self._engine = create_async_engine(database_url, echo=False, future=True)
        self._async_session = sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            future=True
        )
        self._before_write_hooks: List[BeforeWriteHook] = []

    async def init_models(self):
        """
        Create tables if they do not exist.
        Call this once on startup.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self._engine.dispose()

    def register_before_write(self, hook: BeforeWriteHook) -> None:
        self._before_write_hooks.append(hook)

    async def _run_before_write(self, collection_id: str, payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        for hook in self._before_write_hooks:
            payload = await hook(collection_id, payload, action)
        return payload

    @staticmethod
    def _to_domain(record: DocumentRecordModel) -> IndexedDocument:
        return IndexedDocument(
            id=record.id,
            collection_id=record.collection_id,
            fields=dict(record.data or {}),
            vector=record.vector,
            metadata=record.metadata_json,
            locale=record.locale,
        )

    async def _load_collection(self, collection_id: str, locale: Optional[str] = None) -> List[IndexedDocument]:
        async with self._async_session() as db_session:
            stmt = select(DocumentRecordModel).where(DocumentRecordModel.collection_id == collection_id)
            if locale:
                stmt = stmt.where(DocumentRecordModel.locale == locale)
            result = await db_session.execute(stmt.order_by(DocumentRecordModel.seq))
            return [self._to_domain(rec) for rec in result.scalars().all()]

    async def find_many(
            self,
            collection_id: str,
            filters: Optional[Dict[str, Any]] = None,
            limit: Optional[int] = None,
            locale: Optional[str] = None,
    ) -> List[IndexedDocument]:
        documents = [
            doc for doc in await self._load_collection(collection_id, locale)
            if matches_filters(doc, filters)
        ]
        if limit is not None:
            documents = documents[:limit]
        return documents

    async def count(self, collection_id: str, filters: Optional[Dict[str, Any]] = None) -> int:
        if not filters:
            async with self._async_session() as db_session:
                result = await db_session.execute(
                    select(func.count()).select_from(DocumentRecordModel)
                    .where(DocumentRecordModel.collection_id == collection_id)
                )
                return int(result.scalar_one())
        return len(await self.find_many(collection_id, filters=filters))

    async def get(self, collection_id: str, document_id: str) -> Optional[IndexedDocument]:
        async with self._async_session() as db_session:
            record = await self._get_record(db_session, collection_id, document_id)
            return self._to_domain(record) if record else None

    @staticmethod
    async def _get_record(db_session, collection_id: str, document_id: str) -> Optional[DocumentRecordModel]:
        result = await db_session.execute(
            select(DocumentRecordModel).where(
                DocumentRecordModel.collection_id == collection_id,
                DocumentRecordModel.id == document_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(
            self,
            collection_id: str,
            data: Dict[str, Any],
            document_id: Optional[str] = None,
            locale: Optional[str] = None,
    ) -> IndexedDocument:
        """Insert a new document after running the before-write hooks"""
        payload = await self._run_before_write(collection_id, dict(data), "create")
        fields = {k: v for k, v in payload.items() if k not in EMBEDDING_KEYS}
        now = datetime.now(UTC)

        record = DocumentRecordModel(
            id=document_id or str(uuid.uuid4()),
            collection_id=collection_id,
            locale=locale,
            data=fields,
            vector=payload.get("vector"),
            metadata_json=payload.get("metadata"),
            created_at=now,
            updated_at=now,
        )
        async with self._async_session() as db_session:
            async with db_session.begin():
                db_session.add(record)

        logger.debug(f"Created document {record.id} in {collection_id}")
        return self._to_domain(record)

    async def update(self, collection_id: str, document_id: str, data: Dict[str, Any]) -> IndexedDocument:
        existing = await self.get(collection_id, document_id)
        if existing is None:
            raise DocumentNotFoundError(f"Document {document_id} not found in {collection_id}")

        # hooks see the full document so text extraction works on partial updates;
        # they run outside the transaction since they may call remote services
        payload = await self._run_before_write(collection_id, {**existing.fields, **data}, "update")

        async with self._async_session() as db_session:
            async with db_session.begin():
                record = await self._get_record(db_session, collection_id, document_id)
                if record is None:
                    raise DocumentNotFoundError(f"Document {document_id} not found in {collection_id}")

                record.data = {k: v for k, v in payload.items() if k not in EMBEDDING_KEYS}
                if "vector" in payload:
                    record.vector = payload["vector"]
                if "metadata" in payload:
                    record.metadata_json = payload["metadata"]
                record.updated_at = datetime.now(UTC)

        logger.debug(f"Updated document {document_id} in {collection_id}")
        return self._to_domain(record)
