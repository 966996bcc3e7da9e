import json
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy import String, cast, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from taskboard.core import Settings, get_settings
from taskboard.core.exceptions import DocumentNotFoundError, InvalidQueryError, StoreError
from taskboard.db.base import Base
from taskboard.db.memory import InMemoryDocumentStore
from taskboard.db.models import Document
from taskboard.db.store import (
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    IndexRegistry,
    WriteBatch,
)
from taskboard.logs import debug_logger

# Get application settings
settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
    poolclass=NullPool,
)

# Create session factory
async_session_factory = async_sessionmaker(
    engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def _json_element(field: str, sample: Any):
    """Typed accessor for a top-level JSON field, chosen by the compared value"""
    element = Document.data[field]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, (int, float)):
        return element.as_float()
    return element.as_string()


class SqlDocumentStore(DocumentStore):
    """Document store over a single SQLAlchemy 'documents' table.

    Equality and 'in' filters and ordering run in SQL through JSON paths.
    'array_contains' is narrowed in SQL by a text match on the serialized
    document and then checked exactly on the fetched rows. Sort fields must
    hold numbers (order values and epoch-millisecond timestamps).
    """

    def __init__(self, session_factory: async_sessionmaker, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            debug_logger.error(f"Ошибка документного хранилища: {e}")
            raise StoreError(f"Document store request failed: {e}") from e

    @staticmethod
    async def _load(session: AsyncSession, collection: str, document_id: str) -> Optional[Document]:
        query = select(Document).where(
            Document.collection == collection,
            Document.doc_id == document_id,
        )
        result = await session.execute(query)
        return result.scalars().first()

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        document_id = uuid.uuid4().hex
        async with self._transaction() as session:
            session.add(Document(collection=collection, doc_id=document_id, data=dict(data)))
        return document_id

    async def set(self, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        async with self._transaction() as session:
            await self._set(session, collection, document_id, data)

    async def _set(self, session: AsyncSession, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        row = await self._load(session, collection, document_id)
        if row is None:
            session.add(Document(collection=collection, doc_id=document_id, data=dict(data)))
        else:
            row.data = dict(data)

    async def get(self, collection: str, document_id: str) -> Optional[DocumentSnapshot]:
        async with self._transaction() as session:
            row = await self._load(session, collection, document_id)
            if row is None:
                return None
            return DocumentSnapshot(collection, row.doc_id, dict(row.data or {}))

    async def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> None:
        async with self._transaction() as session:
            await self._update(session, collection, document_id, fields)

    async def _update(self, session: AsyncSession, collection: str, document_id: str, fields: Dict[str, Any]) -> None:
        row = await self._load(session, collection, document_id)
        if row is None:
            raise DocumentNotFoundError(f"No document {collection}/{document_id}")
        row.data = {**(row.data or {}), **fields}

    async def delete(self, collection: str, document_id: str) -> None:
        async with self._transaction() as session:
            await self._delete(session, collection, document_id)

    @staticmethod
    async def _delete(session: AsyncSession, collection: str, document_id: str) -> None:
        stmt = delete(Document).where(
            Document.collection == collection,
            Document.doc_id == document_id,
        )
        await session.execute(stmt)

    async def _run_query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: Optional[str],
    ) -> List[DocumentSnapshot]:
        query = select(Document).where(Document.collection == collection)
        post_filters = []

        for query_filter in filters:
            if query_filter.op == "==":
                query = query.where(
                    _json_element(query_filter.field, query_filter.value) == query_filter.value
                )
            elif query_filter.op == "in":
                values = list(query_filter.value)
                if not values:
                    return []
                query = query.where(
                    _json_element(query_filter.field, values[0]).in_(values)
                )
            elif query_filter.op == "array_contains":
                # SQL отбирает документы, в тексте которых есть значение; точная проверка по строкам
                if isinstance(query_filter.value, (str, int, float, bool)):
                    query = query.where(
                        cast(Document.data, String).contains(json.dumps(query_filter.value), autoescape=True)
                    )
                post_filters.append(query_filter)
            else:
                raise InvalidQueryError(f"Unsupported operator '{query_filter.op}'")

        if order_by:
            sort_column = Document.data[order_by].as_float()
            query = query.where(sort_column.is_not(None)).order_by(sort_column, Document.seq)
        else:
            query = query.order_by(Document.seq)

        async with self._transaction() as session:
            result = await session.execute(query)
            rows = list(result.scalars().all())

        snapshots = [DocumentSnapshot(collection, row.doc_id, dict(row.data or {})) for row in rows]
        return [s for s in snapshots if all(f.matches(s.data) for f in post_filters)]

    async def _commit_group(self, batches: Sequence[WriteBatch]) -> None:
        # Все чанки группы применяются в одной транзакции
        async with self._transaction() as session:
            for batch in batches:
                for operation in batch.operations:
                    if operation.kind == "set":
                        await self._set(session, operation.collection, operation.document_id, operation.data)
                    elif operation.kind == "update":
                        await self._update(session, operation.collection, operation.document_id, operation.data)
                    elif operation.kind == "delete":
                        await self._delete(session, operation.collection, operation.document_id)
                    else:
                        raise InvalidQueryError(f"Unknown write operation '{operation.kind}'")
                    await session.flush()


def build_document_store(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> DocumentStore:
    """Create the store selected by STORE_BACKEND"""
    app_settings = app_settings or settings
    options = dict(
        indexes=IndexRegistry(app_settings.DOCUMENT_INDEXES),
        batch_limit=app_settings.BATCH_WRITE_LIMIT,
        in_query_limit=app_settings.IN_QUERY_LIMIT,
    )
    if app_settings.STORE_BACKEND == "memory":
        return InMemoryDocumentStore(**options)
    return SqlDocumentStore(session_factory or async_session_factory, **options)


_document_store: Optional[DocumentStore] = None


# Dependency for FastAPI
def get_document_store() -> DocumentStore:
    global _document_store
    if _document_store is None:
        _document_store = build_document_store()
    return _document_store


# Initialize database
async def init_db():
    if settings.STORE_BACKEND == "memory":
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
