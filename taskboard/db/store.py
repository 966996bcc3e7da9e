"""Document store contract shared by the SQL and in-memory backends.

The services only talk to :class:`DocumentStore`: collection scoped CRUD,
filtered (and optionally ordered) queries, and atomic write batches.
Backends decide how documents are kept; the contract decides what a caller
may rely on:

* unordered query results come back in insertion order;
* ordered results are ascending by the sort field, ties in insertion order,
  and documents lacking the sort field are left out;
* a filtered + ordered query needs a declared composite index, otherwise
  :class:`MissingIndexError` is raised before anything is read;
* a group of batches passed to :meth:`DocumentStore.commit_batches` is applied
  all-or-nothing.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from taskboard.core.exceptions import (
    BatchLimitError,
    InvalidQueryError,
    MissingIndexError,
)

SUPPORTED_OPERATORS = ("==", "in", "array_contains")


@dataclass(frozen=True)
class FieldFilter:
    """Single predicate on a top-level document field"""
    field: str
    op: str
    value: Any

    def matches(self, data: Dict[str, Any]) -> bool:
        if self.field not in data:
            return False
        current = data[self.field]
        if self.op == "==":
            return current == self.value
        if self.op == "in":
            return current in self.value
        if self.op == "array_contains":
            return isinstance(current, list) and self.value in current
        raise InvalidQueryError(f"Unsupported operator '{self.op}'")


@dataclass
class DocumentSnapshot:
    collection: str
    id: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class WriteOperation:
    kind: str  # set | update | delete
    collection: str
    document_id: str
    data: Optional[Dict[str, Any]] = None


@dataclass
class WriteBatch:
    """Collects writes to be committed together"""
    limit: int
    operations: List[WriteOperation] = field(default_factory=list)

    def _append(self, operation: WriteOperation) -> None:
        if len(self.operations) >= self.limit:
            raise BatchLimitError(
                f"Write batch is limited to {self.limit} operations"
            )
        self.operations.append(operation)

    def set(self, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        self._append(WriteOperation("set", collection, document_id, dict(data)))

    def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> None:
        self._append(WriteOperation("update", collection, document_id, dict(fields)))

    def delete(self, collection: str, document_id: str) -> None:
        self._append(WriteOperation("delete", collection, document_id))

    def __len__(self) -> int:
        return len(self.operations)


class IndexRegistry:
    """Composite indexes declared as 'collection:field1,field2'"""

    def __init__(self, declarations: Iterable[str] = ()):
        self._indexes = set()
        for declaration in declarations:
            collection, _, fields = declaration.partition(":")
            self._indexes.add(
                (collection.strip(), tuple(f.strip() for f in fields.split(",") if f.strip()))
            )

    def has(self, collection: str, fields: Tuple[str, ...]) -> bool:
        return (collection, fields) in self._indexes


class DocumentStore(ABC):
    """Async document store with collection scoped operations"""

    def __init__(
        self,
        indexes: Optional[IndexRegistry] = None,
        batch_limit: int = 500,
        in_query_limit: int = 30,
    ):
        self.indexes = indexes if indexes is not None else IndexRegistry()
        self.batch_limit = batch_limit
        self.in_query_limit = in_query_limit

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id"""

    @abstractmethod
    async def set(self, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        """Create or replace a document"""

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Optional[DocumentSnapshot]:
        """Fetch one document, None when absent"""

    @abstractmethod
    async def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> None:
        """Merge top-level fields into an existing document"""

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document (absent documents are ignored)"""

    @abstractmethod
    async def _run_query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: Optional[str],
    ) -> List[DocumentSnapshot]:
        """Execute an already validated query"""

    @abstractmethod
    async def _commit_group(self, batches: Sequence[WriteBatch]) -> None:
        """Apply every operation of every batch atomically"""

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
    ) -> List[DocumentSnapshot]:
        for query_filter in filters:
            if query_filter.op not in SUPPORTED_OPERATORS:
                raise InvalidQueryError(f"Unsupported operator '{query_filter.op}'")
            if query_filter.op == "in":
                if len(query_filter.value) > self.in_query_limit:
                    raise InvalidQueryError(
                        f"'in' filters accept at most {self.in_query_limit} values"
                    )

        if order_by and filters:
            fields = tuple(f.field for f in filters) + (order_by,)
            if not self.indexes.has(collection, fields):
                raise MissingIndexError(collection, fields)

        return await self._run_query(collection, list(filters), order_by)

    def batch(self) -> WriteBatch:
        return WriteBatch(limit=self.batch_limit)

    async def commit(self, batch: WriteBatch) -> None:
        await self.commit_batches([batch])

    async def commit_batches(self, batches: Sequence[WriteBatch]) -> None:
        """Commit a chunk group: either every batch is applied or none is"""
        for batch in batches:
            if len(batch) > self.batch_limit:
                raise BatchLimitError(
                    f"Write batch is limited to {self.batch_limit} operations"
                )
        batches = [batch for batch in batches if len(batch)]
        if not batches:
            return
        await self._commit_group(batches)

    def chunk(self, operations: Sequence[WriteOperation]) -> List[WriteBatch]:
        """Split operations into batches that respect the store's limit"""
        batches: List[WriteBatch] = []
        for start in range(0, len(operations), self.batch_limit):
            batch = self.batch()
            batch.operations.extend(operations[start:start + self.batch_limit])
            batches.append(batch)
        return batches

    async def close(self) -> None:
        return None
