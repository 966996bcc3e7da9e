import copy
import uuid
from typing import Any, Dict, List, Optional, Sequence

from taskboard.core.exceptions import DocumentNotFoundError, InvalidQueryError
from taskboard.db.store import (
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    WriteBatch,
    WriteOperation,
)


class InMemoryDocumentStore(DocumentStore):
    """Dict backed store for development and tests.

    Collections keep insertion order, which is the order unordered queries
    return. Batches are applied to a staged copy and swapped in only when
    every operation succeeded.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        document_id = uuid.uuid4().hex
        self._collection(collection)[document_id] = copy.deepcopy(data)
        return document_id

    async def set(self, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        self._collection(collection)[document_id] = copy.deepcopy(data)

    async def get(self, collection: str, document_id: str) -> Optional[DocumentSnapshot]:
        data = self._collection(collection).get(document_id)
        if data is None:
            return None
        return DocumentSnapshot(collection, document_id, copy.deepcopy(data))

    async def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> None:
        documents = self._collection(collection)
        if document_id not in documents:
            raise DocumentNotFoundError(f"No document {collection}/{document_id}")
        documents[document_id].update(copy.deepcopy(fields))

    async def delete(self, collection: str, document_id: str) -> None:
        self._collection(collection).pop(document_id, None)

    async def _run_query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        order_by: Optional[str],
    ) -> List[DocumentSnapshot]:
        snapshots = [
            DocumentSnapshot(collection, document_id, copy.deepcopy(data))
            for document_id, data in self._collection(collection).items()
            if all(f.matches(data) for f in filters)
        ]
        if order_by:
            snapshots = [s for s in snapshots if s.data.get(order_by) is not None]
            try:
                snapshots.sort(key=lambda s: s.data[order_by])
            except TypeError as e:
                raise InvalidQueryError(
                    f"Cannot order '{collection}' by '{order_by}': {e}"
                ) from e
        return snapshots

    def _apply_operation(
        self,
        staged: Dict[str, Dict[str, Dict[str, Any]]],
        operation: WriteOperation,
    ) -> None:
        documents = staged.setdefault(operation.collection, {})
        if operation.kind == "set":
            documents[operation.document_id] = copy.deepcopy(operation.data)
        elif operation.kind == "update":
            if operation.document_id not in documents:
                raise DocumentNotFoundError(
                    f"No document {operation.collection}/{operation.document_id}"
                )
            documents[operation.document_id].update(copy.deepcopy(operation.data))
        elif operation.kind == "delete":
            documents.pop(operation.document_id, None)
        else:
            raise InvalidQueryError(f"Unknown write operation '{operation.kind}'")

    async def _commit_group(self, batches: Sequence[WriteBatch]) -> None:
        staged = copy.deepcopy(self._collections)
        for batch in batches:
            for operation in batch.operations:
                self._apply_operation(staged, operation)
        self._collections = staged

    def count(self, collection: str) -> int:
        return len(self._collection(collection))
