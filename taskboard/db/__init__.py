from taskboard.db.database import (
    SqlDocumentStore,
    build_document_store,
    get_document_store,
    init_db,
)
from taskboard.db.memory import InMemoryDocumentStore
from taskboard.db.store import (
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    IndexRegistry,
    WriteBatch,
)

__all__ = [
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
    "IndexRegistry",
    "SqlDocumentStore",
    "WriteBatch",
    "build_document_store",
    "get_document_store",
    "init_db",
]
