from typing import Callable, List, Sequence, TypeVar

from taskboard.core.exceptions import MissingIndexError
from taskboard.db.store import DocumentSnapshot, DocumentStore, FieldFilter
from taskboard.logs import debug_logger

T = TypeVar("T")


def sort_snapshots(snapshots: Sequence[DocumentSnapshot], sort_key: str) -> List[DocumentSnapshot]:
    """Client-side equivalent of a store-ordered query"""
    # Как и хранилище, пропускаем документы без поля сортировки
    present = [s for s in snapshots if s.data.get(sort_key) is not None]
    return sorted(present, key=lambda s: s.data[sort_key])


async def ordered_query(
    store: DocumentStore,
    collection: str,
    filters: Sequence[FieldFilter],
    sort_key: str,
    decode: Callable[[DocumentSnapshot], T],
) -> List[T]:
    """Filtered query ordered ascending by sort_key.

    When the store lacks the composite index the filtered-only result is
    sorted here instead; content and order match the indexed path. Any other
    failure propagates.
    """
    try:
        snapshots = await store.query(collection, filters, order_by=sort_key)
    except MissingIndexError as e:
        debug_logger.warning(
            f"Нет индекса для запроса: {e.message}; сортировка на клиенте. "
            f"Добавьте '{collection}:{','.join(e.fields)}' в DOCUMENT_INDEXES"
        )
        snapshots = sort_snapshots(await store.query(collection, filters), sort_key)

    return [decode(snapshot) for snapshot in snapshots]
