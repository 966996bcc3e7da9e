from dataclasses import dataclass
from typing import List, Sequence

from taskboard.core.exceptions import NotFoundError
from taskboard.db.store import DocumentStore, FieldFilter, WriteOperation
from taskboard.logs import debug_logger
from taskboard.models.board import Board
from taskboard.models.card import Card, Comment
from taskboard.models.task_list import TaskList


@dataclass
class CascadeResult:
    """Number of documents removed per collection"""
    boards: int = 0
    lists: int = 0
    cards: int = 0
    comments: int = 0

    @property
    def total(self) -> int:
        return self.boards + self.lists + self.cards + self.comments


class CascadeDeletionService:
    """Removes an entity together with everything that only exists through it.

    All lookups happen before the first write. The collected deletes are
    chunked to the store's batch limit and committed as one all-or-nothing
    group, so a failed lookup or commit leaves every record in place.
    """

    @staticmethod
    async def _ids_where_in(
        store: DocumentStore,
        collection: str,
        field: str,
        values: Sequence[str]
    ) -> List[str]:
        """Ids of documents whose field is one of values ('in' chunked)"""
        ids: List[str] = []
        step = store.in_query_limit
        for start in range(0, len(values), step):
            chunk = list(values[start:start + step])
            snapshots = await store.query(collection, [FieldFilter(field, "in", chunk)])
            ids.extend(snapshot.id for snapshot in snapshots)
        return ids

    @staticmethod
    async def _require(store: DocumentStore, collection: str, document_id: str, label: str) -> None:
        if await store.get(collection, document_id) is None:
            raise NotFoundError(f"{label} not found")

    @staticmethod
    async def _commit(
        store: DocumentStore,
        deletions: Sequence[tuple]
    ) -> CascadeResult:
        operations = [
            WriteOperation("delete", collection, document_id)
            for collection, ids in deletions
            for document_id in ids
        ]
        batches = store.chunk(operations)
        await store.commit_batches(batches)

        counts = {collection: len(ids) for collection, ids in deletions}
        result = CascadeResult(
            boards=counts.get(Board.__collection__, 0),
            lists=counts.get(TaskList.__collection__, 0),
            cards=counts.get(Card.__collection__, 0),
            comments=counts.get(Comment.__collection__, 0),
        )
        debug_logger.info(
            f"Каскадное удаление: {result.total} документов в {len(batches)} пакетах "
            f"(доски={result.boards}, списки={result.lists}, "
            f"карточки={result.cards}, комментарии={result.comments})"
        )
        return result

    @staticmethod
    async def delete_board(
        store: DocumentStore,
        board_id: str
    ) -> CascadeResult:
        """Delete a board, its lists, their cards and the cards' comments"""
        await CascadeDeletionService._require(store, Board.__collection__, board_id, "Board")

        list_snapshots = await store.query(
            TaskList.__collection__, [FieldFilter("boardId", "==", board_id)]
        )
        list_ids = [snapshot.id for snapshot in list_snapshots]
        card_ids = await CascadeDeletionService._ids_where_in(
            store, Card.__collection__, "listId", list_ids
        )
        comment_ids = await CascadeDeletionService._ids_where_in(
            store, Comment.__collection__, "cardId", card_ids
        )

        return await CascadeDeletionService._commit(store, [
            (Board.__collection__, [board_id]),
            (TaskList.__collection__, list_ids),
            (Card.__collection__, card_ids),
            (Comment.__collection__, comment_ids),
        ])

    @staticmethod
    async def delete_list(
        store: DocumentStore,
        list_id: str
    ) -> CascadeResult:
        """Delete a list, its cards and their comments"""
        await CascadeDeletionService._require(store, TaskList.__collection__, list_id, "List")

        card_snapshots = await store.query(
            Card.__collection__, [FieldFilter("listId", "==", list_id)]
        )
        card_ids = [snapshot.id for snapshot in card_snapshots]
        comment_ids = await CascadeDeletionService._ids_where_in(
            store, Comment.__collection__, "cardId", card_ids
        )

        return await CascadeDeletionService._commit(store, [
            (TaskList.__collection__, [list_id]),
            (Card.__collection__, card_ids),
            (Comment.__collection__, comment_ids),
        ])

    @staticmethod
    async def delete_card(
        store: DocumentStore,
        card_id: str
    ) -> CascadeResult:
        """Delete a card and its comments"""
        await CascadeDeletionService._require(store, Card.__collection__, card_id, "Card")

        comment_snapshots = await store.query(
            Comment.__collection__, [FieldFilter("cardId", "==", card_id)]
        )

        return await CascadeDeletionService._commit(store, [
            (Card.__collection__, [card_id]),
            (Comment.__collection__, [snapshot.id for snapshot in comment_snapshots]),
        ])
