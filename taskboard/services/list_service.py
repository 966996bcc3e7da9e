from typing import Any, Dict, List, Optional

from taskboard.core.exceptions import InvalidInputError
from taskboard.db.store import DocumentStore, FieldFilter, WriteOperation
from taskboard.logs import debug_logger
from taskboard.models.base import utcnow
from taskboard.models.task_list import TaskList
from taskboard.services.cascade_service import CascadeDeletionService, CascadeResult
from taskboard.services.query_service import ordered_query
from taskboard.services.validation import require_text


class ListService:
    """CRUD operations service for board lists"""

    @staticmethod
    async def create(
        store: DocumentStore,
        board_id: str,
        title: str,
        order: Optional[int] = None
    ) -> TaskList:
        """Create a new list in a board"""
        title = require_text(title, "title")
        board_id = require_text(board_id, "board_id")

        # If order not provided, place it at the end
        if order is None:
            order = await ListService.next_order(store, board_id)

        task_list = TaskList(board_id=board_id, title=title, order=order, created_at=utcnow())
        list_id = await store.add(TaskList.__collection__, task_list.to_document())
        return task_list.model_copy(update={"id": list_id})

    @staticmethod
    async def get_by_id(
        store: DocumentStore,
        list_id: str
    ) -> Optional[TaskList]:
        """Get list by id"""
        snapshot = await store.get(TaskList.__collection__, list_id)
        return TaskList.from_snapshot(snapshot) if snapshot else None

    @staticmethod
    async def get_by_board_id(
        store: DocumentStore,
        board_id: str
    ) -> List[TaskList]:
        """Get all lists for a board ordered by position"""
        return await ordered_query(
            store,
            TaskList.__collection__,
            [FieldFilter("boardId", "==", board_id)],
            "order",
            TaskList.from_snapshot,
        )

    @staticmethod
    async def next_order(
        store: DocumentStore,
        board_id: str
    ) -> int:
        lists = await ListService.get_by_board_id(store, board_id)
        return max((task_list.order for task_list in lists), default=-1) + 1

    @staticmethod
    async def update(
        store: DocumentStore,
        list_id: str,
        fields: Dict[str, Any]
    ) -> None:
        """Update a list's title or order"""
        fields = dict(fields)
        if "title" in fields:
            fields["title"] = require_text(fields["title"], "title")
        await store.update(TaskList.__collection__, list_id, TaskList.encode_fields(fields))

    @staticmethod
    async def reorder(
        store: DocumentStore,
        board_id: str,
        list_ids: List[str]
    ) -> None:
        """Persist a new left-to-right order of a board's lists in one commit

        Args:
            store: Document store
            board_id: ID of the board
            list_ids: List IDs in the desired order
        """
        known = {task_list.id for task_list in await ListService.get_by_board_id(store, board_id)}
        unknown = [list_id for list_id in list_ids if list_id not in known]
        if unknown:
            raise InvalidInputError(f"Lists {', '.join(unknown)} do not belong to board {board_id}")

        operations = [
            WriteOperation("update", TaskList.__collection__, list_id, {"order": position})
            for position, list_id in enumerate(list_ids)
        ]
        debug_logger.log_data(f"Новый порядок списков доски {board_id}", list_ids)
        await store.commit_batches(store.chunk(operations))

    @staticmethod
    async def delete(
        store: DocumentStore,
        list_id: str
    ) -> CascadeResult:
        """Delete a list with its cards and their comments"""
        return await CascadeDeletionService.delete_list(store, list_id)
