from typing import ClassVar, Optional

from taskboard.models.base import StoreDatetime, StoreModel


class TaskList(StoreModel):
    """Модель списка (колонки) на доске"""

    __collection__: ClassVar[str] = "lists"
    __immutable__: ClassVar[tuple] = ("id", "board_id", "created_at")

    id: Optional[str] = None
    board_id: str
    title: str
    order: int = 0  # Для сортировки списков
    created_at: StoreDatetime
