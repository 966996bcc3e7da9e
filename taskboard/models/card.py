from typing import ClassVar, List, Optional

from pydantic import Field

from taskboard.models.base import StoreDatetime, StoreModel


class Card(StoreModel):
    """Модель карточки"""

    __collection__: ClassVar[str] = "cards"
    # listId меняется только через move(), чтобы boardId оставался согласованным
    __immutable__: ClassVar[tuple] = ("id", "list_id", "board_id", "created_at")

    id: Optional[str] = None
    list_id: str
    board_id: Optional[str] = None
    title: str
    description: Optional[str] = ""
    assignees: List[str] = Field(default_factory=list)
    due_date: Optional[StoreDatetime] = None
    order: int = 0  # Для сортировки карточек внутри списка
    created_at: StoreDatetime
    updated_at: StoreDatetime


class Comment(StoreModel):
    """Модель комментария к карточке"""

    __collection__: ClassVar[str] = "comments"
    __immutable__: ClassVar[tuple] = ("id", "card_id", "user_id", "created_at")

    id: Optional[str] = None
    card_id: str
    user_id: str
    content: str
    created_at: StoreDatetime
