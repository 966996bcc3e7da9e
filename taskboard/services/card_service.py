from datetime import datetime
from typing import Any, Dict, List, Optional

from taskboard.core.exceptions import InvalidInputError, MalformedRecordError, NotFoundError
from taskboard.db.store import DocumentStore, FieldFilter, WriteOperation
from taskboard.logs import debug_logger
from taskboard.models.base import encode_value, utcnow
from taskboard.models.card import Card
from taskboard.services.cascade_service import CascadeDeletionService, CascadeResult
from taskboard.services.list_service import ListService
from taskboard.services.query_service import ordered_query
from taskboard.services.validation import require_text


class CardService:
    """CRUD operations service for cards"""

    @staticmethod
    async def create(
        store: DocumentStore,
        list_id: str,
        title: str,
        description: str = "",
        assignees: Optional[List[str]] = None,
        due_date: Optional[datetime] = None,
        order: Optional[int] = None
    ) -> Card:
        """Create a new card at the end of a list (or at the given order)"""
        title = require_text(title, "title")

        task_list = await ListService.get_by_id(store, list_id)
        if task_list is None:
            raise NotFoundError("List not found")

        if order is None:
            cards = await CardService.get_by_list_id(store, list_id)
            order = max((card.order for card in cards), default=-1) + 1

        now = utcnow()
        card = Card(
            list_id=list_id,
            board_id=task_list.board_id,
            title=title,
            description=description or "",
            assignees=list(dict.fromkeys(assignees or [])),
            due_date=due_date,
            order=order,
            created_at=now,
            updated_at=now,
        )
        card_id = await store.add(Card.__collection__, card.to_document())
        return card.model_copy(update={"id": card_id})

    @staticmethod
    async def get_by_id(
        store: DocumentStore,
        card_id: str
    ) -> Optional[Card]:
        """Get card by id"""
        snapshot = await store.get(Card.__collection__, card_id)
        if snapshot is None:
            debug_logger.debug(f"Карточка {card_id} не найдена")
            return None
        return Card.from_snapshot(snapshot)

    @staticmethod
    async def get_by_list_id(
        store: DocumentStore,
        list_id: str
    ) -> List[Card]:
        """Get cards of a list ordered by position"""
        return await ordered_query(
            store,
            Card.__collection__,
            [FieldFilter("listId", "==", list_id)],
            "order",
            Card.from_snapshot,
        )

    @staticmethod
    async def get_by_board_id(
        store: DocumentStore,
        board_id: str
    ) -> List[Card]:
        """Get all cards on a board through its lists"""
        lists = await ListService.get_by_board_id(store, board_id)
        list_ids = [task_list.id for task_list in lists]
        if not list_ids:
            return []

        cards: List[Card] = []
        step = store.in_query_limit
        for start in range(0, len(list_ids), step):
            snapshots = await store.query(
                Card.__collection__,
                [FieldFilter("listId", "in", list_ids[start:start + step])],
            )
            for snapshot in snapshots:
                try:
                    card = Card.from_snapshot(snapshot)
                except MalformedRecordError as e:
                    debug_logger.warning(f"Пропускаем карточку: {e.message}")
                    continue
                # Старые карточки могли быть созданы без boardId
                if not card.board_id:
                    card = card.model_copy(update={"board_id": board_id})
                cards.append(card)

        debug_logger.debug(f"Найдено {len(cards)} карточек на доске {board_id}")
        return cards

    @staticmethod
    async def update(
        store: DocumentStore,
        card_id: str,
        fields: Dict[str, Any]
    ) -> None:
        """Update card fields; updatedAt is always refreshed"""
        fields = dict(fields)
        if "title" in fields:
            fields["title"] = require_text(fields["title"], "title")
        if "assignees" in fields:
            fields["assignees"] = list(dict.fromkeys(fields["assignees"] or []))
        fields["updated_at"] = utcnow()
        encoded = Card.encode_fields(fields)

        if await CardService.get_by_id(store, card_id) is None:
            raise NotFoundError("Card not found")
        await store.update(Card.__collection__, card_id, encoded)

    @staticmethod
    async def move(
        store: DocumentStore,
        card_id: str,
        list_id: str,
        order: int
    ) -> Card:
        """Move a card to another list (or position), keeping boardId in sync"""
        card = await CardService.get_by_id(store, card_id)
        if card is None:
            raise NotFoundError("Card not found")

        target = await ListService.get_by_id(store, list_id)
        if target is None:
            raise NotFoundError("List not found")
        if card.board_id and card.board_id != target.board_id:
            raise InvalidInputError("Cards cannot be moved to a list on another board")

        now = utcnow()
        await store.update(Card.__collection__, card_id, {
            "listId": target.id,
            "boardId": target.board_id,
            "order": order,
            "updatedAt": encode_value(now),
        })
        return card.model_copy(update={
            "list_id": target.id,
            "board_id": target.board_id,
            "order": order,
            "updated_at": now,
        })

    @staticmethod
    async def reorder(
        store: DocumentStore,
        list_id: str,
        card_ids: List[str]
    ) -> None:
        """Persist a new top-to-bottom order of a list's cards in one commit"""
        known = {card.id for card in await CardService.get_by_list_id(store, list_id)}
        unknown = [card_id for card_id in card_ids if card_id not in known]
        if unknown:
            raise InvalidInputError(f"Cards {', '.join(unknown)} do not belong to list {list_id}")

        updated_at = encode_value(utcnow())
        operations = [
            WriteOperation("update", Card.__collection__, card_id, {"order": position, "updatedAt": updated_at})
            for position, card_id in enumerate(card_ids)
        ]
        await store.commit_batches(store.chunk(operations))

    @staticmethod
    async def delete(
        store: DocumentStore,
        card_id: str
    ) -> CascadeResult:
        """Delete a card with its comments"""
        return await CascadeDeletionService.delete_card(store, card_id)
