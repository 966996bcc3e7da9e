from typing import List

from fastapi import APIRouter, Depends, status

from taskboard.api.dependencies.auth import get_session
from taskboard.api.dependencies.permissions import check_card_permissions, check_list_permissions
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.schemas.board import CascadeResponse
from taskboard.schemas.card import (
    CardCreate,
    CardMove,
    CardOrderUpdate,
    CardResponse,
    CardUpdate,
)
from taskboard.services.card_service import CardService
from taskboard.services.session import SessionContext
from taskboard.logs import debug_logger

router = APIRouter(tags=["cards"])


@router.get("/lists/{list_id}/cards", response_model=List[CardResponse])
async def get_cards(
    list_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get the cards of a list, ordered by position
    """
    await check_list_permissions(store, session, list_id)
    cards = await CardService.get_by_list_id(store, list_id)
    return [CardResponse.model_validate(card) for card in cards]


@router.post("/lists/{list_id}/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    list_id: str,
    card_data: CardCreate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Create a new card in a list
    """
    await check_list_permissions(store, session, list_id, "can_edit")
    card = await CardService.create(
        store,
        list_id,
        card_data.title,
        description=card_data.description,
        assignees=card_data.assignees,
        due_date=card_data.due_date,
        order=card_data.order,
    )
    return CardResponse.model_validate(card)


@router.put("/lists/{list_id}/cards/order", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_cards(
    list_id: str,
    order_data: CardOrderUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update the order of cards in a list
    """
    await check_list_permissions(store, session, list_id, "can_edit")
    await CardService.reorder(store, list_id, order_data.card_ids)


@router.get("/cards/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get a card by id
    """
    card = await check_card_permissions(store, session, card_id)
    return CardResponse.model_validate(card)


@router.patch("/cards/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: str,
    card_data: CardUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update a card
    """
    await check_card_permissions(store, session, card_id, "can_edit")
    await CardService.update(store, card_id, card_data.model_dump(exclude_unset=True))
    card = await CardService.get_by_id(store, card_id)
    return CardResponse.model_validate(card)


@router.post("/cards/{card_id}/move", response_model=CardResponse)
async def move_card(
    card_id: str,
    move_data: CardMove,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Move a card to another list or position
    """
    await check_card_permissions(store, session, card_id, "can_edit")
    await check_list_permissions(store, session, move_data.list_id, "can_edit")
    card = await CardService.move(store, card_id, move_data.list_id, move_data.order)
    debug_logger.debug(f"Карточка {card_id} перемещена в список {move_data.list_id}")
    return CardResponse.model_validate(card)


@router.delete("/cards/{card_id}", response_model=CascadeResponse)
async def delete_card(
    card_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Delete a card with its comments
    """
    await check_card_permissions(store, session, card_id, "can_edit")
    result = await CardService.delete(store, card_id)
    return CascadeResponse.model_validate(result)
