from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from taskboard.api.dependencies.auth import get_session
from taskboard.api.dependencies.permissions import check_board_permissions
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.schemas.board import (
    BoardCreate,
    BoardDashboardResponse,
    BoardDetailResponse,
    BoardPermissions,
    BoardResponse,
    BoardUpdate,
    CascadeResponse,
)
from taskboard.schemas.card import CardResponse
from taskboard.services.board_service import BoardService
from taskboard.services.card_service import CardService
from taskboard.services.permission_service import resolve_permissions
from taskboard.services.session import SessionContext
from taskboard.logs import debug_logger

router = APIRouter(prefix="/boards", tags=["boards"])


@router.get("", response_model=BoardDashboardResponse)
async def get_boards(
    search: Optional[str] = Query(None, description="Case-insensitive title filter"),
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get the current user's boards split into pending invitations and joined boards
    """
    dashboard = await BoardService.get_dashboard(store, session, search)
    return BoardDashboardResponse(
        pending=[BoardResponse.model_validate(board) for board in dashboard.pending],
        accepted=[BoardResponse.model_validate(board) for board in dashboard.accepted],
    )


@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_data: BoardCreate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Create a new board, the current user becomes its owner
    """
    board = await BoardService.create(store, session, board_data.title)
    return BoardResponse.model_validate(board)


@router.get("/{board_id}", response_model=BoardDetailResponse)
async def get_board(
    board_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get a board with the current user's permissions
    """
    board = await check_board_permissions(store, session, board_id)
    permissions = resolve_permissions(board, session.user_id)
    return BoardDetailResponse(
        **BoardResponse.model_validate(board).model_dump(),
        permissions=BoardPermissions.model_validate(permissions),
    )


@router.patch("/{board_id}", response_model=BoardResponse)
async def update_board(
    board_id: str,
    board_data: BoardUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update a board
    """
    await check_board_permissions(store, session, board_id, "can_edit")
    await BoardService.update(store, board_id, board_data.model_dump(exclude_unset=True))
    board = await BoardService.get_by_id(store, board_id)
    return BoardResponse.model_validate(board)


@router.delete("/{board_id}", response_model=CascadeResponse)
async def delete_board(
    board_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Delete a board with all of its lists, cards and comments
    """
    await check_board_permissions(store, session, board_id, "can_delete")
    result = await BoardService.delete(store, board_id)
    debug_logger.info(f"Пользователь {session.user_id} удалил доску {board_id}")
    return CascadeResponse.model_validate(result)


@router.get("/{board_id}/cards", response_model=List[CardResponse])
async def get_board_cards(
    board_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get all cards on a board
    """
    await check_board_permissions(store, session, board_id)
    cards = await CardService.get_by_board_id(store, board_id)
    return [CardResponse.model_validate(card) for card in cards]
