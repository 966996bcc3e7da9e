from typing import List

from fastapi import APIRouter, Depends, status

from taskboard.api.dependencies.auth import get_session
from taskboard.api.dependencies.permissions import check_board_permissions, check_list_permissions
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.schemas.board import CascadeResponse
from taskboard.schemas.task_list import (
    ListOrderUpdate,
    TaskListCreate,
    TaskListResponse,
    TaskListUpdate,
)
from taskboard.services.list_service import ListService
from taskboard.services.session import SessionContext

router = APIRouter(tags=["lists"])


@router.get("/boards/{board_id}/lists", response_model=List[TaskListResponse])
async def get_lists(
    board_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get the lists of a board, ordered by position
    """
    await check_board_permissions(store, session, board_id)
    lists = await ListService.get_by_board_id(store, board_id)
    return [TaskListResponse.model_validate(task_list) for task_list in lists]


@router.post("/boards/{board_id}/lists", response_model=TaskListResponse, status_code=status.HTTP_201_CREATED)
async def create_list(
    board_id: str,
    list_data: TaskListCreate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Create a new list on a board
    """
    await check_board_permissions(store, session, board_id, "can_edit")
    task_list = await ListService.create(store, board_id, list_data.title, list_data.order)
    return TaskListResponse.model_validate(task_list)


@router.put("/boards/{board_id}/lists/order", status_code=status.HTTP_204_NO_CONTENT)
async def reorder_lists(
    board_id: str,
    order_data: ListOrderUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update the order of a board's lists
    """
    await check_board_permissions(store, session, board_id, "can_edit")
    await ListService.reorder(store, board_id, order_data.list_ids)


@router.patch("/lists/{list_id}", response_model=TaskListResponse)
async def update_list(
    list_id: str,
    list_data: TaskListUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update a list
    """
    await check_list_permissions(store, session, list_id, "can_edit")
    await ListService.update(store, list_id, list_data.model_dump(exclude_unset=True))
    task_list = await ListService.get_by_id(store, list_id)
    return TaskListResponse.model_validate(task_list)


@router.delete("/lists/{list_id}", response_model=CascadeResponse)
async def delete_list(
    list_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Delete a list with its cards and their comments
    """
    await check_list_permissions(store, session, list_id, "can_edit")
    result = await ListService.delete(store, list_id)
    return CascadeResponse.model_validate(result)
