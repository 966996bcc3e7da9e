from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from taskboard.api.dependencies.auth import get_session
from taskboard.api.dependencies.permissions import check_card_permissions
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.models.card import Comment
from taskboard.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from taskboard.services.comment_service import CommentService
from taskboard.services.session import SessionContext

router = APIRouter(tags=["comments"])


async def _get_own_comment(
    store: DocumentStore,
    session: SessionContext,
    comment_id: str
) -> Comment:
    comment = await CommentService.get_by_id(store, comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    # Доступ к доске проверяем до проверки авторства
    await check_card_permissions(store, session, comment.card_id)

    if comment.user_id != session.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own comments"
        )
    return comment


@router.get("/cards/{card_id}/comments", response_model=List[CommentResponse])
async def get_comments(
    card_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get the comments of a card, oldest first
    """
    await check_card_permissions(store, session, card_id)
    comments = await CommentService.get_by_card_id(store, card_id)
    return [CommentResponse.model_validate(comment) for comment in comments]


@router.post("/cards/{card_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    card_id: str,
    comment_data: CommentCreate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Add a comment to a card
    """
    await check_card_permissions(store, session, card_id, "can_edit")
    comment = await CommentService.create(store, session, card_id, comment_data.content)
    return CommentResponse.model_validate(comment)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    comment_data: CommentUpdate,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Update a comment (author only)
    """
    comment = await _get_own_comment(store, session, comment_id)
    await CommentService.update(store, comment_id, comment_data.content)
    return CommentResponse.model_validate(comment.model_copy(update={"content": comment_data.content.strip()}))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Delete a comment (author only)
    """
    await _get_own_comment(store, session, comment_id)
    await CommentService.delete(store, comment_id)
