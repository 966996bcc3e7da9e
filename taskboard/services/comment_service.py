from typing import List, Optional

from taskboard.core.exceptions import NotFoundError
from taskboard.db.store import DocumentStore, FieldFilter
from taskboard.models.base import utcnow
from taskboard.models.card import Card, Comment
from taskboard.services.query_service import ordered_query
from taskboard.services.session import SessionContext
from taskboard.services.validation import require_text


class CommentService:
    """CRUD operations service for comments"""

    @staticmethod
    async def create(
        store: DocumentStore,
        session: SessionContext,
        card_id: str,
        content: str
    ) -> Comment:
        """Create a new comment authored by the signed-in user"""
        content = require_text(content, "content")
        author = session.require_user()

        if await store.get(Card.__collection__, card_id) is None:
            raise NotFoundError("Card not found")

        comment = Comment(card_id=card_id, user_id=author.id, content=content, created_at=utcnow())
        comment_id = await store.add(Comment.__collection__, comment.to_document())
        return comment.model_copy(update={"id": comment_id})

    @staticmethod
    async def get_by_id(
        store: DocumentStore,
        comment_id: str
    ) -> Optional[Comment]:
        """Get comment by id"""
        snapshot = await store.get(Comment.__collection__, comment_id)
        return Comment.from_snapshot(snapshot) if snapshot else None

    @staticmethod
    async def get_by_card_id(
        store: DocumentStore,
        card_id: str
    ) -> List[Comment]:
        """Get all comments for a card, oldest first"""
        return await ordered_query(
            store,
            Comment.__collection__,
            [FieldFilter("cardId", "==", card_id)],
            "createdAt",
            Comment.from_snapshot,
        )

    @staticmethod
    async def update(
        store: DocumentStore,
        comment_id: str,
        content: str
    ) -> None:
        """Update a comment's text"""
        content = require_text(content, "content")
        await store.update(Comment.__collection__, comment_id, Comment.encode_fields({"content": content}))

    @staticmethod
    async def delete(
        store: DocumentStore,
        comment_id: str
    ) -> None:
        """Delete a comment"""
        await store.delete(Comment.__collection__, comment_id)

    @staticmethod
    async def is_comment_owner(
        store: DocumentStore,
        comment_id: str,
        user_id: str
    ) -> bool:
        """Check if a user is the author of a comment"""
        comment = await CommentService.get_by_id(store, comment_id)
        if not comment:
            return False
        return comment.user_id == user_id
