from typing import Any, Dict, List, NamedTuple, Optional

from taskboard.core.exceptions import MalformedRecordError
from taskboard.db.store import DocumentStore, FieldFilter, WriteOperation
from taskboard.logs import debug_logger
from taskboard.models.base import utcnow
from taskboard.models.board import Board, BoardMember, BoardUserRole, MemberStatus
from taskboard.services.cascade_service import CascadeDeletionService, CascadeResult
from taskboard.services.session import SessionContext
from taskboard.services.validation import require_text


class BoardPartition(NamedTuple):
    """Dashboard view of a user's boards"""
    pending: List[Board]
    accepted: List[Board]


def partition_boards(boards: List[Board], user_id: str) -> BoardPartition:
    """Split boards into pending invitations and joined boards.

    A missing status counts as accepted; rejected invitations land in
    neither list.
    """
    pending: List[Board] = []
    accepted: List[Board] = []
    for board in boards:
        member = board.find_member(user_id)
        if member is None:
            continue
        if member.status == MemberStatus.PENDING:
            pending.append(board)
        elif member.is_accepted:
            accepted.append(board)
        else:
            debug_logger.debug(f"Доска {board.id} пропущена, статус {member.status.value}")
    return BoardPartition(pending=pending, accepted=accepted)


def search_boards(boards: List[Board], query: Optional[str]) -> List[Board]:
    """Case-insensitive title filter"""
    if not query or not query.strip():
        return list(boards)
    needle = query.strip().lower()
    return [board for board in boards if needle in board.title.lower()]


class BoardService:
    """CRUD operations and membership aggregation for boards"""

    @staticmethod
    async def create(
        store: DocumentStore,
        session: SessionContext,
        title: str
    ) -> Board:
        """Create a new board owned by the signed-in user"""
        title = require_text(title, "title")
        owner = session.require_user()
        now = utcnow()

        board = Board(
            title=title,
            owner_id=owner.id,
            members=[BoardMember(user_id=owner.id, role=BoardUserRole.OWNER, joined_at=now)],
            created_at=now,
            updated_at=now,
        )
        board_id = await store.add(Board.__collection__, board.to_document())
        debug_logger.info(f"Пользователь {owner.id} создал доску {board_id}")
        return board.model_copy(update={"id": board_id, "member_ids": [owner.id]})

    @staticmethod
    async def get_by_id(
        store: DocumentStore,
        board_id: str,
        user_id: Optional[str] = None
    ) -> Optional[Board]:
        """Get board by id.

        With user_id given, a board the user is not a member of is reported
        as absent.
        """
        snapshot = await store.get(Board.__collection__, board_id)
        if snapshot is None:
            debug_logger.debug(f"Доска {board_id} не найдена")
            return None

        board = Board.from_snapshot(snapshot)
        if user_id and board.find_member(user_id) is None:
            debug_logger.warning(f"Пользователь {user_id} не имеет доступа к доске {board_id}")
            return None
        return board

    @staticmethod
    async def get_boards_for_user(
        store: DocumentStore,
        user_id: str
    ) -> List[Board]:
        """All boards with a member record for user_id, whatever its status"""
        snapshots = await store.query(
            Board.__collection__, [FieldFilter("memberIds", "array_contains", user_id)]
        )

        boards: List[Board] = []
        for snapshot in snapshots:
            try:
                board = Board.from_snapshot(snapshot)
            except MalformedRecordError as e:
                debug_logger.warning(f"Пропускаем доску: {e.message}")
                continue

            if board.find_member(user_id) is None:
                # memberIds разошелся с members, доверяем members
                debug_logger.warning(
                    f"Индекс участников доски {board.id} устарел, пользователь {user_id} не найден"
                )
                continue
            boards.append(board)

        debug_logger.debug(f"Найдено {len(boards)} досок для пользователя {user_id}")
        return boards

    @staticmethod
    async def get_dashboard(
        store: DocumentStore,
        session: SessionContext,
        query: Optional[str] = None
    ) -> BoardPartition:
        """Pending invitations and joined boards of the signed-in user"""
        user = session.require_user()
        boards = await BoardService.get_boards_for_user(store, user.id)
        return partition_boards(search_boards(boards, query), user.id)

    @staticmethod
    async def update(
        store: DocumentStore,
        board_id: str,
        fields: Dict[str, Any]
    ) -> None:
        """Update board fields (membership changes go through InvitationService)"""
        fields = dict(fields)
        if "title" in fields:
            fields["title"] = require_text(fields["title"], "title")
        fields["updated_at"] = utcnow()
        await store.update(Board.__collection__, board_id, Board.encode_fields(fields))

    @staticmethod
    async def delete(
        store: DocumentStore,
        board_id: str
    ) -> CascadeResult:
        """Delete a board with all of its lists, cards and comments"""
        return await CascadeDeletionService.delete_board(store, board_id)

    @staticmethod
    async def backfill_member_index(store: DocumentStore) -> int:
        """Rebuild memberIds on boards written before the index existed.

        Returns the number of boards that were updated.
        """
        operations = []
        for snapshot in await store.query(Board.__collection__):
            try:
                board = Board.from_snapshot(snapshot)
            except MalformedRecordError as e:
                debug_logger.warning(f"Пропускаем доску: {e.message}")
                continue
            member_ids = [m.user_id for m in board.members]
            if snapshot.data.get("memberIds") != member_ids:
                operations.append(
                    WriteOperation("update", Board.__collection__, board.id, {"memberIds": member_ids})
                )

        await store.commit_batches(store.chunk(operations))
        debug_logger.info(f"Индекс участников обновлен для {len(operations)} досок")
        return len(operations)
