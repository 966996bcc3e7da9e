from taskboard.core.exceptions import NotFoundError
from taskboard.db.store import DocumentStore
from taskboard.models.board import Board
from taskboard.models.card import Card
from taskboard.models.task_list import TaskList
from taskboard.services.board_service import BoardService
from taskboard.services.card_service import CardService
from taskboard.services.list_service import ListService
from taskboard.services.permission_service import require_permission
from taskboard.services.session import SessionContext


async def check_board_permissions(
    store: DocumentStore,
    session: SessionContext,
    board_id: str,
    capability: str = "can_view"
) -> Board:
    """
    Load a board for the current user and check one capability

    Args:
        store: Document store
        session: Session of the current request
        board_id: Board ID
        capability: RolePermissions attribute, e.g. "can_edit"

    Returns:
        The board, if the user holds the capability

    Raises:
        NotFoundError: Board is missing or the user is not a member
        PermissionDeniedError: The user's role lacks the capability
    """
    board = await BoardService.get_by_id(store, board_id, session.user_id)
    if board is None:
        # Не раскрываем существование чужих досок
        raise NotFoundError("Board not found")

    require_permission(board, session.user_id, capability)
    return board


async def check_list_permissions(
    store: DocumentStore,
    session: SessionContext,
    list_id: str,
    capability: str = "can_view"
) -> TaskList:
    task_list = await ListService.get_by_id(store, list_id)
    if task_list is None:
        raise NotFoundError("List not found")
    await check_board_permissions(store, session, task_list.board_id, capability)
    return task_list


async def check_card_permissions(
    store: DocumentStore,
    session: SessionContext,
    card_id: str,
    capability: str = "can_view"
) -> Card:
    card = await CardService.get_by_id(store, card_id)
    if card is None:
        raise NotFoundError("Card not found")

    board_id = card.board_id
    if not board_id:
        # Старые карточки без boardId, ищем через список
        task_list = await ListService.get_by_id(store, card.list_id)
        if task_list is None:
            raise NotFoundError("Card not found")
        board_id = task_list.board_id

    await check_board_permissions(store, session, board_id, capability)
    return card
