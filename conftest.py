import pytest

from taskboard.core import get_settings
from taskboard.db.memory import InMemoryDocumentStore
from taskboard.db.store import IndexRegistry
from taskboard.models.base import utcnow
from taskboard.models.board import Board, BoardMember, BoardUserRole, MemberStatus
from taskboard.services.session import SessionContext
from taskboard.services.user_service import UserService


@pytest.fixture
def store():
    """Хранилище в памяти с индексами из настроек"""
    settings = get_settings()
    return InMemoryDocumentStore(indexes=IndexRegistry(settings.DOCUMENT_INDEXES))


@pytest.fixture
def make_user(store):
    """Создает профиль и возвращает сессию этого пользователя"""
    async def _make_user(user_id: str, email: str = None, name: str = None) -> SessionContext:
        profile = await UserService.create_profile(
            store, user_id, email or f"{user_id}@example.com", name or user_id.title()
        )
        return SessionContext(user=profile)
    return _make_user


def make_member(user_id: str, role: BoardUserRole, status: MemberStatus = None) -> BoardMember:
    return BoardMember(user_id=user_id, role=role, joined_at=utcnow(), status=status)


def make_board(*members: BoardMember, board_id: str = "board-1", owner_id: str = "owner") -> Board:
    now = utcnow()
    return Board(
        id=board_id,
        title="Test Board",
        owner_id=owner_id,
        members=list(members),
        created_at=now,
        updated_at=now,
    )
