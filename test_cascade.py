import pytest
from unittest.mock import patch

from taskboard.core.exceptions import NotFoundError, StoreError
from taskboard.core import get_settings
from taskboard.db.memory import InMemoryDocumentStore
from taskboard.db.store import FieldFilter, IndexRegistry
from taskboard.services.board_service import BoardService
from taskboard.services.card_service import CardService
from taskboard.services.cascade_service import CascadeDeletionService
from taskboard.services.comment_service import CommentService
from taskboard.services.list_service import ListService
from taskboard.services.session import SessionContext
from taskboard.services.user_service import UserService


class FailingStore(InMemoryDocumentStore):
    """Хранилище, которое падает посреди применения батча"""

    def __init__(self, fail_after: int, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_after = fail_after
        self.applied = 0

    def _apply_operation(self, staged, operation):
        if self.applied >= self.fail_after:
            raise StoreError("Connection lost while committing batch")
        self.applied += 1
        super()._apply_operation(staged, operation)


async def seed_board(store, session, title="Board", lists=2, cards_per_list=2, comments_per_card=1):
    """Доска со списками, карточками и комментариями"""
    board = await BoardService.create(store, session, title)
    for list_index in range(lists):
        task_list = await ListService.create(store, board.id, f"List {list_index}")
        for card_index in range(cards_per_list):
            card = await CardService.create(store, task_list.id, f"Card {list_index}.{card_index}")
            for comment_index in range(comments_per_card):
                await CommentService.create(store, session, card.id, f"Comment {comment_index}")
    return board


async def board_contents(store, board_id):
    lists = await store.query("lists", [FieldFilter("boardId", "==", board_id)])
    list_ids = [s.id for s in lists]
    cards = [s for s in await store.query("cards") if s.data["listId"] in list_ids]
    card_ids = [s.id for s in cards]
    comments = [s for s in await store.query("comments") if s.data["cardId"] in card_ids]
    return lists, cards, comments


@pytest.fixture
async def session(store):
    profile = await UserService.create_profile(store, "owner", "owner@example.com", "Owner")
    return SessionContext(user=profile)


class TestDeleteList:
    """Тесты каскадного удаления списка"""

    @pytest.mark.asyncio
    async def test_list_with_two_cards_and_comments(self, store, session):
        """Удаление списка с двумя карточками по одному комментарию удаляет ровно 1+2+2 записи"""
        board = await BoardService.create(store, session, "Board")
        doomed = await ListService.create(store, board.id, "Doomed")
        sibling = await ListService.create(store, board.id, "Sibling")
        for title in ("A", "B"):
            card = await CardService.create(store, doomed.id, title)
            await CommentService.create(store, session, card.id, f"On {title}")
        sibling_card = await CardService.create(store, sibling.id, "Keep")
        await CommentService.create(store, session, sibling_card.id, "Keep me")

        result = await ListService.delete(store, doomed.id)

        assert (result.boards, result.lists, result.cards, result.comments) == (0, 1, 2, 2)
        assert result.total == 5
        assert await ListService.get_by_id(store, doomed.id) is None
        assert [l.id for l in await ListService.get_by_board_id(store, board.id)] == [sibling.id]
        assert [c.id for c in await CardService.get_by_list_id(store, sibling.id)] == [sibling_card.id]
        assert len(await CommentService.get_by_card_id(store, sibling_card.id)) == 1
        assert store.count("cards") == 1
        assert store.count("comments") == 1

    @pytest.mark.asyncio
    async def test_empty_list(self, store, session):
        board = await BoardService.create(store, session, "Board")
        task_list = await ListService.create(store, board.id, "Empty")

        result = await ListService.delete(store, task_list.id)

        assert result.lists == 1
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_missing_list(self, store):
        with pytest.raises(NotFoundError):
            await CascadeDeletionService.delete_list(store, "missing")


class TestDeleteBoard:
    """Тесты каскадного удаления доски"""

    @pytest.mark.asyncio
    async def test_nothing_of_the_board_remains(self, store, session):
        """После удаления доски не остается ее списков, карточек и комментариев"""
        board = await seed_board(store, session)
        other = await seed_board(store, session, title="Other", lists=1, cards_per_list=1)

        result = await BoardService.delete(store, board.id)

        assert (result.boards, result.lists, result.cards, result.comments) == (1, 2, 4, 4)
        assert await BoardService.get_by_id(store, board.id) is None
        lists, cards, comments = await board_contents(store, board.id)
        assert lists == [] and cards == [] and comments == []

        other_lists, other_cards, other_comments = await board_contents(store, other.id)
        assert (len(other_lists), len(other_cards), len(other_comments)) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_missing_board(self, store):
        with pytest.raises(NotFoundError):
            await BoardService.delete(store, "missing")

    @pytest.mark.asyncio
    async def test_interrupted_batch_removes_nothing(self):
        """Сбой посреди батча не удаляет ни одной записи"""
        failing = FailingStore(
            fail_after=10**6, indexes=IndexRegistry(get_settings().DOCUMENT_INDEXES)
        )
        profile = await UserService.create_profile(failing, "owner", "owner@example.com", "Owner")
        session = SessionContext(user=profile)
        board = await seed_board(failing, session)
        counts = {name: failing.count(name) for name in ("boards", "lists", "cards", "comments")}

        failing.applied = 0
        failing.fail_after = 5
        with pytest.raises(StoreError):
            await BoardService.delete(failing, board.id)

        assert {name: failing.count(name) for name in counts} == counts
        assert await BoardService.get_by_id(failing, board.id) is not None

    @pytest.mark.asyncio
    async def test_failure_across_chunks_removes_nothing(self):
        """Группа из нескольких батчей применяется целиком или никак"""
        failing = FailingStore(
            fail_after=10**6, indexes=IndexRegistry(get_settings().DOCUMENT_INDEXES), batch_limit=3
        )
        profile = await UserService.create_profile(failing, "owner", "owner@example.com", "Owner")
        board = await seed_board(failing, SessionContext(user=profile))

        failing.applied = 0
        failing.fail_after = 7  # третий батч из 3 операций
        with pytest.raises(StoreError):
            await BoardService.delete(failing, board.id)

        lists, cards, comments = await board_contents(failing, board.id)
        assert (len(lists), len(cards), len(comments)) == (2, 4, 4)

    @pytest.mark.asyncio
    async def test_lookup_failure_aborts_before_any_write(self, store, session):
        """Ошибка при поиске зависимых записей прерывает удаление до записи"""
        board = await seed_board(store, session)
        original_query = store.query

        async def failing_query(collection, filters=(), order_by=None):
            if collection == "comments":
                raise StoreError("Query failed")
            return await original_query(collection, filters, order_by)

        with patch.object(store, "query", side_effect=failing_query), \
             patch.object(store, "commit_batches", wraps=store.commit_batches) as mock_commit:
            with pytest.raises(StoreError):
                await BoardService.delete(store, board.id)

        mock_commit.assert_not_called()
        assert store.count("lists") == 2
        assert store.count("cards") == 4

    @pytest.mark.asyncio
    async def test_large_board_is_chunked(self, session):
        """Поиск по 'in' и запись разбиваются на части по лимитам хранилища"""
        store = InMemoryDocumentStore(
            indexes=IndexRegistry(get_settings().DOCUMENT_INDEXES), batch_limit=4, in_query_limit=2
        )
        await UserService.create_profile(store, "owner", "owner@example.com", "Owner")
        board = await seed_board(store, session, lists=5, cards_per_list=1, comments_per_card=2)

        with patch.object(store, "commit_batches", wraps=store.commit_batches) as mock_commit:
            result = await BoardService.delete(store, board.id)

        # 1 доска + 5 списков + 5 карточек + 10 комментариев
        assert result.total == 21
        mock_commit.assert_called_once()
        batches = mock_commit.call_args[0][0]
        assert [len(batch) for batch in batches] == [4, 4, 4, 4, 4, 1]
        for name in ("boards", "lists", "cards", "comments"):
            assert store.count(name) == 0


class TestDeleteCard:
    """Тесты удаления карточки"""

    @pytest.mark.asyncio
    async def test_card_with_comments(self, store, session):
        board = await BoardService.create(store, session, "Board")
        task_list = await ListService.create(store, board.id, "List")
        card = await CardService.create(store, task_list.id, "Card")
        keep = await CardService.create(store, task_list.id, "Keep")
        await CommentService.create(store, session, card.id, "one")
        await CommentService.create(store, session, card.id, "two")
        await CommentService.create(store, session, keep.id, "three")

        result = await CardService.delete(store, card.id)

        assert (result.cards, result.comments) == (1, 2)
        assert await CardService.get_by_id(store, card.id) is None
        assert [c.content for c in await CommentService.get_by_card_id(store, keep.id)] == ["three"]

    @pytest.mark.asyncio
    async def test_missing_card(self, store):
        with pytest.raises(NotFoundError):
            await CardService.delete(store, "missing")
