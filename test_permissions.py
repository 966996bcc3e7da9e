import pytest
from unittest.mock import patch

from taskboard.core.exceptions import PermissionDeniedError
from taskboard.models.board import BoardUserRole, MemberStatus
from taskboard.services import permission_service
from taskboard.services.permission_service import (
    ROLE_PERMISSIONS,
    VIEWER_PERMISSIONS,
    PermissionResolver,
    can_change_member,
    get_permissions,
    require_permission,
    resolve_permissions,
)

from conftest import make_board, make_member


class TestResolvePermissions:
    """Тесты вычисления прав пользователя на доске"""

    @pytest.fixture
    def board(self):
        return make_board(
            make_member("owner", BoardUserRole.OWNER),
            make_member("editor", BoardUserRole.EDITOR, MemberStatus.ACCEPTED),
            make_member("viewer", BoardUserRole.VIEWER, MemberStatus.ACCEPTED),
            make_member("invited", BoardUserRole.EDITOR, MemberStatus.PENDING),
            make_member("declined", BoardUserRole.EDITOR, MemberStatus.REJECTED),
        )

    def test_no_board_is_view_only(self):
        """Без доски права только на просмотр"""
        assert resolve_permissions(None, "owner") == VIEWER_PERMISSIONS

    def test_no_user_is_view_only(self, board):
        """Без пользователя права только на просмотр"""
        assert resolve_permissions(board, None) == VIEWER_PERMISSIONS
        assert resolve_permissions(board, "") == VIEWER_PERMISSIONS

    def test_non_member_is_view_only(self, board):
        """Посторонний пользователь получает права наблюдателя"""
        assert resolve_permissions(board, "stranger") == VIEWER_PERMISSIONS

    def test_legacy_owner_without_status(self, board):
        """Владелец без статуса считается принятым и получает все права"""
        permissions = resolve_permissions(board, "owner")

        assert permissions == ROLE_PERMISSIONS[BoardUserRole.OWNER]
        assert permissions.can_delete
        assert permissions.can_invite
        assert permissions.can_manage_members

    def test_accepted_editor(self, board):
        """Принятый редактор может редактировать, но не удалять"""
        permissions = resolve_permissions(board, "editor")

        assert permissions.can_view
        assert permissions.can_edit
        assert not permissions.can_delete
        assert not permissions.can_invite
        assert not permissions.can_manage_members

    def test_accepted_viewer(self, board):
        assert resolve_permissions(board, "viewer") == VIEWER_PERMISSIONS

    @pytest.mark.parametrize("user_id", ["invited", "declined"])
    def test_pending_and_rejected_are_view_only(self, board, user_id):
        """Ожидающее и отклоненное приглашение не дают прав роли"""
        assert resolve_permissions(board, user_id) == VIEWER_PERMISSIONS

    def test_get_permissions_default(self):
        assert get_permissions() == VIEWER_PERMISSIONS
        assert get_permissions("editor") == ROLE_PERMISSIONS[BoardUserRole.EDITOR]


class TestPermissionResolver:
    """Тесты мемоизации прав"""

    def test_same_board_and_user_is_cached(self):
        """Повторный вызов с теми же аргументами не пересчитывает права"""
        board = make_board(make_member("owner", BoardUserRole.OWNER))
        resolver = PermissionResolver()

        with patch.object(
            permission_service, "resolve_permissions", wraps=resolve_permissions
        ) as mock_resolve:
            first = resolver(board, "owner")
            second = resolver(board, "owner")

        assert first is second
        mock_resolve.assert_called_once()

    def test_new_board_object_is_recomputed(self):
        """Новый объект доски после изменения участников пересчитывается"""
        member = make_member("editor", BoardUserRole.EDITOR, MemberStatus.PENDING)
        board = make_board(make_member("owner", BoardUserRole.OWNER), member)
        resolver = PermissionResolver()

        assert not resolver(board, "editor").can_edit

        accepted = board.model_copy(update={
            "members": [board.members[0], member.model_copy(update={"status": MemberStatus.ACCEPTED})]
        })
        assert resolver(accepted, "editor").can_edit

    def test_user_change_is_recomputed(self):
        board = make_board(make_member("owner", BoardUserRole.OWNER))
        resolver = PermissionResolver()

        assert resolver(board, "owner").can_delete
        assert not resolver(board, "someone").can_delete


class TestRequirePermission:
    """Тесты проверки отдельной возможности"""

    def test_allowed(self):
        board = make_board(make_member("owner", BoardUserRole.OWNER))
        permissions = require_permission(board, "owner", "can_invite")
        assert permissions.can_invite

    def test_denied(self):
        board = make_board(
            make_member("owner", BoardUserRole.OWNER),
            make_member("editor", BoardUserRole.EDITOR, MemberStatus.ACCEPTED),
        )
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_permission(board, "editor", "can_invite")

        assert "can_invite" in exc_info.value.message


class TestCanChangeMember:
    """Тесты правил изменения участников"""

    @pytest.fixture
    def board(self):
        return make_board(
            make_member("owner", BoardUserRole.OWNER),
            make_member("editor", BoardUserRole.EDITOR, MemberStatus.ACCEPTED),
            make_member("editor2", BoardUserRole.EDITOR),
            make_member("viewer", BoardUserRole.VIEWER, MemberStatus.ACCEPTED),
            make_member("pending-editor", BoardUserRole.EDITOR, MemberStatus.PENDING),
        )

    def test_owner_manages_anyone_but_owner(self, board):
        assert can_change_member(board, "owner", board.find_member("editor"))
        assert can_change_member(board, "owner", board.find_member("viewer"))
        assert not can_change_member(board, "owner", board.find_member("owner"))

    def test_editor_manages_viewers_only(self, board):
        """Редактор может менять только наблюдателей"""
        assert can_change_member(board, "editor", board.find_member("viewer"))
        assert not can_change_member(board, "editor", board.find_member("editor2"))
        assert not can_change_member(board, "editor", board.find_member("owner"))

    def test_pending_editor_cannot_manage(self, board):
        """Непринятое приглашение не дает прав управления"""
        assert not can_change_member(board, "pending-editor", board.find_member("viewer"))

    def test_viewer_cannot_manage(self, board):
        assert not can_change_member(board, "viewer", board.find_member("viewer"))
