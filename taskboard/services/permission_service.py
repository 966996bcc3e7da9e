from typing import Dict, Optional

from pydantic import BaseModel

from taskboard.core.exceptions import PermissionDeniedError
from taskboard.models.board import Board, BoardMember, BoardUserRole


class RolePermissions(BaseModel):
    """Capability set derived from a board role"""
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_invite: bool
    can_manage_members: bool

    model_config = {"frozen": True}


ROLE_PERMISSIONS: Dict[BoardUserRole, RolePermissions] = {
    BoardUserRole.OWNER: RolePermissions(
        can_view=True,
        can_edit=True,
        can_delete=True,
        can_invite=True,
        can_manage_members=True,
    ),
    BoardUserRole.EDITOR: RolePermissions(
        can_view=True,
        can_edit=True,
        can_delete=False,
        can_invite=False,
        can_manage_members=False,
    ),
    BoardUserRole.VIEWER: RolePermissions(
        can_view=True,
        can_edit=False,
        can_delete=False,
        can_invite=False,
        can_manage_members=False,
    ),
}

VIEWER_PERMISSIONS = ROLE_PERMISSIONS[BoardUserRole.VIEWER]


def get_permissions(role: Optional[BoardUserRole] = None) -> RolePermissions:
    if role is None:
        return VIEWER_PERMISSIONS
    return ROLE_PERMISSIONS[BoardUserRole(role)]


def resolve_permissions(board: Optional[Board], user_id: Optional[str]) -> RolePermissions:
    """Capabilities of user_id on board.

    Unknown board or user, a missing member record, and a pending or
    rejected invitation all fall back to view-only.
    """
    if board is None or not user_id:
        return VIEWER_PERMISSIONS

    member = board.find_member(user_id)
    if member is None or not member.is_accepted:
        return VIEWER_PERMISSIONS

    return get_permissions(member.role)


class PermissionResolver:
    """Memoizes resolve_permissions on the (board, user) pair.

    Boards are compared by identity: services never mutate a Board in place,
    so a changed board is always a new object.
    """

    def __init__(self):
        self._board: Optional[Board] = None
        self._user_id: Optional[str] = None
        self._permissions: Optional[RolePermissions] = None

    def __call__(self, board: Optional[Board], user_id: Optional[str]) -> RolePermissions:
        if self._permissions is None or board is not self._board or user_id != self._user_id:
            self._board = board
            self._user_id = user_id
            self._permissions = resolve_permissions(board, user_id)
        return self._permissions


def require_permission(board: Optional[Board], user_id: Optional[str], capability: str) -> RolePermissions:
    """Raise PermissionDeniedError unless the user holds the capability"""
    permissions = resolve_permissions(board, user_id)
    if not getattr(permissions, capability):
        raise PermissionDeniedError(
            f"Operation not allowed: missing '{capability}' on this board"
        )
    return permissions


def can_change_member(board: Board, actor_id: Optional[str], target: BoardMember) -> bool:
    """Whether actor may change the role of, or remove, the target member.

    Owners manage every non-owner member, editors manage viewers only, and
    the owner record is never touched.
    """
    if target.role == BoardUserRole.OWNER or target.user_id == board.owner_id:
        return False

    permissions = resolve_permissions(board, actor_id)
    if permissions.can_manage_members:
        return True

    actor = board.find_member(actor_id)
    return (
        actor is not None
        and actor.is_accepted
        and actor.role == BoardUserRole.EDITOR
        and target.role == BoardUserRole.VIEWER
    )
