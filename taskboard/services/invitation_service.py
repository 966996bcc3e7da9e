from typing import List, NamedTuple, Optional

from taskboard.core.exceptions import (
    AlreadyMemberError,
    InvitationStateError,
    NotFoundError,
    PermissionDeniedError,
)
from taskboard.db.store import DocumentStore
from taskboard.logs import debug_logger
from taskboard.models.base import utcnow
from taskboard.models.board import (
    Board,
    BoardMember,
    BoardUserRole,
    MemberStatus,
    members_update,
)
from taskboard.models.user import UserProfile
from taskboard.services.board_service import BoardService, partition_boards
from taskboard.services.permission_service import can_change_member, require_permission
from taskboard.services.session import SessionContext
from taskboard.services.user_service import UserService
from taskboard.services.validation import normalize_email, parse_member_role, parse_response


class MemberProfile(NamedTuple):
    """Member record joined with the user's profile (None when missing)"""
    member: BoardMember
    profile: Optional[UserProfile]


class InvitationService:
    """Board membership lifecycle.

    pending -> accepted and pending -> rejected are driven by the invitee.
    Invites, role changes and removals are checked against the acting
    user's capabilities before anything is written. Every write replaces the
    whole members array (and memberIds) in one update.
    """

    @staticmethod
    async def _load_board(store: DocumentStore, board_id: str, user_id: str) -> Board:
        # Для не-участника доска неотличима от отсутствующей
        board = await BoardService.get_by_id(store, board_id, user_id=user_id)
        if board is None:
            raise NotFoundError("Board not found")
        return board

    @staticmethod
    async def _write_members(store: DocumentStore, board: Board, members: List[BoardMember]) -> Board:
        now = utcnow()
        await store.update(Board.__collection__, board.id, members_update(members, now))
        return board.model_copy(update={
            "members": members,
            "member_ids": [m.user_id for m in members],
            "updated_at": now,
        })

    @staticmethod
    async def invite(
        store: DocumentStore,
        session: SessionContext,
        board_id: str,
        email: str,
        role: BoardUserRole = BoardUserRole.EDITOR
    ) -> BoardMember:
        """Invite a registered user by email (board owner only)"""
        email = normalize_email(email)
        role = parse_member_role(role)
        inviter = session.require_user()

        board = await InvitationService._load_board(store, board_id, inviter.id)
        require_permission(board, inviter.id, "can_invite")

        invitee = await UserService.get_by_email(store, email)
        if invitee is None:
            raise NotFoundError("No user found with this email address. They need to sign up first.")

        existing = board.find_member(invitee.id)
        if existing is not None:
            if existing.status == MemberStatus.PENDING:
                raise AlreadyMemberError("User already has a pending invitation to this board")
            if existing.status == MemberStatus.REJECTED:
                raise AlreadyMemberError("User declined an invitation to this board; re-inviting is not supported")
            raise AlreadyMemberError("User is already a member of this board")

        now = utcnow()
        member = BoardMember(
            user_id=invitee.id,
            role=role,
            joined_at=now,
            status=MemberStatus.PENDING,
            invited_by=inviter.id,
            invited_at=now,
        )
        await InvitationService._write_members(store, board, board.members + [member])
        debug_logger.info(f"Пользователь {inviter.id} пригласил {invitee.id} на доску {board_id} ({role.value})")
        return member

    @staticmethod
    async def respond(
        store: DocumentStore,
        session: SessionContext,
        board_id: str,
        response: MemberStatus
    ) -> Board:
        """Accept or decline the signed-in user's invitation.

        Repeating the response the invitation already has is a no-op.
        """
        response = parse_response(response)
        user = session.require_user()

        board = await InvitationService._load_board(store, board_id, user.id)
        member = board.find_member(user.id)

        if response == MemberStatus.ACCEPTED and member.is_accepted:
            return board
        if response == MemberStatus.REJECTED and member.status == MemberStatus.REJECTED:
            return board
        if member.status != MemberStatus.PENDING:
            # Участник без статуса считается принятым
            current = member.status or MemberStatus.ACCEPTED
            raise InvitationStateError(
                f"Invitation is already {current.value} and cannot be {response.value}"
            )

        update = {"status": response}
        if response == MemberStatus.ACCEPTED:
            update["joined_at"] = utcnow()
        updated_member = member.model_copy(update=update)

        members = [updated_member if m.user_id == user.id else m for m in board.members]
        board = await InvitationService._write_members(store, board, members)
        debug_logger.info(f"Пользователь {user.id} ответил на приглашение {board_id}: {response.value}")
        return board

    @staticmethod
    async def accept(store: DocumentStore, session: SessionContext, board_id: str) -> Board:
        return await InvitationService.respond(store, session, board_id, MemberStatus.ACCEPTED)

    @staticmethod
    async def decline(store: DocumentStore, session: SessionContext, board_id: str) -> Board:
        return await InvitationService.respond(store, session, board_id, MemberStatus.REJECTED)

    @staticmethod
    async def change_member_role(
        store: DocumentStore,
        session: SessionContext,
        board_id: str,
        user_id: str,
        role: BoardUserRole
    ) -> Board:
        """Change a member's role (owner, or editor acting on a viewer)"""
        role = parse_member_role(role)
        actor = session.require_user()

        board = await InvitationService._load_board(store, board_id, actor.id)
        target = board.find_member(user_id)
        if target is None:
            raise NotFoundError("Member not found")
        if not can_change_member(board, actor.id, target):
            raise PermissionDeniedError("You cannot change the role of this member")
        if target.role == role:
            return board

        members = [m.model_copy(update={"role": role}) if m.user_id == user_id else m for m in board.members]
        return await InvitationService._write_members(store, board, members)

    @staticmethod
    async def remove_member(
        store: DocumentStore,
        session: SessionContext,
        board_id: str,
        user_id: str
    ) -> Board:
        """Remove a member (owner, or editor acting on a viewer)"""
        actor = session.require_user()

        board = await InvitationService._load_board(store, board_id, actor.id)
        target = board.find_member(user_id)
        if target is None:
            raise NotFoundError("Member not found")
        if not can_change_member(board, actor.id, target):
            raise PermissionDeniedError("You cannot remove this member")

        members = [m for m in board.members if m.user_id != user_id]
        return await InvitationService._write_members(store, board, members)

    @staticmethod
    async def list_members(
        store: DocumentStore,
        board: Board
    ) -> List[MemberProfile]:
        """Members with their profiles, including rejected invitations"""
        profiles = await UserService.get_profiles(store, [m.user_id for m in board.members])
        return [MemberProfile(member, profiles.get(member.user_id)) for member in board.members]

    @staticmethod
    async def get_pending_invitations(
        store: DocumentStore,
        session: SessionContext
    ) -> List[Board]:
        user = session.require_user()
        boards = await BoardService.get_boards_for_user(store, user.id)
        return partition_boards(boards, user.id).pending
