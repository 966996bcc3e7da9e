from typing import List

from fastapi import APIRouter, Depends, status

from taskboard.api.dependencies.auth import get_session
from taskboard.api.dependencies.permissions import check_board_permissions
from taskboard.db.database import get_document_store
from taskboard.db.store import DocumentStore
from taskboard.schemas.board import BoardMemberResponse, BoardResponse
from taskboard.schemas.board_permissions import (
    ChangeMemberRoleRequest,
    InvitationResponseRequest,
    InviteMemberRequest,
    MemberProfileResponse,
)
from taskboard.services.invitation_service import InvitationService
from taskboard.services.session import SessionContext

router = APIRouter(prefix="/boards/{board_id}/members", tags=["board members"])


@router.get("", response_model=List[MemberProfileResponse])
async def get_board_members(
    board_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Get board members with their profiles
    """
    board = await check_board_permissions(store, session, board_id)
    members = await InvitationService.list_members(store, board)
    return [
        MemberProfileResponse(
            **BoardMemberResponse.model_validate(entry.member).model_dump(),
            email=entry.profile.email if entry.profile else None,
            name=entry.profile.name if entry.profile else None,
        )
        for entry in members
    ]


@router.post("", response_model=BoardMemberResponse, status_code=status.HTTP_201_CREATED)
async def invite_member(
    board_id: str,
    request: InviteMemberRequest,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Invite a registered user by email (owner only)
    """
    member = await InvitationService.invite(store, session, board_id, request.email, request.role)
    return BoardMemberResponse.model_validate(member)


@router.post("/respond", response_model=BoardResponse)
async def respond_to_invitation(
    board_id: str,
    request: InvitationResponseRequest,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Accept or decline the current user's invitation
    """
    board = await InvitationService.respond(store, session, board_id, request.response)
    return BoardResponse.model_validate(board)


@router.patch("/{user_id}", response_model=BoardResponse)
async def change_member_role(
    board_id: str,
    user_id: str,
    request: ChangeMemberRoleRequest,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Change a member's role
    """
    board = await InvitationService.change_member_role(store, session, board_id, user_id, request.role)
    return BoardResponse.model_validate(board)


@router.delete("/{user_id}", response_model=BoardResponse)
async def remove_member(
    board_id: str,
    user_id: str,
    store: DocumentStore = Depends(get_document_store),
    session: SessionContext = Depends(get_session)
):
    """
    Remove a member from a board
    """
    board = await InvitationService.remove_member(store, session, board_id, user_id)
    return BoardResponse.model_validate(board)
