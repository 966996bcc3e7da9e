from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from taskboard.models.board import BoardUserRole, MemberStatus


class InviteMemberRequest(BaseModel):
    """Schema for inviting a user to a board by email"""
    email: str
    role: BoardUserRole = BoardUserRole.EDITOR


class InvitationResponseRequest(BaseModel):
    """Schema for answering an invitation (accepted or rejected)"""
    response: MemberStatus


class ChangeMemberRoleRequest(BaseModel):
    """Schema for changing a member's role on a board"""
    role: BoardUserRole


class MemberProfileResponse(BaseModel):
    """Member record joined with the user's profile"""
    user_id: str
    role: BoardUserRole
    status: Optional[MemberStatus] = None
    joined_at: datetime
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    email: Optional[str] = None
    name: Optional[str] = None
