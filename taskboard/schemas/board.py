from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from taskboard.models.board import BoardUserRole, MemberStatus


class BoardBase(BaseModel):
    """Base schema for board data"""
    title: str


class BoardCreate(BoardBase):
    """Schema for board creation"""
    pass


class BoardUpdate(BaseModel):
    """Schema for board update"""
    title: Optional[str] = None


class BoardMemberResponse(BaseModel):
    """Schema for a member record"""
    user_id: str
    role: BoardUserRole
    status: Optional[MemberStatus] = None
    joined_at: datetime
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BoardPermissions(BaseModel):
    """Capabilities of the current user on a board"""
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_invite: bool
    can_manage_members: bool

    class Config:
        from_attributes = True


class BoardResponse(BoardBase):
    """Schema for board response"""
    id: str
    owner_id: str
    members: List[BoardMemberResponse]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BoardDetailResponse(BoardResponse):
    """Board with the caller's capabilities"""
    permissions: BoardPermissions


class BoardDashboardResponse(BaseModel):
    """Boards of the current user split by invitation status"""
    pending: List[BoardResponse]
    accepted: List[BoardResponse]


class CascadeResponse(BaseModel):
    """Number of deleted records per collection"""
    boards: int = 0
    lists: int = 0
    cards: int = 0
    comments: int = 0

    class Config:
        from_attributes = True
