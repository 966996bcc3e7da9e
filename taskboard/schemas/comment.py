from datetime import datetime
from pydantic import BaseModel


class CommentBase(BaseModel):
    """Base schema for comment data"""
    content: str


class CommentCreate(CommentBase):
    """Schema for comment creation"""
    pass


class CommentUpdate(BaseModel):
    """Schema for comment update"""
    content: str


class CommentResponse(CommentBase):
    """Schema for comment response"""
    id: str
    card_id: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True
