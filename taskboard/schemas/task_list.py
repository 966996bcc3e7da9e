from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class TaskListBase(BaseModel):
    """Base schema for list data"""
    title: str


class TaskListCreate(TaskListBase):
    """Schema for list creation"""
    order: Optional[int] = None


class TaskListUpdate(BaseModel):
    """Schema for list update"""
    title: Optional[str] = None
    order: Optional[int] = None


class TaskListResponse(TaskListBase):
    """Schema for list response"""
    id: str
    board_id: str
    order: int
    created_at: datetime

    class Config:
        from_attributes = True


class ListOrderUpdate(BaseModel):
    """Schema for updating list order"""
    list_ids: List[str]
