from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class CardBase(BaseModel):
    """Base schema for card data"""
    title: str
    description: Optional[str] = ""
    due_date: Optional[datetime] = None


class CardCreate(CardBase):
    """Schema for card creation"""
    order: Optional[int] = None
    assignees: Optional[List[str]] = None


class CardUpdate(BaseModel):
    """Schema for card update"""
    title: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None
    due_date: Optional[datetime] = None
    assignees: Optional[List[str]] = None


class CardResponse(CardBase):
    """Schema for card response"""
    id: str
    list_id: str
    board_id: Optional[str] = None
    order: int
    assignees: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CardOrderUpdate(BaseModel):
    """Schema for updating card order"""
    card_ids: List[str]


class CardMove(BaseModel):
    """Schema for moving a card to a different list"""
    list_id: str
    order: int
