from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class NoticeRead(BaseModel):
    id: int
    title: str
    content: str
    category: Optional[str] = None
    attachment_url: Optional[str] = None
    is_pinned: bool
    is_published: bool
    expire_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: Optional[str] = None
    attachment_url: Optional[str] = None
    is_pinned: bool = False
    is_published: bool = False
    expire_at: Optional[datetime] = None


class NoticeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    attachment_url: Optional[str] = None
    is_pinned: Optional[bool] = None
    is_published: Optional[bool] = None
    expire_at: Optional[datetime] = None
