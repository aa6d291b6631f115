from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from schoolms.models.enums import ConversationStatus, ChatSender


class MessageRead(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    subject: Optional[str] = None
    content: str
    is_read: bool
    read_at: Optional[datetime] = None
    parent_message_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    recipient_id: int
    subject: Optional[str] = None
    content: str = Field(..., min_length=1)
    parent_message_id: Optional[int] = None


class ConversationRead(BaseModel):
    id: int
    visitor_id: str
    visitor_name: Optional[str] = None
    visitor_email: Optional[str] = None
    status: ConversationStatus
    is_important: bool
    importance_reason: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConversationStart(BaseModel):
    visitor_id: str
    visitor_name: Optional[str] = None
    visitor_email: Optional[EmailStr] = None
    content: str = Field(..., min_length=1)


class ChatMessageRead(BaseModel):
    id: int
    conversation_id: int
    sender_type: ChatSender
    content: str
    staff_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ChatMessageCreate(BaseModel):
    content: str = Field(..., min_length=1)


class VisitorMessageCreate(ChatMessageCreate):
    visitor_id: str


class ConversationFlag(BaseModel):
    is_important: bool = True
    reason: Optional[str] = None


class ConversationWithMessages(ConversationRead):
    messages: list[ChatMessageRead] = []
