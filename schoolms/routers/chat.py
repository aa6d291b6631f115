import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_
from sqlalchemy.orm import selectinload
from schoolms.core.permissions import PERM_CHAT_MANAGE
from schoolms.models.messaging import ChatConversation, ChatMessage
from schoolms.models.enums import ConversationStatus, ChatSender
from schoolms.models.base import utcnow
from schoolms.schemas.messaging import (
    ConversationRead,
    ConversationStart,
    ConversationWithMessages,
    ConversationFlag,
    ChatMessageRead,
    ChatMessageCreate,
    VisitorMessageCreate,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


async def _conversation_with_messages(db: DbSession, conversation_id: int) -> Optional[ChatConversation]:
    result = await db.execute(
        select(ChatConversation)
        .options(selectinload(ChatConversation.messages))
        .where(ChatConversation.id == conversation_id)
    )
    return result.scalar_one_or_none()


def _with_messages(conversation: ChatConversation) -> ConversationWithMessages:
    data = ConversationWithMessages.model_validate(conversation)
    data.messages.sort(key=lambda m: (m.created_at, m.id))
    return data


async def _visitor_conversation(db: DbSession, conversation_id: int, visitor_id: str) -> ChatConversation:
    conversation = await _conversation_with_messages(db, conversation_id)
    if not conversation or conversation.visitor_id != visitor_id:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


# --- Website visitors (no authentication) ---

@router.post("/public/conversations", response_model=DataResponse[ConversationWithMessages])
async def start_conversation(data: ConversationStart, db: DbSession):
    conversation = ChatConversation(
        visitor_id=data.visitor_id,
        visitor_name=data.visitor_name,
        visitor_email=data.visitor_email,
        status=ConversationStatus.OPEN,
        is_important=False,
    )
    conversation.messages.append(ChatMessage(sender_type=ChatSender.VISITOR, content=data.content))
    db.add(conversation)
    await db.commit()

    logger.info(f"Chat conversation {conversation.id} started by visitor {data.visitor_id}")
    return DataResponse(data=_with_messages(await _conversation_with_messages(db, conversation.id)))


@router.get("/public/conversations/{conversation_id}", response_model=DataResponse[ConversationWithMessages])
async def get_visitor_conversation(conversation_id: int, db: DbSession, visitor_id: str = Query(...)):
    return DataResponse(data=_with_messages(await _visitor_conversation(db, conversation_id, visitor_id)))


@router.post("/public/conversations/{conversation_id}/messages", response_model=DataResponse[ChatMessageRead])
async def post_visitor_message(conversation_id: int, data: VisitorMessageCreate, db: DbSession):
    conversation = await _visitor_conversation(db, conversation_id, data.visitor_id)
    if conversation.status == ConversationStatus.CLOSED:
        raise HTTPException(status_code=400, detail="Conversation is closed")

    message = ChatMessage(conversation_id=conversation.id, sender_type=ChatSender.VISITOR, content=data.content)
    db.add(message)
    conversation.updated_at = utcnow()
    await db.commit()
    await db.refresh(message)
    return DataResponse(data=ChatMessageRead.model_validate(message))


# --- Staff ---

@router.get("/conversations", response_model=DataResponse[list[ConversationRead]], dependencies=[Depends(require_permission(PERM_CHAT_MANAGE))])
async def get_conversations(
    db: DbSession,
    status: Optional[ConversationStatus] = None,
    important_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if status:
        conditions.append(ChatConversation.status == status)
    if important_only:
        conditions.append(ChatConversation.is_important.is_(True))

    result = await db.execute(
        select(ChatConversation)
        .where(*conditions)
        .order_by(ChatConversation.is_important.desc(), ChatConversation.updated_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    conversations = result.scalars().all()

    count_result = await db.execute(select(func.count(ChatConversation.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[ConversationRead.model_validate(c) for c in conversations],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/conversations/{conversation_id}", response_model=DataResponse[ConversationWithMessages], dependencies=[Depends(require_permission(PERM_CHAT_MANAGE))])
async def get_conversation(conversation_id: int, db: DbSession):
    conversation = await _conversation_with_messages(db, conversation_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return DataResponse(data=_with_messages(conversation))


@router.post("/conversations/{conversation_id}/messages", response_model=DataResponse[ChatMessageRead], dependencies=[Depends(require_permission(PERM_CHAT_MANAGE))])
async def reply_to_conversation(conversation_id: int, data: ChatMessageCreate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(ChatConversation).where(ChatConversation.id == conversation_id))
    conversation = result.scalar_one_or_none()
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if conversation.status == ConversationStatus.CLOSED:
        raise HTTPException(status_code=400, detail="Conversation is closed")

    message = ChatMessage(
        conversation_id=conversation.id,
        sender_type=ChatSender.STAFF,
        content=data.content,
        staff_user_id=user.id,
    )
    db.add(message)
    # First staff member to reply takes ownership of the thread
    if conversation.user_id is None:
        conversation.user_id = user.id
    conversation.updated_at = utcnow()
    await db.commit()
    await db.refresh(message)
    return DataResponse(data=ChatMessageRead.model_validate(message))


@router.post("/conversations/{conversation_id}/flag", response_model=DataResponse[ConversationRead], dependencies=[Depends(require_permission(PERM_CHAT_MANAGE))])
async def flag_conversation(conversation_id: int, data: ConversationFlag, user: CurrentUser, db: DbSession):
    result = await db.execute(select(ChatConversation).where(ChatConversation.id == conversation_id))
    conversation = result.scalar_one_or_none()
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")

    conversation.is_important = data.is_important
    conversation.importance_reason = data.reason if data.is_important else None
    record_activity(db, user.id, "flag", "chat_conversation", conversation.id, {"is_important": data.is_important})
    await db.commit()
    await db.refresh(conversation)
    return DataResponse(data=ConversationRead.model_validate(conversation))


@router.post("/conversations/{conversation_id}/close", response_model=DataResponse[ConversationRead], dependencies=[Depends(require_permission(PERM_CHAT_MANAGE))])
async def close_conversation(conversation_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(ChatConversation).where(
            and_(ChatConversation.id == conversation_id, ChatConversation.status == ConversationStatus.OPEN)
        )
    )
    conversation = result.scalar_one_or_none()
    if not conversation:
        raise HTTPException(status_code=404, detail="Open conversation not found")

    conversation.status = ConversationStatus.CLOSED
    record_activity(db, user.id, "close", "chat_conversation", conversation.id)
    await db.commit()
    await db.refresh(conversation)
    return DataResponse(data=ConversationRead.model_validate(conversation))
