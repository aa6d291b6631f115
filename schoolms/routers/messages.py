from fastapi import APIRouter, HTTPException, Query
from sqlalchemy import select, func, and_
from schoolms.models.auth import User
from schoolms.models.messaging import Message
from schoolms.models.enums import UserStatus
from schoolms.models.base import utcnow
from schoolms.schemas.messaging import MessageRead, MessageCreate
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import CurrentUser, DbSession

router = APIRouter(prefix="/messages", tags=["Messages"])


async def _list_messages(db: DbSession, condition, page: int, page_size: int):
    result = await db.execute(
        select(Message)
        .where(condition)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    messages = result.scalars().all()

    count_result = await db.execute(select(func.count(Message.id)).where(condition))
    total = count_result.scalar()

    return DataResponse(
        data=[MessageRead.model_validate(m) for m in messages],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=DataResponse[MessageRead])
async def send_message(data: MessageCreate, user: CurrentUser, db: DbSession):
    if data.recipient_id == user.id:
        raise HTTPException(status_code=400, detail="Cannot send a message to yourself")

    recipient_result = await db.execute(select(User).where(User.id == data.recipient_id))
    recipient = recipient_result.scalar_one_or_none()
    if not recipient or recipient.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=404, detail="Recipient not found")

    if data.parent_message_id:
        parent_result = await db.execute(select(Message).where(Message.id == data.parent_message_id))
        parent = parent_result.scalar_one_or_none()
        if not parent or user.id not in (parent.sender_id, parent.recipient_id):
            raise HTTPException(status_code=400, detail="Cannot reply to that message")

    message = Message(
        sender_id=user.id,
        recipient_id=recipient.id,
        subject=data.subject,
        content=data.content,
        parent_message_id=data.parent_message_id,
        is_read=False,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return DataResponse(data=MessageRead.model_validate(message))


@router.get("/inbox", response_model=DataResponse[list[MessageRead]])
async def get_inbox(
    user: CurrentUser,
    db: DbSession,
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    condition = Message.recipient_id == user.id
    if unread_only:
        condition = and_(condition, Message.is_read.is_(False))
    return await _list_messages(db, condition, page, page_size)


@router.get("/sent", response_model=DataResponse[list[MessageRead]])
async def get_sent(
    user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    return await _list_messages(db, Message.sender_id == user.id, page, page_size)


@router.get("/unread-count", response_model=DataResponse[dict])
async def get_unread_count(user: CurrentUser, db: DbSession):
    result = await db.execute(
        select(func.count(Message.id)).where(and_(Message.recipient_id == user.id, Message.is_read.is_(False)))
    )
    return DataResponse(data={"unread": result.scalar()})


@router.get("/{message_id}/thread", response_model=DataResponse[list[MessageRead]])
async def get_thread(message_id: int, user: CurrentUser, db: DbSession):
    """Root message and every direct reply to it, oldest first"""
    result = await db.execute(select(Message).where(Message.id == message_id))
    message = result.scalar_one_or_none()
    if not message or user.id not in (message.sender_id, message.recipient_id):
        raise HTTPException(status_code=404, detail="Message not found")

    root_id = message.parent_message_id or message.id
    thread_result = await db.execute(
        select(Message)
        .where((Message.id == root_id) | (Message.parent_message_id == root_id))
        .order_by(Message.created_at, Message.id)
    )
    return DataResponse(data=[MessageRead.model_validate(m) for m in thread_result.scalars().all()])


@router.post("/{message_id}/read", response_model=DataResponse[MessageRead])
async def mark_read(message_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Message).where(Message.id == message_id))
    message = result.scalar_one_or_none()
    if not message or message.recipient_id != user.id:
        raise HTTPException(status_code=404, detail="Message not found")

    if not message.is_read:
        message.is_read = True
        message.read_at = utcnow()
        await db.commit()
        await db.refresh(message)
    return DataResponse(data=MessageRead.model_validate(message))


@router.delete("/{message_id}", response_model=DataResponse[dict])
async def delete_message(message_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Message).where(Message.id == message_id))
    message = result.scalar_one_or_none()
    if not message or user.id not in (message.sender_id, message.recipient_id):
        raise HTTPException(status_code=404, detail="Message not found")

    await db.delete(message)
    await db.commit()
    return DataResponse(data={"message": "Message deleted successfully"})
