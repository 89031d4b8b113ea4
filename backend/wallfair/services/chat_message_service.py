# backend/wallfair/services/chat_message_service.py
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.constants import NOTIFICATION_TYPES
from wallfair.core.exceptions import ForbiddenError, NotFoundError
from wallfair.db.models.chat_message import ChatMessage
from wallfair.db.models.user import User, get_utc_now
from wallfair.schemas.chat import (
    NotificationMessage,
    NotificationPage,
    RoomChatMessage,
    RoomChatPage,
    SenderSnapshot,
)

logger = logging.getLogger(__name__)


async def get_latest_chat_messages_by_room(db: AsyncSession, room_id: int, limit: int = 100, skip: int = 0) -> RoomChatPage:
    """
    Newest-first page of a room's messages, each with the sender's current
    username, name and profile picture.

    `total` counts every message of the room regardless of `limit`/`skip`.
    """
    where = ChatMessage.room_id == room_id

    total = (await db.execute(select(func.count(ChatMessage.id)).where(where))).scalar_one()
    if total == 0 or skip >= total:
        return RoomChatPage(total=total, data=[])

    # outer join: messages of deleted users are still listed
    stmt = (
        select(ChatMessage, User.username, User.name, User.profile_picture)
        .outerjoin(User, User.id == ChatMessage.user_id)
        .where(where)
        .order_by(ChatMessage.date.desc(), ChatMessage.id.desc())
        .offset(skip)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()

    data = [
        RoomChatMessage(
            id=msg.id,
            user_id=msg.user_id,
            room_id=msg.room_id,
            type=msg.type,
            message=msg.message,
            date=msg.date,
            user=SenderSnapshot(username=username, name=name, profile_picture=profile_picture),
        )
        for msg, username, name, profile_picture in rows
    ]
    return RoomChatPage(total=total, data=data)


async def get_latest_chat_messages_by_user_id(db: AsyncSession, user_id: int, limit: int = 100, skip: int = 0) -> NotificationPage:
    """
    Newest-first page of the user's unread notifications.
    Plain chat messages are never included.
    """
    where = (
        (ChatMessage.user_id == user_id)
        & ChatMessage.read.is_(None)
        & ChatMessage.type.in_(NOTIFICATION_TYPES)
    )

    total = (await db.execute(select(func.count(ChatMessage.id)).where(where))).scalar_one()
    if total == 0 or skip >= total:
        return NotificationPage(total=total, data=[])

    stmt = (
        select(ChatMessage)
        .where(where)
        .order_by(ChatMessage.date.desc(), ChatMessage.id.desc())
        .offset(skip)
        .limit(limit)
    )
    messages = (await db.execute(stmt)).scalars().all()
    return NotificationPage(total=total, data=[NotificationMessage.model_validate(m) for m in messages])


async def create_chat_message(db: AsyncSession, data: dict) -> ChatMessage:
    logger.debug(f"[ChatMessage] create {data}")
    chat_message = ChatMessage(**data)
    db.add(chat_message)
    await db.commit()
    await db.refresh(chat_message)
    return chat_message


async def save_chat_message(db: AsyncSession, chat_message: ChatMessage) -> ChatMessage:
    db.add(chat_message)
    await db.commit()
    await db.refresh(chat_message)
    return chat_message


async def set_message_read(db: AsyncSession, message_id: int, requesting_user: User) -> ChatMessage:
    """
    Marks a message as read. Only the owner of the message or an admin may
    do this. The first successful call fixes the timestamp; later calls
    leave it untouched.
    """
    message = await db.get(ChatMessage, message_id)
    if message is None:
        raise NotFoundError("Message not found")

    if not requesting_user.admin and message.user_id != requesting_user.id:
        raise ForbiddenError()

    # conditional update, concurrent callers cannot overwrite the first mark
    await db.execute(
        update(ChatMessage)
        .where(ChatMessage.id == message_id, ChatMessage.read.is_(None))
        .values(read=get_utc_now())
    )
    await db.commit()
    await db.refresh(message)
    return message
