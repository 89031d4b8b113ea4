# backend/wallfair/api/v1/chat.py
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.constants import ChatMessageType
from wallfair.core.context import AppContext, get_ctx
from wallfair.core.exceptions import ForbiddenError, ValidationError
from wallfair.core.security import get_current_user
from wallfair.db.database import get_db
from wallfair.db.models.user import User
from wallfair.schemas.chat import ChatMessageCreate, ChatMessageRead, NotificationPage, RoomChatPage
from wallfair.services import chat_message_service
from wallfair.services.chat_service import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/room/{room_id}", response_model=RoomChatPage)
async def get_room_messages(
    room_id: int,
    limit: int = Query(100, ge=0, le=500),
    skip: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Latest messages of a room, newest first."""
    return await chat_message_service.get_latest_chat_messages_by_room(db, room_id, limit, skip)


@router.get("/user/{user_id}", response_model=NotificationPage)
async def get_user_notifications(
    user_id: int,
    limit: int = Query(100, ge=0, le=500),
    skip: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unread notifications of a user. Only the user or an admin may look."""
    if not current_user.admin and current_user.id != user_id:
        raise ForbiddenError()
    return await chat_message_service.get_latest_chat_messages_by_user_id(db, user_id, limit, skip)


@router.post("/messages", response_model=ChatMessageRead, status_code=status.HTTP_201_CREATED)
async def create_message(
    body: ChatMessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    # notifications are written by the backend, never posted by users
    if body.type != ChatMessageType.CHAT_MESSAGE:
        raise ValidationError(f"Only {ChatMessageType.CHAT_MESSAGE.value} can be posted")

    data = body.model_dump()
    data["type"] = body.type.value
    data["user_id"] = current_user.id
    chat_message = await chat_message_service.create_chat_message(db, data)
    await ChatService.broadcast(ctx.redis, chat_message, current_user)
    return chat_message


@router.put("/messages/{message_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def set_message_read(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await chat_message_service.set_message_read(db, message_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
