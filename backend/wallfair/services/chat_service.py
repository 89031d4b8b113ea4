# backend/wallfair/services/chat_service.py
import json
import logging
from typing import Optional

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from wallfair.core.constants import ChatMessageType
from wallfair.db.database_redis import RedisManager
from wallfair.db.models.chat_message import ChatMessage
from wallfair.db.models.user import User
from wallfair.schemas.chat import RoomChatMessage, SenderSnapshot
from wallfair.services import chat_message_service

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000


class ChatService:
    @staticmethod
    def to_room_payload(chat_message: ChatMessage, sender: User) -> dict:
        """Same shape as an entry of the room history."""
        return RoomChatMessage(
            id=chat_message.id,
            user_id=chat_message.user_id,
            room_id=chat_message.room_id,
            type=chat_message.type,
            message=chat_message.message,
            date=chat_message.date,
            user=SenderSnapshot(
                username=sender.username,
                name=sender.name,
                profile_picture=sender.profile_picture,
            ),
        ).model_dump(mode="json", by_alias=True)

    @staticmethod
    async def broadcast(redis: RedisManager, chat_message: ChatMessage, sender: User):
        """Publishes a stored room message; a Redis outage only costs the live push."""
        if chat_message.room_id is None:
            return
        try:
            await redis.publish_chat_message(chat_message.room_id, ChatService.to_room_payload(chat_message, sender))
        except RedisError as e:
            logger.error(f"[ChatService] Redis publish failed (room {chat_message.room_id}): {e}")

    @staticmethod
    async def process_message(sessionmaker, redis: RedisManager, room_id: int, sender: User, raw_data: str) -> Optional[ChatMessage]:
        """
        Handles one websocket frame:
        1. JSON parsing
        2. storing the message (own session)
        3. Redis publish
        """
        try:
            message_json = json.loads(raw_data)

            if message_json.get("type") == "PING":
                return None

            content = message_json.get("message")
            if not isinstance(content, str) or not content.strip():
                logger.warning(f"[ChatService] Missing message text (User {sender.id}): {list(message_json.keys())}")
                return None
        except (json.JSONDecodeError, AttributeError) as e:
            logger.error(f"[ChatService] Message parsing error (User {sender.id}): {e}")
            return None

        # session is opened for the insert only
        async with sessionmaker() as db:
            try:
                chat_message = await chat_message_service.create_chat_message(db, {
                    "room_id": room_id,
                    "user_id": sender.id,
                    "type": ChatMessageType.CHAT_MESSAGE.value,
                    "message": content[:MAX_MESSAGE_LENGTH],
                })
            except SQLAlchemyError as e:
                logger.error(f"[ChatService] Storing message failed (User {sender.id}, room {room_id}): {e}")
                await db.rollback()
                return None

        await ChatService.broadcast(redis, chat_message, sender)
        return chat_message
