from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wallfair.core.constants import ChatMessageType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SenderSnapshot(CamelModel):
    username: Optional[str] = None
    name: Optional[str] = None
    profile_picture: Optional[str] = None


class ChatMessageCreate(CamelModel):
    room_id: Optional[int] = None
    type: ChatMessageType = ChatMessageType.CHAT_MESSAGE
    message: Optional[str] = Field(default=None, max_length=5000)
    payload: Optional[Dict[str, Any]] = None


class ChatMessageRead(CamelModel):
    id: int
    user_id: int
    room_id: Optional[int] = None
    type: str
    message: Optional[str] = None
    date: datetime
    payload: Optional[Dict[str, Any]] = None
    read: Optional[datetime] = None


class RoomChatMessage(CamelModel):
    id: int
    user_id: int
    room_id: Optional[int] = None
    type: str
    message: Optional[str] = None
    date: datetime
    user: SenderSnapshot


class NotificationMessage(CamelModel):
    id: int
    user_id: int
    room_id: Optional[int] = None
    type: str
    message: Optional[str] = None
    date: datetime
    payload: Optional[Dict[str, Any]] = None


class RoomChatPage(BaseModel):
    total: int
    data: List[RoomChatMessage]


class NotificationPage(BaseModel):
    total: int
    data: List[NotificationMessage]
