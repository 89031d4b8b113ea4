from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wallfair.db.database import Base
from wallfair.db.models.user import get_utc_now


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    room_id: Mapped[Optional[int]] = mapped_column(Integer, index=True, nullable=True)
    # no FK: the sender may be deleted, the room query left-joins
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now, index=True)
    read: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
