from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from wallfair.db.database import Base


def get_utc_now():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    phone: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)

    # Profile, filled in after the first login
    username: Mapped[Optional[str]] = mapped_column(String(50), unique=True, index=True, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True, nullable=True)
    email_code: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, default=False)

    wallet_address: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)

    # Referring user, credited once this user confirms
    ref: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False)
    admin: Mapped[bool] = mapped_column(Boolean, default=False)

    amount_won: Mapped[float] = mapped_column(Float, default=0, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now)

    def __str__(self):
        return self.username or self.phone
