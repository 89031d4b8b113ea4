from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from wallfair.core.constants import TradeStatus
from wallfair.db.database import Base
from wallfair.db.models.user import get_utc_now


class Trade(Base):
    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    bet_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    outcome_index: Mapped[int] = mapped_column(Integer, nullable=False)
    investment_amount: Mapped[float] = mapped_column(Float, default=0)
    outcome_tokens_bought: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(20), default=TradeStatus.ACTIVE.value)  # active, closed, rewarded, sold
    date: Mapped[datetime] = mapped_column(DateTime, default=get_utc_now)
