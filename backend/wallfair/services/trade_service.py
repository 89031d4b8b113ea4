from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.constants import TradeStatus
from wallfair.db.models.trade import Trade


async def get_active_trades_by_user_id(db: AsyncSession, user_id: int) -> list:
    """Open positions summed per (bet, outcome)."""
    stmt = (
        select(
            Trade.bet_id,
            Trade.outcome_index,
            func.sum(Trade.investment_amount).label("total_investment_amount"),
            func.sum(Trade.outcome_tokens_bought).label("total_outcome_tokens"),
        )
        .where(Trade.user_id == user_id, Trade.status == TradeStatus.ACTIVE.value)
        .group_by(Trade.bet_id, Trade.outcome_index)
        .order_by(Trade.bet_id, Trade.outcome_index)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {
            "bet_id": row.bet_id,
            "outcome_index": row.outcome_index,
            "total_investment_amount": row.total_investment_amount,
            "total_outcome_tokens": row.total_outcome_tokens,
        }
        for row in rows
    ]
