# backend/wallfair/api/v1/users.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.context import AppContext, get_ctx
from wallfair.core.exceptions import NotFoundError, ValidationError
from wallfair.core.security import get_current_user
from wallfair.db.database import get_db
from wallfair.db.models.user import User
from wallfair.schemas.user import (
    AcceptConditionsRequest,
    AdditionalInformationRequest,
    BindWalletRequest,
    LeaderboardPage,
    LoginRequest,
    RefListItem,
    UserUpdate,
    VerifyLoginRequest,
)
from wallfair.services import auth_service, chat_message_service, trade_service, user_service
from wallfair.util.number_helper import to_pretty_decimal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


# --- Login ---

@router.post("/login", status_code=status.HTTP_201_CREATED)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    """Starts a phone login by texting a verification code."""
    result = await auth_service.do_login(db, ctx.sms, body.phone, body.ref)
    return {"phone": body.phone, "smsStatus": result["status"], "existing": result["existing"]}


@router.post("/verifyLogin", status_code=status.HTTP_201_CREATED)
async def verify_login(body: VerifyLoginRequest, db: AsyncSession = Depends(get_db), ctx: AppContext = Depends(get_ctx)):
    """Exchanges the SMS code for a session token."""
    user = await auth_service.verify_login(db, ctx.sms, body.phone, body.sms_token)
    return {
        "userId": user.id,
        "phone": user.phone,
        "name": user.name,
        "email": user.email,
        "walletAddress": user.wallet_address,
        "session": auth_service.generate_jwt(ctx.settings, user),
        "confirmed": user.confirmed,
    }


@router.get("/confirm-email")
async def confirm_email(
    user_id: int = Query(..., alias="userId"),
    code: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    await user_service.confirm_email(db, user_id, code)
    return {"status": "OK"}


@router.get("/leaderboard/{limit}/{skip}", response_model=LeaderboardPage)
async def get_leaderboard(limit: int, skip: int, db: AsyncSession = Depends(get_db)):
    if limit < 0 or skip < 0:
        raise ValidationError("limit and skip must not be negative")
    return await user_service.get_leaderboard(db, limit, skip)


# --- Profile (authenticated) ---

@router.post("/bindWalletAddress", status_code=status.HTTP_201_CREATED)
async def bind_wallet_address(
    body: BindWalletRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    logger.info(f"[User] Binding wallet address for user {current_user.id}")
    user = await user_service.bind_wallet_address(db, current_user, body.wallet_address)
    return {"userId": user.id, "walletAddress": body.wallet_address}


@router.post("/saveAdditionalInformation", status_code=status.HTTP_201_CREATED)
async def save_additional_information(
    body: AdditionalInformationRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    user = await user_service.save_additional_information(
        db, ctx.wallet, ctx.mailer, current_user,
        email=body.email, name=body.name, username=body.username,
    )
    return {"userId": user.id, "phone": user.phone, "name": user.username, "email": user.email}


@router.post("/acceptConditions", status_code=status.HTTP_201_CREATED)
async def accept_conditions(
    body: AcceptConditionsRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    user = await user_service.accept_conditions(db, ctx.wallet, current_user)
    return {"confirmed": user.confirmed}


@router.get("/resend-confirm")
async def resend_confirm_email(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    await user_service.resend_confirm_email(db, ctx.mailer, current_user)
    return {"status": "OK"}


@router.get("/refList")
async def get_ref_list(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    ref_list = await user_service.get_ref_by_user_id(db, current_user.id)
    return {
        "userId": current_user.id,
        "refList": [RefListItem(**item).model_dump(by_alias=True) for item in ref_list],
    }


# --- Wallet & trades ---

@router.get("/open-bets")
async def get_open_bets(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    trades = await trade_service.get_active_trades_by_user_id(db, current_user.id)
    return {
        "openBets": [
            {
                "betId": trade["bet_id"],
                "outcome": trade["outcome_index"],
                "investmentAmount": trade["total_investment_amount"],
                "outcomeAmount": trade["total_outcome_tokens"],
            }
            for trade in trades
        ]
    }


@router.get("/transactions")
async def get_transactions(current_user: User = Depends(get_current_user), ctx: AppContext = Depends(get_ctx)):
    return await ctx.wallet.get_transactions(current_user.id)


@router.get("/history")
async def get_amm_history(current_user: User = Depends(get_current_user), ctx: AppContext = Depends(get_ctx)):
    """AMM buy/sell history with human readable amounts."""
    interactions = await ctx.wallet.get_amm_interactions(current_user.id)
    return [
        {
            **interaction,
            "investmentAmount": to_pretty_decimal(interaction["investmentamount"]),
            "feeAmount": to_pretty_decimal(interaction["feeamount"]),
            "outcomeTokensBought": to_pretty_decimal(interaction["outcometokensbought"]),
        }
        for interaction in interactions
    ]


# --- By id (keep last, the path parameter would shadow the routes above) ---

@router.get("/{user_id}")
async def get_user_info(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ctx: AppContext = Depends(get_ctx),
):
    """
    Public profile with balance, rank and the number of unread notifications.

    A missing user is a 404; any other failure (ledger, rank) is reported as
    a generic 422 and logged.
    """
    user = await user_service.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    try:
        balance = await ctx.wallet.balance_of(user_id)
        rank = await user_service.get_rank_by_user_id(db, user_id)
        notifications = await chat_message_service.get_latest_chat_messages_by_user_id(db, user_id, limit=0)
    except Exception:
        logger.exception(f"[User] Loading account information for user {user_id} failed")
        raise ValidationError("Account information loading failed")

    return {
        "userId": user.id,
        "name": user.name,
        "username": user.username,
        "profilePicture": user.profile_picture,
        "balance": to_pretty_decimal(balance),
        "totalWin": to_pretty_decimal(user_service.get_total_win(balance)),
        "admin": user.admin,
        "emailConfirmed": user.email_confirmed,
        "rank": rank["rank"],
        "toNextRank": rank["to_next_rank"],
        "amountWon": user.amount_won,
        "unreadNotifications": notifications.total,
    }


@router.patch("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.update_user(db, current_user, user_id, body.model_dump(exclude_unset=True))
    return {"status": "OK"}
