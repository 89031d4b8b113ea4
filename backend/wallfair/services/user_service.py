# backend/wallfair/services/user_service.py
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.constants import INITIAL_LIQUIDITY, REFERRAL_REWARD
from wallfair.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from wallfair.db.models.user import User
from wallfair.services.mail_service import MailService
from wallfair.services.wallet_service import WalletService

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def get_user_by_phone(db: AsyncSession, phone: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.phone == phone))
    return result.scalar_one_or_none()


async def save_user(db: AsyncSession, user: User) -> User:
    """
    Commits the user. The unique constraints are the final word on
    username/email/phone/wallet collisions that slipped past a pre-check.
    """
    # read before commit, the rollback expires every loaded attribute
    user_id = user.id
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"[User] Unique constraint rejected user {user_id}: {e.orig}")
        raise ConflictError("Username, email, phone or wallet is already used")
    await db.refresh(user)
    return user


async def _ensure_unused(db: AsyncSession, column, value, user: User, message: str):
    result = await db.execute(select(User.id).where(column == value))
    owner_id = result.scalar_one_or_none()
    if owner_id is not None and owner_id != user.id:
        raise ConflictError(message)


async def create_user(wallet: WalletService, user: User):
    """Credits the starting balance to a freshly confirmed user."""
    await wallet.mint(user.id, INITIAL_LIQUIDITY)


async def reward_ref_user(db: AsyncSession, wallet: WalletService, ref: Optional[int]):
    if ref is None:
        return
    ref_user = await get_user_by_id(db, ref)
    if ref_user is None:
        logger.info(f"[User] Referrer {ref} does not exist, no reward")
        return
    await wallet.mint(ref_user.id, REFERRAL_REWARD)


async def reward_ref_user_if_not_confirmed(db: AsyncSession, wallet: WalletService, user: User) -> bool:
    """
    Confirms the user on first call, crediting the user and the referrer.
    Returns True when the user was changed.

    `confirmed` is committed before the ledger is credited, together with
    any pending changes on `user`.
    """
    if user.confirmed:
        return False
    user.confirmed = True
    await save_user(db, user)

    await reward_ref_user(db, wallet, user.ref)
    await create_user(wallet, user)
    return True


async def bind_wallet_address(db: AsyncSession, user: User, wallet_address: str) -> User:
    if not wallet_address:
        raise ValidationError("WalletAddress expected, but was missing")

    result = await db.execute(select(User).where(User.wallet_address == wallet_address))
    wallet_user = result.scalar_one_or_none()

    if wallet_user is not None and wallet_user.id != user.id:
        raise ConflictError("This wallet is already bound to another user")
    if wallet_user is None:
        user.wallet_address = wallet_address
        user = await save_user(db, user)
    return user


async def save_additional_information(
    db: AsyncSession,
    wallet: WalletService,
    mailer: MailService,
    user: User,
    email: Optional[str] = None,
    name: Optional[str] = None,
    username: Optional[str] = None,
) -> User:
    if username:
        username = username.replace(" ", "")
        await _ensure_unused(db, User.username, username, user, "Username is already used")
        user.username = username
        user.name = name

    if email:
        email = email.replace(" ", "")
        await _ensure_unused(db, User.email, email, user, "Email address is already used")
        user.email = email
        user.email_confirmed = False

        await reward_ref_user_if_not_confirmed(db, wallet, user)
        await mailer.send_confirm_mail(user)

    return await save_user(db, user)


async def accept_conditions(db: AsyncSession, wallet: WalletService, user: User) -> User:
    await reward_ref_user_if_not_confirmed(db, wallet, user)
    return user


async def confirm_email(db: AsyncSession, user_id: int, code: str) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.email_confirmed:
        raise ForbiddenError("The email has been already confirmed")
    if not user.email_code or user.email_code != code:
        raise ValidationError("The email code is invalid")

    user.email_confirmed = True
    return await save_user(db, user)


async def resend_confirm_email(db: AsyncSession, mailer: MailService, user: User) -> User:
    if not user.email:
        raise ValidationError("No email address to confirm")
    await mailer.send_confirm_mail(user)
    return await save_user(db, user)


async def update_user(db: AsyncSession, requesting_user: User, user_id: int, changes: dict) -> User:
    """Applies profile changes. Users may only edit themselves unless admin."""
    if not requesting_user.admin and requesting_user.id != user_id:
        raise ForbiddenError()

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if changes.get("username"):
        changes["username"] = changes["username"].replace(" ", "")
        await _ensure_unused(db, User.username, changes["username"], user, "Username is already used")

    for key in ("name", "username", "profile_picture"):
        if key in changes and changes[key] is not None:
            setattr(user, key, changes[key])
    return await save_user(db, user)


async def get_leaderboard(db: AsyncSession, limit: int, skip: int) -> dict:
    where = User.username.is_not(None)
    stmt = (
        select(User.username, User.amount_won)
        .where(where)
        .order_by(User.amount_won.desc(), User.id.asc())
        .offset(skip)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    total = (await db.execute(select(func.count(User.id)).where(where))).scalar_one()

    return {
        "total": total,
        "users": [{"username": username, "amount_won": amount_won} for username, amount_won in rows],
        "limit": limit,
        "skip": skip,
    }


async def get_rank_by_user_id(db: AsyncSession, user_id: int) -> dict:
    """
    rank: 1 + number of users that won strictly more.
    to_next_rank: what is missing to reach the next higher amount.
    """
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    amount = user.amount_won or 0
    better = (await db.execute(select(func.count(User.id)).where(User.amount_won > amount))).scalar_one()
    next_amount = (await db.execute(select(func.min(User.amount_won)).where(User.amount_won > amount))).scalar_one()

    return {
        "rank": better + 1,
        "to_next_rank": (next_amount - amount) if next_amount is not None else 0,
    }


def get_total_win(balance: int) -> int:
    return balance - INITIAL_LIQUIDITY


async def get_ref_by_user_id(db: AsyncSession, user_id: int) -> list:
    stmt = select(User).where(User.ref == user_id).order_by(User.date.desc())
    users = (await db.execute(stmt)).scalars().all()
    return [
        {"id": u.id, "username": u.username, "name": u.name, "email": u.email, "date": u.date}
        for u in users
    ]
