# backend/wallfair/services/auth_service.py
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.config import Settings
from wallfair.core.exceptions import ValidationError
from wallfair.core.security import create_access_token
from wallfair.db.models.user import User
from wallfair.services import user_service
from wallfair.services.sms_service import SmsService

logger = logging.getLogger(__name__)


async def do_login(db: AsyncSession, sms: SmsService, phone: str, ref: Optional[int] = None) -> dict:
    """
    Phone login step 1: find or create the user, then text a code.
    """
    user = await user_service.get_user_by_phone(db, phone)
    existing = user is not None

    if not existing:
        # a referrer is only ever recorded on creation
        if ref is not None and await user_service.get_user_by_id(db, ref) is None:
            ref = None
        user = await user_service.save_user(db, User(phone=phone, ref=ref, confirmed=False))
        logger.info(f"[Auth] Created user {user.id} for new phone login")

    status = await sms.send_verification(phone)
    return {"status": status, "existing": existing}


async def verify_login(db: AsyncSession, sms: SmsService, phone: str, sms_token: str) -> User:
    """
    Phone login step 2: check the code and return the user.
    """
    user = await user_service.get_user_by_phone(db, phone)
    if user is None:
        raise ValidationError("User not found, please request a code first")

    if not await sms.check_verification(phone, sms_token):
        raise ValidationError("Invalid verification code")
    return user


def generate_jwt(settings: Settings, user: User) -> str:
    expires = timedelta(minutes=settings.access_token_expire_minutes)
    return create_access_token(settings, data={"sub": str(user.id)}, expires_delta=expires)
