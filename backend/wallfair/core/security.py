from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from wallfair.core.config import Settings
from wallfair.db.database import get_db
from wallfair.db.models.user import User

# tokenUrl is only used by the Swagger UI; sessions are issued by /verifyLogin
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/user/verifyLogin")

CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


def create_access_token(settings: Settings, data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Signs a JWT with an `exp` claim."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(settings: Settings, token: str) -> int:
    """
    Decodes and validates the JWT and returns the user id it carries.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise CREDENTIALS_EXCEPTION
        return int(user_id)
    except (JWTError, ValueError):
        raise CREDENTIALS_EXCEPTION


async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    FastAPI dependency: resolves the bearer token to the user row.
    """
    user_id = verify_token(request.app.state.ctx.settings, token)
    user = await db.get(User, user_id)
    if user is None:
        raise CREDENTIALS_EXCEPTION
    return user
