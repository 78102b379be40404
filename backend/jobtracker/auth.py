from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Request, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jobtracker.config import get_settings
from jobtracker.database import get_db
from jobtracker.models import User

settings = get_settings()

ALGORITHM = "HS256"
COOKIE_NAME = "session_token"
SESSION_SCOPE = "session"


def create_session_token(user_id: str) -> tuple[str, datetime]:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.session_expire_days)
    to_encode = {"sub": user_id, "exp": expire, "scope": SESSION_SCOPE}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM), expire


def read_session_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("scope") != SESSION_SCOPE:
        return None
    return payload


def verify_session_token(token: str) -> Optional[str]:
    """Return the user id carried by a valid session token, else None."""
    payload = read_session_token(token)
    return payload.get("sub") if payload else None


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(COOKIE_NAME)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = extract_token(request)
    user_id = verify_session_token(token) if token else None
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user
