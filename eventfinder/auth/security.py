from datetime import datetime, timedelta, timezone
from typing import Optional
import secrets

from jose import JWTError, jwt
from passlib.context import CryptContext

from eventfinder.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def create_session_cookie(session_token: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign the opaque session token so a forged cookie never reaches the session store."""
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS)
    to_encode = {"sid": session_token, "exp": datetime.now(timezone.utc) + expires_delta}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_session_cookie(cookie_value: str) -> Optional[str]:
    try:
        payload = jwt.decode(cookie_value, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    session_token = payload.get("sid")
    if not isinstance(session_token, str) or not session_token:
        return None
    return session_token
