# agricoventas/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from agricoventas.core.config import get_settings
from agricoventas.core.exceptions import AuthenticationError

settings = get_settings()

pwd_ctx = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_ctx.verify(plain, hashed)


def create_access_token(user_id: int, user_type: str, expires_minutes: Optional[int] = None) -> str:
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {"sub": str(user_id), "user_type": user_type, "type": "access", "exp": expires}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(user_id: int) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode = {"sub": str(user_id), "type": "refresh", "exp": expires}
    return jwt.encode(to_encode, settings.refresh_secret, algorithm=settings.ALGORITHM)


def _decode(token: str, key: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, key, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return payload


def decode_access_token(token: str) -> Dict[str, Any]:
    return _decode(token, settings.SECRET_KEY, "access")


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, settings.refresh_secret, "refresh")
