# agricoventas/services/auth_service.py
import logging
from datetime import datetime, timezone
from typing import Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.exceptions import AuthenticationError, BusinessRuleError
from agricoventas.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from agricoventas.models.user import User
from agricoventas.schemas.user import UserRegister

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService:
    """Registration, login and token handling."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def issue_tokens(user: User) -> Tuple[str, str]:
        user_type = user.user_type.value if hasattr(user.user_type, "value") else user.user_type
        return create_access_token(user.id, user_type), create_refresh_token(user.id)

    async def _ensure_unique(self, username: str, email: str, phone: str = None) -> None:
        checks = [
            (User.username == username, "Username already exists"),
            (User.email == email, "Email already exists"),
        ]
        if phone:
            checks.append((User.phone == phone, "Phone number already exists"))
        for condition, message in checks:
            if await self.db.scalar(select(User.id).where(condition)):
                raise BusinessRuleError(message)

    async def register(self, data: UserRegister) -> Tuple[User, str, str]:
        """
        Create an account and sign it in.

        Returns:
            Tuple of (user, access token, refresh token)

        Raises:
            BusinessRuleError: Username, email or phone already taken
        """
        email = data.email.lower()
        await self._ensure_unique(data.username, email, data.phone)

        try:
            user = User(
                username=data.username,
                email=email,
                phone=data.phone,
                password_hash=hash_password(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                user_type=data.user_type,
                subscription_type=data.subscription_type,
                is_active=True,
            )
            self.db.add(user)
            await self.db.flush()

            access_token, refresh_token = self.issue_tokens(user)
            user.refresh_token = refresh_token
            user.last_login = datetime.now(timezone.utc)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Registered {user.user_type.value} account {user.id} ({user.username})")
        return user, access_token, refresh_token

    async def login(self, username: str, password: str) -> Tuple[User, str, str]:
        result = await self.db.execute(
            select(User).where(or_(User.username == username, User.email == username.lower()))
        )
        user = result.scalars().first()
        if not user or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {username}")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.is_active:
            raise AuthenticationError("Account is inactive")

        access_token, refresh_token = self.issue_tokens(user)
        try:
            user.refresh_token = refresh_token
            user.last_login = datetime.now(timezone.utc)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return user, access_token, refresh_token

    async def get_user_from_token(self, token: str) -> User:
        payload = decode_access_token(token)
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid or expired token")

        user = await self.db.get(User, user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")
        return user

    async def refresh(self, refresh_token: str) -> Tuple[User, str, str]:
        """Exchange a stored refresh token for a new token pair."""
        if not refresh_token:
            raise AuthenticationError("Refresh token required")
        payload = decode_refresh_token(refresh_token)
        user = await self.db.get(User, int(payload["sub"]))
        if not user or not user.is_active or user.refresh_token != refresh_token:
            raise AuthenticationError("Invalid refresh token")

        access_token, new_refresh_token = self.issue_tokens(user)
        try:
            user.refresh_token = new_refresh_token
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return user, access_token, new_refresh_token

    async def logout(self, user: User) -> None:
        try:
            user.refresh_token = None
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise BusinessRuleError("Current password is incorrect")
        try:
            user.password_hash = hash_password(new_password)
            user.refresh_token = None
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Password changed for user {user.id}")
