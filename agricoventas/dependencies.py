from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import UserType
from agricoventas.core.exceptions import AuthenticationError, PermissionDeniedError, ValidationError
from agricoventas.database import async_session
from agricoventas.models.user import User
from agricoventas.services.auth_service import AuthService
from agricoventas.services.storage import MediaStorage, get_storage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not token:
        raise AuthenticationError("No authorization token provided")
    return await AuthService(db).get_user_from_token(token)


def require_roles(*roles: UserType):
    """Dependency factory: the current user must hold one of the roles."""

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.user_type not in roles:
            raise PermissionDeniedError("You do not have permission to perform this action")
        return current_user

    return role_checker


require_admin = require_roles(UserType.ADMIN)
require_seller = require_roles(UserType.SELLER, UserType.ADMIN)


def get_media_storage() -> MediaStorage:
    return get_storage()


def resolve_user_id(user_id: str, current_user: User) -> int:
    """Path helper: ``me`` stands for the current user."""
    if user_id == "me":
        return current_user.id
    try:
        return int(user_id)
    except ValueError:
        raise ValidationError("Invalid user id")
