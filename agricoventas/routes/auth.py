import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.config import get_settings
from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db
from agricoventas.models.user import User
from agricoventas.schemas.user import (
    AuthResponse,
    ChangePassword,
    RefreshRequest,
    UserLogin,
    UserRead,
    UserRegister,
)
from agricoventas.services.auth_service import AuthService

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, response: Response, db: AsyncSession = Depends(get_db)):
    user, access_token, refresh_token = await AuthService(db).register(data)
    _set_refresh_cookie(response, refresh_token)
    return success(AuthResponse(user=UserRead.model_validate(user), token=access_token))


@router.post("/login")
async def login(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    user, access_token, refresh_token = await AuthService(db).login(data.username, data.password)
    _set_refresh_cookie(response, refresh_token)
    return success(AuthResponse(user=UserRead.model_validate(user), token=access_token))


@router.post("/token")
async def token(form: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    """OAuth2 password flow, used by the interactive docs."""
    _, access_token, _ = await AuthService(db).login(form.username, form.password)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/refresh")
async def refresh(
    response: Response,
    data: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=settings.REFRESH_COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
):
    refresh_token = (data.refresh_token if data else None) or refresh_cookie
    user, access_token, new_refresh_token = await AuthService(db).refresh(refresh_token)
    _set_refresh_cookie(response, new_refresh_token)
    return success({"token": access_token})


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).logout(current_user)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME)
    return success({"message": "Logged out successfully"})


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return success(UserRead.model_validate(current_user))


@router.put("/change-password")
async def change_password(
    data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).change_password(current_user, data.current_password, data.new_password)
    return success({"message": "Password changed successfully"})
