from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import UserType
from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db, require_admin
from agricoventas.models.user import User
from agricoventas.schemas.location import LocationRead
from agricoventas.schemas.user import UserRead, UserUpdate
from agricoventas.services.user_service import UserService, ensure_self_or_admin

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_type: Optional[UserType] = Query(None, alias="userType"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users, pagination = await UserService(db).list_users(page, limit, user_type, is_active, search)
    return success({
        "users": [UserRead.model_validate(u) for u in users],
        "pagination": pagination,
    })


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return success(UserRead.model_validate(current_user))


@router.put("/me")
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_user(current_user.id, current_user, data)
    return success(UserRead.model_validate(user))


@router.get("/check-username")
async def check_username(username: str = Query(..., min_length=3), db: AsyncSession = Depends(get_db)):
    return success({"available": await UserService(db).is_username_available(username)})


@router.get("/check-email")
async def check_email(email: str = Query(..., min_length=3), db: AsyncSession = Depends(get_db)):
    return success({"available": await UserService(db).is_email_available(email)})


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(user_id, current_user)
    user = await UserService(db).get_user(user_id)
    return success(UserRead.model_validate(user))


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_user(user_id, current_user, data)
    return success(UserRead.model_validate(user))


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).deactivate_user(user_id, current_user)
    return success({"message": "User deactivated", "user": UserRead.model_validate(user)})


@router.get("/{user_id}/primary-location")
async def get_primary_location(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    location = await UserService(db).get_primary_location(user_id)
    return success(LocationRead.model_validate(location) if location else None)
