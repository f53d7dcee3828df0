from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import success
from agricoventas.dependencies import get_current_user, get_db, resolve_user_id
from agricoventas.models.user import User
from agricoventas.schemas.location import LocationCreate, LocationRead
from agricoventas.services.user_service import UserService, ensure_self_or_admin

router = APIRouter(prefix="/locations", tags=["locations"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_location(
    data: LocationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    location = await UserService(db).create_location(current_user, data)
    return success(LocationRead.model_validate(location))


@router.get("/user/{user_id}")
async def list_user_locations(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target_id = resolve_user_id(user_id, current_user)
    ensure_self_or_admin(target_id, current_user)
    locations = await UserService(db).list_locations(target_id)
    return success([LocationRead.model_validate(loc) for loc in locations])
