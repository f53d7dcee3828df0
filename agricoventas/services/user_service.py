# agricoventas/services/user_service.py
import logging
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.enums import UserType
from agricoventas.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from agricoventas.core.utils import paginate_query
from agricoventas.models.location import Location
from agricoventas.models.user import User
from agricoventas.schemas.location import LocationCreate
from agricoventas.schemas.user import UserUpdate
from agricoventas.services.storage import MediaStorage

logger = logging.getLogger(__name__)

ADMIN_ONLY_FIELDS = ("user_type", "is_active")


def ensure_self_or_admin(user_id: int, actor: User, message: str = "You do not have permission to access this user") -> None:
    if actor.user_type != UserType.ADMIN and actor.id != user_id:
        raise PermissionDeniedError(message)


class UserService:
    def __init__(self, db: AsyncSession, storage: Optional[MediaStorage] = None):
        self.db = db
        self.storage = storage

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        user_type: Optional[UserType] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ):
        stmt = select(User)
        if user_type:
            stmt = stmt.where(User.user_type == user_type)
        if is_active is not None:
            stmt = stmt.where(User.is_active.is_(is_active))
        if search:
            term = f"%{search}%"
            stmt = stmt.where(or_(
                User.username.ilike(term),
                User.email.ilike(term),
                User.first_name.ilike(term),
                User.last_name.ilike(term),
            ))
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        return await paginate_query(self.db, stmt, page, limit)

    async def is_username_available(self, username: str) -> bool:
        return not await self.db.scalar(select(User.id).where(User.username == username))

    async def is_email_available(self, email: str) -> bool:
        return not await self.db.scalar(select(User.id).where(User.email == email.lower()))

    async def update_user(self, user_id: int, actor: User, data: UserUpdate) -> User:
        """
        Update profile fields. Only admins may change the role or active flag.

        Raises:
            PermissionDeniedError: Another user's profile, or an admin-only field
            ConflictError: Email or phone taken by another account
        """
        ensure_self_or_admin(user_id, actor, "You do not have permission to update this user")
        changes = data.model_dump(exclude_unset=True)
        if actor.user_type != UserType.ADMIN and any(f in changes for f in ADMIN_ONLY_FIELDS):
            raise PermissionDeniedError("Only administrators can change user type or status")

        user = await self.get_user(user_id)
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            taken = await self.db.scalar(
                select(User.id).where(User.email == changes["email"], User.id != user_id)
            )
            if taken:
                raise ConflictError("Email already exists")
        if changes.get("phone"):
            taken = await self.db.scalar(
                select(User.id).where(User.phone == changes["phone"], User.id != user_id)
            )
            if taken:
                raise ConflictError("Phone number already exists")

        try:
            for field, value in changes.items():
                if value is None and field in ("email", "user_type", "is_active", "subscription_type"):
                    continue
                setattr(user, field, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return user

    async def deactivate_user(self, user_id: int, actor: User) -> User:
        """Soft delete: the account stays, login is refused."""
        ensure_self_or_admin(user_id, actor, "You do not have permission to deactivate this user")
        user = await self.get_user(user_id)
        try:
            user.is_active = False
            user.refresh_token = None
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"User {user_id} deactivated by {actor.id}")
        return user

    async def set_profile_image(self, user: User, image_url: str) -> User:
        previous = user.profile_image
        try:
            user.profile_image = image_url
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        if previous and previous != image_url and self.storage:
            self.storage.delete(previous)
        return user

    async def get_primary_location(self, user_id: int) -> Optional[Location]:
        user = await self.get_user(user_id)
        if not user.primary_location_id:
            return None
        return await self.db.get(Location, user.primary_location_id)

    async def create_location(self, user: User, data: LocationCreate) -> Location:
        """Add an address for the user and make it their primary location."""
        try:
            location = Location(user_id=user.id, **data.model_dump())
            self.db.add(location)
            await self.db.flush()
            user.primary_location_id = location.id
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Location {location.id} created for user {user.id}")
        return location

    async def list_locations(self, user_id: int):
        result = await self.db.execute(
            select(Location).where(Location.user_id == user_id).order_by(Location.created_at.desc(), Location.id.desc())
        )
        return list(result.scalars().all())
