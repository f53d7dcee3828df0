from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import success
from agricoventas.dependencies import get_db, require_admin
from agricoventas.models.category import Category
from agricoventas.models.user import User
from agricoventas.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from agricoventas.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


def serialize_category(category: Category, include_children: bool = True, include_parent: bool = True) -> dict:
    data = CategoryRead.model_validate(category).to_wire()
    if include_parent:
        data["parent"] = CategoryRead.model_validate(category.parent).to_wire() if category.parent else None
    if include_children:
        data["children"] = [CategoryRead.model_validate(child).to_wire() for child in category.children]
    return data


@router.get("")
async def list_categories(
    parent_id: Optional[int] = Query(None, alias="parentId"),
    level: Optional[int] = Query(None, ge=1, le=2),
    include_children: bool = Query(False, alias="includeChildren"),
    include_parent: bool = Query(False, alias="includeParent"),
    db: AsyncSession = Depends(get_db),
):
    categories = await CategoryService(db).list_categories(parent_id, level)
    return success({
        "categories": [serialize_category(c, include_children, include_parent) for c in categories],
        "total": len(categories),
    })


@router.get("/{category_id}")
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await CategoryService(db).get_category(category_id)
    return success(serialize_category(category))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).create_category(data)
    return success(serialize_category(category))


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).update_category(category_id, data)
    return success(serialize_category(category))


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await CategoryService(db).delete_category(category_id)
    return success({"message": "Category deleted"})
