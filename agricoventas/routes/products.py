from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.config import get_settings
from agricoventas.core.exceptions import UploadValidationError
from agricoventas.core.responses import success
from agricoventas.dependencies import get_db, get_media_storage, require_admin, require_seller
from agricoventas.models.user import User
from agricoventas.schemas.history import ProductHistoryRead
from agricoventas.schemas.product import (
    ProductCreate,
    ProductFilters,
    ProductImageCreate,
    ProductImageRead,
    ProductUpdate,
)
from agricoventas.services.product_insights import ProductInsightsService
from agricoventas.services.product_service import ProductService
from agricoventas.services.storage import IMAGE_TYPES, PRODUCT_FOLDER, MediaStorage

settings = get_settings()

router = APIRouter(prefix="/products", tags=["products"])


@router.get("")
async def list_products(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    seller_id: Optional[int] = Query(None, alias="sellerId"),
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    is_featured: Optional[bool] = Query(None, alias="isFeatured"),
    is_active: Optional[bool] = Query(True, alias="isActive"),
    origin_location_id: Optional[int] = Query(None, alias="originLocationId"),
    city: Optional[str] = None,
    department: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
):
    filters = ProductFilters(
        category_id=category_id,
        seller_id=seller_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        is_featured=is_featured,
        is_active=is_active,
        origin_location_id=origin_location_id,
        city=city,
        department=department,
        page=page,
        limit=limit,
        sort=sort,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    service = ProductService(db)
    products, pagination = await service.list_products(filters)
    return success({"products": await service.to_schemas(products), "pagination": pagination})


@router.get("/featured")
async def featured_products(limit: int = Query(6, ge=1, le=50), db: AsyncSession = Depends(get_db)):
    service = ProductService(db)
    return success(await service.to_schemas(await service.get_featured(limit)))


@router.get("/insights/price-trends")
async def price_trends(
    timespan: int = Query(30, ge=1, le=365),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
):
    return success(await ProductInsightsService(db).get_price_trends(timespan, category_id))


@router.get("/insights/changes")
async def change_metrics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return success(await ProductInsightsService(db).get_change_metrics(start_date, end_date))


@router.get("/user/{user_id}")
async def products_by_user(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    service = ProductService(db)
    products, pagination = await service.get_by_user(user_id, page, limit)
    return success({"products": await service.to_schemas(products), "pagination": pagination})


@router.get("/category/{category_id}")
async def products_by_category(
    category_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    service = ProductService(db)
    products, pagination = await service.get_by_category(category_id, page, limit)
    return success({"products": await service.to_schemas(products), "pagination": pagination})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    service = ProductService(db)
    product = await service.create_product(current_user, data)
    return success(await service.to_schema(product))


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    service = ProductService(db)
    return success(await service.to_schema(await service.get_product(product_id)))


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    service = ProductService(db, storage)
    product = await service.update_product(product_id, current_user, data)
    return success(await service.to_schema(product))


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    await ProductService(db, storage).delete_product(product_id, current_user)
    return success({"message": "Product deleted"})


@router.get("/{product_id}/history")
async def product_history(
    product_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    ProductService.ensure_can_modify(product, current_user)
    rows, pagination = await ProductInsightsService(db).get_product_history(product_id, limit, offset)
    return success({
        "history": [ProductHistoryRead.model_validate(row) for row in rows],
        "pagination": pagination,
    })


@router.get("/{product_id}/price-history")
async def product_price_history(
    product_id: int,
    days: int = Query(90, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    return success(await ProductInsightsService(db).get_price_history(product_id, days))


@router.get("/{product_id}/images")
async def list_product_images(product_id: int, db: AsyncSession = Depends(get_db)):
    images = await ProductService(db).list_images(product_id)
    return success([ProductImageRead.model_validate(image) for image in images])


@router.post("/{product_id}/images", status_code=status.HTTP_201_CREATED)
async def upload_product_image(
    product_id: int,
    product_image: UploadFile = File(..., alias="productImage"),
    alt_text: Optional[str] = Form(None, alias="altText"),
    is_primary: bool = Form(False, alias="isPrimary"),
    display_order: int = Form(0, alias="displayOrder"),
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    service = ProductService(db, storage)
    ProductService.ensure_can_modify(await service.get_product(product_id), current_user)

    image_url = await storage.save(product_image, PRODUCT_FOLDER, IMAGE_TYPES)
    images = await service.add_images(product_id, current_user, [
        ProductImageCreate(
            image_url=image_url,
            alt_text=alt_text,
            is_primary=is_primary,
            display_order=display_order,
        )
    ])
    return success(ProductImageRead.model_validate(images[0]))


@router.post("/{product_id}/images/multiple", status_code=status.HTTP_201_CREATED)
async def upload_product_images(
    product_id: int,
    product_images: List[UploadFile] = File(..., alias="productImages"),
    current_user: User = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    if len(product_images) > settings.MAX_PRODUCT_IMAGES_PER_UPLOAD:
        raise UploadValidationError(
            f"At most {settings.MAX_PRODUCT_IMAGES_PER_UPLOAD} images can be uploaded at once"
        )

    service = ProductService(db, storage)
    product = await service.get_product(product_id)
    ProductService.ensure_can_modify(product, current_user)
    start_order = len(product.images)

    stored = []
    for index, upload in enumerate(product_images):
        url = await storage.save(upload, PRODUCT_FOLDER, IMAGE_TYPES)
        stored.append(ProductImageCreate(image_url=url, display_order=start_order + index))

    images = await service.add_images(product_id, current_user, stored)
    return success([ProductImageRead.model_validate(image) for image in images])
