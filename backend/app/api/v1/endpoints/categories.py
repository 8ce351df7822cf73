"""
Category API Endpoints.

Back-office management of the category tree.

Writes commit before the storefront cache is invalidated, so a concurrent
storefront read cannot re-cache the previous rows.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.catalog.cache import CategoryCache, get_category_cache
from app.modules.catalog.schemas import CategoryCreate, CategoryRead, CategoryUpdate
from app.modules.catalog.service import CategoryService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
) -> CategoryRead:
    """Create category. Slug is generated from the name when omitted."""
    category = await CategoryService(db).create(request)
    await db.commit()
    await cache.invalidate()
    return category


@router.get("")
async def list_categories(
    include_children: bool = Query(False, description="Attach direct children"),
    include_product_count: bool = Query(False, description="Attach product counts"),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryRead]:
    """Get all categories ordered by sort order and name."""
    return await CategoryService(db).find_all(
        include_children=include_children,
        include_product_count=include_product_count,
    )


@router.get("/slug/{slug}")
async def get_category_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db),
) -> CategoryRead:
    """Get category by slug."""
    return await CategoryService(db).find_by_slug(slug)


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> CategoryRead:
    """Get category by ID."""
    return await CategoryService(db).find_one(category_id)


@router.patch("/{category_id}")
async def update_category(
    category_id: int,
    request: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
) -> CategoryRead:
    """
    Update category.

    Renaming regenerates the slug; moving under a descendant is rejected.
    """
    category = await CategoryService(db).update(category_id, request)
    await db.commit()
    await cache.invalidate()
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
) -> Response:
    """Soft-delete a category without subcategories or products."""
    await CategoryService(db).remove(category_id)
    await db.commit()
    await cache.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
