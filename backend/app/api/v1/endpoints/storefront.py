"""
Storefront API Endpoints.

Public, read-only catalog data.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.catalog.cache import CategoryCache, get_category_cache
from app.modules.catalog.service import CategoryService

router = APIRouter()


@router.get("/categories")
async def get_public_categories(
    db: AsyncSession = Depends(get_db),
    cache: CategoryCache = Depends(get_category_cache),
) -> list[dict[str, Any]]:
    """Get active categories (id, name, slug, description)."""
    cached = await cache.get_public()
    if cached is not None:
        return cached

    categories = await CategoryService(db).find_public()
    items = [category.model_dump() for category in categories]
    await cache.set_public(items)

    return items
