"""
Category request and response schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    """Create category. Slug is derived from the name when omitted."""

    name: str = Field(min_length=1, max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    description: str | None = None
    info: dict[str, Any] | None = None
    parent_id: int | None = None
    is_active: bool = True
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    """Partial category update. Only fields that are sent are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    info: dict[str, Any] | None = None
    parent_id: int | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class CategorySummary(BaseModel):
    """Category without relations."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    info: dict[str, Any] | None = None
    parent_id: int | None = None
    is_active: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime


class CategoryRead(CategorySummary):
    """Category with parent, children and product count."""

    parent: CategorySummary | None = None
    children: list[CategorySummary] | None = None
    product_count: int | None = None


class PublicCategory(BaseModel):
    """Storefront view of an active category."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
