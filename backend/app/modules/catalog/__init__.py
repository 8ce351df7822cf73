"""
Catalog Module - product category tree.

Features:
- Category CRUD with unique slugs
- Acyclic parent/child hierarchy
- Soft deletion guarded by children and products
- Cached storefront category list
"""

from app.modules.catalog.cache import CategoryCache
from app.modules.catalog.service import CategoryService

__all__ = [
    "CategoryService",
    "CategoryCache",
]
