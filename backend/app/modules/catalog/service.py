"""
Category Service - category tree management.

Keeps two invariants over non-deleted categories:
- slugs are unique (collisions get a numeric suffix)
- parent links are acyclic
"""

from datetime import datetime

from loguru import logger
from slugify import slugify
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.shop import Category, Product
from app.modules.catalog.schemas import (
    CategoryCreate,
    CategoryRead,
    CategorySummary,
    CategoryUpdate,
    PublicCategory,
)

FALLBACK_SLUG = "category"


def generate_slug(name: str) -> str:
    """
    Build a URL-safe slug from a category name.

    "Electronics & Gadgets!" -> "electronics-gadgets"
    """
    return slugify(name) or FALLBACK_SLUG


class CategoryService:
    """
    Service for managing the product category tree.

    Usage:
        categories = CategoryService(db_session)
        tree = await categories.find_all(include_children=True)
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize category service with database session."""
        self.db = db

    # ==================== Slugs ====================

    async def ensure_unique_slug(
        self,
        slug: str,
        exclude_id: int | None = None,
    ) -> str:
        """Return ``slug`` or the first free ``slug-N`` among live categories."""
        candidate = slug
        counter = 1

        while True:
            query = select(Category.id).where(
                Category.slug == candidate,
                Category.deleted_at.is_(None),
            )
            if exclude_id is not None:
                query = query.where(Category.id != exclude_id)

            result = await self.db.execute(query.limit(1))
            if result.scalar_one_or_none() is None:
                return candidate

            candidate = f"{slug}-{counter}"
            counter += 1

    # ==================== Queries ====================

    async def _get_live(self, category_id: int) -> Category | None:
        query = select(Category).where(
            Category.id == category_id,
            Category.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_children(self, category_id: int) -> list[Category]:
        query = (
            select(Category)
            .where(
                Category.parent_id == category_id,
                Category.deleted_at.is_(None),
            )
            .order_by(Category.sort_order, Category.name)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _count_products(self, category_id: int) -> int:
        query = select(func.count(Product.id)).where(
            Product.category_id == category_id,
            Product.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        return result.scalar_one()

    async def _to_read(self, category: Category) -> CategoryRead:
        """Build the full view: parent summary, live children, product count."""
        parent = None
        if category.parent_id is not None:
            parent = await self.db.get(Category, category.parent_id)

        children = await self._get_children(category.id)
        product_count = await self._count_products(category.id)

        return CategoryRead(
            **CategorySummary.model_validate(category).model_dump(),
            parent=CategorySummary.model_validate(parent) if parent else None,
            children=[CategorySummary.model_validate(c) for c in children],
            product_count=product_count,
        )

    async def find_all(
        self,
        include_children: bool = False,
        include_product_count: bool = False,
    ) -> list[CategoryRead]:
        """
        Get all non-deleted categories ordered by sort order, then name.

        Args:
            include_children: Attach live direct children
            include_product_count: Attach count of live products

        Returns:
            List of categories
        """
        query = (
            select(Category)
            .where(Category.deleted_at.is_(None))
            .order_by(Category.sort_order, Category.name)
        )
        result = await self.db.execute(query)
        categories = list(result.scalars().all())

        # categories are already in (sort_order, name) order
        children_by_parent: dict[int, list[Category]] = {}
        if include_children:
            for category in categories:
                if category.parent_id is not None:
                    children_by_parent.setdefault(category.parent_id, []).append(
                        category
                    )

        counts: dict[int, int] = {}
        if include_product_count:
            count_query = (
                select(Product.category_id, func.count(Product.id))
                .where(
                    Product.category_id.is_not(None),
                    Product.deleted_at.is_(None),
                )
                .group_by(Product.category_id)
            )
            counts = dict((await self.db.execute(count_query)).all())

        items = []
        for category in categories:
            item = CategoryRead(**CategorySummary.model_validate(category).model_dump())
            if include_children:
                item.children = [
                    CategorySummary.model_validate(child)
                    for child in children_by_parent.get(category.id, [])
                ]
            if include_product_count:
                item.product_count = counts.get(category.id, 0)
            items.append(item)

        return items

    async def find_one(self, category_id: int) -> CategoryRead:
        """Get category by ID."""
        category = await self._get_live(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return await self._to_read(category)

    async def find_by_slug(self, slug: str) -> CategoryRead:
        """Get category by slug."""
        query = select(Category).where(
            Category.slug == slug,
            Category.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundError("Category not found")
        return await self._to_read(category)

    async def find_public(self) -> list[PublicCategory]:
        """Get active categories for the storefront."""
        query = (
            select(Category)
            .where(
                Category.deleted_at.is_(None),
                Category.is_active.is_(True),
            )
            .order_by(Category.sort_order, Category.name)
        )
        result = await self.db.execute(query)
        return [PublicCategory.model_validate(c) for c in result.scalars().all()]

    # ==================== Writes ====================

    async def create(self, data: CategoryCreate) -> CategoryRead:
        """
        Create new category.

        Raises:
            NotFoundError: parent_id does not match a live category
        """
        base_slug = generate_slug(data.slug or data.name)
        slug = await self.ensure_unique_slug(base_slug)

        if data.parent_id is not None:
            if not await self._get_live(data.parent_id):
                raise NotFoundError("Parent category not found")

        category = Category(
            name=data.name,
            slug=slug,
            description=data.description,
            info=data.info,
            parent_id=data.parent_id,
            is_active=data.is_active,
            sort_order=data.sort_order,
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)

        logger.info(f"Category created: {category.id} ({category.slug})")
        return await self._to_read(category)

    async def update(self, category_id: int, patch: CategoryUpdate) -> CategoryRead:
        """
        Update category fields present in ``patch``.

        A new name regenerates the slug. A new parent is checked against
        self-reference, existence and descendants; an explicit null parent
        moves the category to the root.

        Raises:
            NotFoundError: category does not exist
            BadRequestError: parent would be invalid or create a cycle
        """
        category = await self._get_live(category_id)
        if not category:
            raise NotFoundError("Category not found")

        changes = patch.model_dump(exclude_unset=True)

        # Validate before touching the row
        if changes.get("parent_id") is not None:
            await self._validate_parent(category.id, changes["parent_id"])

        name = changes.get("name")
        if name is not None and name != category.name:
            category.slug = await self.ensure_unique_slug(
                generate_slug(name), exclude_id=category.id
            )
            category.name = name

        if "parent_id" in changes:
            category.parent_id = changes["parent_id"]

        # description and info may be cleared with an explicit null
        for field in ("description", "info"):
            if field in changes:
                setattr(category, field, changes[field])

        for field in ("is_active", "sort_order"):
            if changes.get(field) is not None:
                setattr(category, field, changes[field])

        await self.db.flush()
        await self.db.refresh(category)

        logger.info(f"Category updated: {category.id} ({category.slug})")
        return await self._to_read(category)

    async def _validate_parent(self, category_id: int, parent_id: int) -> None:
        if parent_id == category_id:
            raise BadRequestError("Category cannot be its own parent")

        if not await self._get_live(parent_id):
            raise BadRequestError("Parent category not found")

        if await self.is_descendant(category_id, parent_id):
            raise BadRequestError("Cannot set parent to a descendant category")

    async def remove(self, category_id: int) -> None:
        """
        Soft-delete a category.

        Refused while the category has live subcategories or products.
        """
        category = await self._get_live(category_id)
        if not category:
            raise NotFoundError("Category not found")

        if await self._get_children(category.id):
            raise BadRequestError("Cannot delete category with subcategories")

        if await self._count_products(category.id) > 0:
            raise BadRequestError("Cannot delete category with products")

        category.deleted_at = datetime.utcnow()
        await self.db.flush()

        logger.info(f"Category deleted: {category.id} ({category.slug})")

    # ==================== Tree ====================

    async def is_descendant(self, category_id: int, candidate_id: int) -> bool:
        """
        Check whether ``candidate_id`` lies in the live subtree of ``category_id``.

        Walks the tree one level at a time and stops at the first match.
        """
        visited = {category_id}
        frontier = [category_id]

        while frontier:
            query = select(Category.id).where(
                Category.parent_id.in_(frontier),
                Category.deleted_at.is_(None),
            )
            result = await self.db.execute(query)
            child_ids = list(result.scalars().all())

            if candidate_id in child_ids:
                return True

            frontier = [cid for cid in child_ids if cid not in visited]
            visited.update(frontier)

        return False
