"""
Catalog Repositories - Data access for categories and products.
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, joinedload

from pos_api.models import Category, Product
from .base import BaseRepository, RepositoryFilters


@dataclass
class CategoryFilters(RepositoryFilters):
    pass


class CategoryRepository(BaseRepository[Category]):
    """Categories list by sort_order, then name."""

    @property
    def model(self) -> type[Category]:
        return Category

    def _base_query(self, tenant_id: int) -> Select:
        return select(Category).where(Category.tenant_id == tenant_id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if filters.search_pattern:
            query = query.where(Category.name.ilike(filters.search_pattern, escape="\\"))
        return query

    def _ordering(self) -> list:
        return [Category.sort_order, Category.name]

    def count_active_products(self, category_id: int, tenant_id: int) -> int:
        query = select(func.count(Product.id)).where(
            Product.tenant_id == tenant_id,
            Product.category_id == category_id,
            Product.is_active.is_(True),
        )
        return self._db.scalar(query) or 0

    def active_ids(self, tenant_id: int) -> set[int]:
        query = select(Category.id).where(
            Category.tenant_id == tenant_id,
            Category.is_active.is_(True),
        )
        return set(self._db.execute(query).scalars().all())

    def find_name_conflict(
        self, tenant_id: int, name: str, exclude_id: int | None = None
    ) -> Category | None:
        query = self._base_query(tenant_id).where(
            Category.is_active.is_(True),
            func.lower(Category.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        return self._db.scalar(query.limit(1))


@dataclass
class ProductFilters(RepositoryFilters):
    """Filters specific to products."""

    category_id: int | None = None


class ProductRepository(BaseRepository[Product]):
    """
    Repository for Product entities.
    The category is joined eagerly so listings can show its name.
    """

    @property
    def model(self) -> type[Product]:
        return Product

    def _base_query(self, tenant_id: int) -> Select:
        return (
            select(Product)
            .where(Product.tenant_id == tenant_id)
            .options(joinedload(Product.category))
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        category_id = getattr(filters, "category_id", None)
        if category_id:
            query = query.where(Product.category_id == category_id)

        if filters.search_pattern:
            query = query.where(
                or_(
                    Product.name.ilike(filters.search_pattern, escape="\\"),
                    Product.code.ilike(filters.search_pattern, escape="\\"),
                )
            )

        return query

    def _ordering(self) -> list:
        return [Product.name, Product.id]

    def find_by_code(self, tenant_id: int, code: str) -> Product | None:
        """Active product with this code (codes are unique among active products)."""
        query = self._base_query(tenant_id).where(
            Product.code == code,
            Product.is_active.is_(True),
        )
        return self._db.execute(query).scalars().unique().first()

    def find_by_codes(self, tenant_id: int, codes: list[str]) -> dict[str, Product]:
        if not codes:
            return {}
        query = select(Product).where(
            Product.tenant_id == tenant_id,
            Product.code.in_(codes),
            Product.is_active.is_(True),
        )
        return {p.code: p for p in self._db.execute(query).scalars().all()}

    def search(self, tenant_id: int, term: str, limit: int) -> Sequence[Product]:
        """Case-insensitive match on name or code."""
        return self.find_all(tenant_id, ProductFilters(search=term, limit=limit))

    def find_all_for_export(self, tenant_id: int) -> Sequence[Product]:
        query = (
            self._base_query(tenant_id)
            .where(Product.is_active.is_(True))
            .order_by(Product.code)
        )
        return self._db.execute(query).scalars().unique().all()


def get_category_repository(db: Session) -> CategoryRepository:
    return CategoryRepository(db)


def get_product_repository(db: Session) -> ProductRepository:
    return ProductRepository(db)
