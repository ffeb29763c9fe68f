"""
Product list filters and pagination
"""
import math
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from sqlalchemy import Select

from catalog.models.product import Product

T = TypeVar("T")


def _direction(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.upper()
    return value if value in ("ASC", "DESC") else None


@dataclass
class ProductFilter:
    name: Optional[str] = None
    brand: Optional[int] = None
    company: Optional[int] = None  # supplier
    category: Optional[int] = None
    order: Optional[str] = None  # by name
    time: Optional[str] = None  # by created_at
    price: Optional[str] = None  # by price_avg

    def apply(self, query: Select) -> Select:
        if self.name:
            query = query.where(Product.name.ilike(f"%{self.name}%"))
        if self.brand:
            query = query.where(Product.brand_id == self.brand)
        if self.company:
            query = query.where(Product.supplier_id == self.company)
        if self.category:
            query = query.where(Product.food_category_id == self.category)

        orderings = [
            (Product.name, _direction(self.order)),
            (Product.created_at, _direction(self.time)),
            (Product.price_avg, _direction(self.price)),
        ]
        for column, direction in orderings:
            if direction == "ASC":
                query = query.order_by(column.asc())
            elif direction == "DESC":
                query = query.order_by(column.desc())
        return query.order_by(Product.id)


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def first_item(self) -> Optional[int]:
        return (self.page - 1) * self.per_page + 1 if self.items else None

    @property
    def last_item(self) -> Optional[int]:
        return self.first_item + len(self.items) - 1 if self.items else None
