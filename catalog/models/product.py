"""
Product model - the catalog aggregate.

A product owns its preparations (yields), packs, seasonal availability rows,
tags, nutrition info and image references. Diets are shared and only linked.
Everything derived here works on relations that are already loaded, so the
helpers are plain methods and safe to call outside of a database round trip.
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from catalog.database import Base
from catalog.models.availability import DEFAULT_STATUS, MONTH_ORDER, month_key
from catalog.models.product_pack import pack_mass_kg
from catalog.models.supplier import Supplier
from catalog.models.user import User
from catalog.models.diet import product_diets


MORPH_TYPE = "product"
SKU_LENGTH = 32

# Attributes a request may set directly on the row
FILLABLE = [
    "name",
    "description",
    "url",
    "sku",
    "brand_id",
    "price_avg",
    "nutrition_id",
    "density_id",
    "supplier_id",
    "food_category_id",
]

# owner_type tag -> model. Resolved explicitly, never from the stored string.
OWNER_MODELS = {
    "user": User,
    "supplier": Supplier,
}


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    sku = Column(String(SKU_LENGTH), nullable=True)
    price_avg = Column(Float, nullable=True)  # per kg, over the packs

    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=True)
    nutrition_id = Column(Integer, ForeignKey("nutritions.id"), nullable=True)
    density_id = Column(Integer, ForeignKey("densities.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)
    food_category_id = Column(Integer, ForeignKey("food_categories.id"), nullable=True, index=True)

    # Polymorphic owner, set by the service only
    owner_type = Column(String, nullable=True)
    owner_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    brand = relationship("Brand", lazy="selectin")
    food_category = relationship("FoodCategory", lazy="selectin")
    density = relationship("Density", lazy="selectin")
    nutrition = relationship("Nutrition", lazy="selectin")
    supplier = relationship("Supplier", lazy="selectin")

    preparations = relationship(
        "Preparation", back_populates="product", cascade="all, delete-orphan",
        lazy="selectin", order_by="Preparation.id",
    )
    packs = relationship(
        "ProductPack", back_populates="product", cascade="all, delete-orphan",
        lazy="selectin", order_by="ProductPack.id",
    )
    availability = relationship(
        "ProductAvailability", cascade="all, delete-orphan", lazy="selectin",
    )
    diets = relationship("Diet", secondary=product_diets, lazy="selectin", order_by="Diet.id")

    # Polymorphic children are written by the services, only read through these
    tags = relationship(
        "Tag",
        primaryjoin="and_(Product.id == foreign(Tag.taggable_id), Tag.taggable_type == 'product')",
        viewonly=True, lazy="selectin", order_by="Tag.id",
    )
    nutrition_info = relationship(
        "NutritionInfo",
        primaryjoin="and_(Product.id == foreign(NutritionInfo.infoable_id), "
                    "NutritionInfo.infoable_type == 'product')",
        viewonly=True, lazy="selectin", order_by="NutritionInfo.index",
    )
    media = relationship(
        "Media",
        primaryjoin="and_(Product.id == foreign(Media.model_id), Media.model_type == 'product', "
                    "Media.collection_name == 'product')",
        viewonly=True, lazy="selectin", order_by="Media.id.desc()",
    )

    @property
    def image(self):
        """Latest product image, if any."""
        return self.media[0] if self.media else None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    # --- Heuristics ---

    def is_water(self) -> bool:
        return "water" in (self.name or "").lower()

    def contains_nuts(self) -> bool:
        return "nut" in (self.name or "").lower()

    # --- Derived attributes ---

    def default_waste_and_note(self) -> tuple[float, Optional[str]]:
        """
        (waste, note) from the default preparation.
        No default preparation, including no preparations at all, gives (0, None).
        """
        default = next((p for p in self.preparations or [] if p.default is True), None)
        if default is None:
            return 0, None
        return 100 - default.value, default.name

    def is_editable_by(self, user: User) -> bool:
        if user.is_root():
            return True
        if user.has_supplier():
            return self.supplier_id is not None and self.supplier_id == user.supplier_id
        return False

    def is_deletable_by(self, user: User) -> bool:
        return user.has_permission("product_destroy")

    def availability_for(self, month: str):
        """Availability row for a month key, or None."""
        return next((a for a in self.availability or [] if a.month == month), None)

    def current_month_status(self, today: Optional[date] = None) -> dict:
        row = self.availability_for(month_key(today))
        if row is None or row.status is None:
            return dict(DEFAULT_STATUS)
        return row.status.to_dict()

    def season_availability(self) -> list:
        """Availability rows in calendar order, Jan through Dec."""
        return sorted(self.availability or [], key=lambda a: MONTH_ORDER.get(a.month, len(MONTH_ORDER) + 1))

    def density_value(self) -> Optional[float]:
        """g/ml used for litre-based packs."""
        if self.is_water():
            return 1.0
        if self.density is not None:
            return self.density.value
        return None

    def new_pack_price(self, measurement: str, volume: float) -> Optional[float]:
        """Expected price of a pack of this size at the product's average price per kg."""
        if self.price_avg is None:
            return None
        mass = pack_mass_kg(measurement, volume, self.density_value())
        if mass is None:
            return None
        return round(self.price_avg * mass, 2)

    def nutrition_graph(self, age_group: str) -> list:
        return [info for info in self.nutrition_info or [] if info.age_group == age_group]


async def resolve_owner(db, product: Product):
    """Load the product's owner through OWNER_MODELS; None for unknown types."""
    model = OWNER_MODELS.get(product.owner_type)
    if model is None or product.owner_id is None:
        return None
    return await db.get(model, product.owner_id)
