"""
Supplier model
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship
from catalog.database import Base


supplier_food_categories = Table(
    "supplier_food_categories",
    Base.metadata,
    Column("supplier_id", Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), primary_key=True),
    Column("food_category_id", Integer, ForeignKey("food_categories.id", ondelete="CASCADE"), primary_key=True),
)


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    region = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # A branch points at its head supplier
    parent_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)

    is_active = Column(Boolean, default=True)

    # Relationships
    branches = relationship("Supplier", lazy="selectin", order_by="Supplier.name")
    categories = relationship(
        "FoodCategory", secondary=supplier_food_categories, lazy="selectin", order_by="FoodCategory.name"
    )
