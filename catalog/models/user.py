"""
User model
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from catalog.config import get_settings
from catalog.database import Base

settings = get_settings()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    is_admin = Column(Boolean, default=False)  # root
    is_active = Column(Boolean, default=True)

    # Supplier staff may only edit their own supplier's products
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)

    permissions = Column(JSON, nullable=False, default=list)  # e.g. ["product_destroy"]
    display_age_nutrition_graphs = Column(String, nullable=False, default=settings.DEFAULT_AGE_GROUP)

    supplier = relationship("Supplier", lazy="selectin")

    def is_root(self) -> bool:
        return bool(self.is_admin)

    def has_supplier(self) -> bool:
        return self.supplier_id is not None

    def has_permission(self, name: str) -> bool:
        return name in (self.permissions or [])
