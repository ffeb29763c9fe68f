"""
Diet model and the product <-> diet association
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Table
from catalog.database import Base


product_diets = Table(
    "product_diets",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("diet_id", Integer, ForeignKey("diets.id", ondelete="CASCADE"), primary_key=True),
)


class Diet(Base):
    __tablename__ = "diets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # "Vegan", "Contains nuts", ...
