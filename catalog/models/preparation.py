"""
Preparation (yield) model - share of a product left after preparing it
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from catalog.database import Base


class Preparation(Base):
    __tablename__ = "preparations"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)  # e.g. "Peeled"
    value = Column(Float, nullable=False)  # percent retained
    default = Column(Boolean, default=False, nullable=False)

    product = relationship("Product", back_populates="preparations")
