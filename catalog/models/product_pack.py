"""
Product packs - purchasable units of a product, and their unit conversion
"""
from typing import Optional

from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from catalog.database import Base


# Measurements that carry mass directly, as kg per unit of volume
MASS_MEASUREMENTS = {
    "kg": 1.0,
    "g": 0.001,
}

# Measurements that need a density (g/ml) to become kg, as litres per unit
VOLUME_MEASUREMENTS = {
    "l": 1.0,
    "ml": 0.001,
}

MEASUREMENTS = [*MASS_MEASUREMENTS, *VOLUME_MEASUREMENTS, "unit"]


def pack_mass_kg(measurement: str, volume: float, density: Optional[float] = None) -> Optional[float]:
    """
    Mass in kg represented by `volume` of `measurement`.
    None when it can't be known (counted units, or liquid without density).
    """
    if volume is None or volume <= 0:
        return None
    measurement = (measurement or "").lower()
    if measurement in MASS_MEASUREMENTS:
        return volume * MASS_MEASUREMENTS[measurement]
    if measurement in VOLUME_MEASUREMENTS and density:
        # g/ml == kg/l
        return volume * VOLUME_MEASUREMENTS[measurement] * density
    return None


class ProductPack(Base):
    __tablename__ = "product_packs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=True)
    measurement = Column(String, nullable=False, default="kg")  # one of MEASUREMENTS
    volume = Column(Float, nullable=False, default=1)
    price = Column(Float, nullable=False, default=0)
    price_per_kg = Column(Float, nullable=True)
    default = Column(Boolean, default=False, nullable=False)
    available = Column(Boolean, default=True, nullable=False)

    product = relationship("Product", back_populates="packs")

    def set_price_per_kg(self, density: Optional[float] = None) -> "ProductPack":
        mass = pack_mass_kg(self.measurement, self.volume, density)
        self.price_per_kg = round(self.price / mass, 4) if mass else None
        return self
