"""
Seasonal availability: one status per product per calendar month
"""
from datetime import date
from typing import Optional

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from catalog.database import Base


# Stored month keys. Not strftime("%b"): June, July and Sept are spelled out
# this way in existing data and must stay that way.
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "June", "July", "Aug", "Sept", "Oct", "Nov", "Dec"]

MONTH_ORDER = {month: index for index, month in enumerate(MONTHS, start=1)}

DEFAULT_STATUS = {
    "id": 0,
    "status": "Plentiful local supply",
    "icon_class": "active-status",
}


def month_key(day: Optional[date] = None) -> str:
    """Month key for a date (today by default)."""
    day = day or date.today()
    return MONTHS[day.month - 1]


class SeasonStatus(Base):
    __tablename__ = "season_statuses"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String, nullable=False)
    icon_class = Column(String, nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "status": self.status, "icon_class": self.icon_class}


class ProductAvailability(Base):
    __tablename__ = "product_availability"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(String(4), nullable=False)  # one of MONTHS
    season_status_id = Column(Integer, ForeignKey("season_statuses.id"), nullable=False)

    status = relationship("SeasonStatus", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("product_id", "month", name="uq_product_availability_month"),
    )
