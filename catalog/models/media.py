"""
Media model - image references attached to any entity.
Only the URL is stored; files live elsewhere.
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime

from catalog.database import Base


PRODUCT_COLLECTION = "product"


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True)

    # Polymorphic link to any entity
    model_type = Column(String, nullable=False, index=True)
    model_id = Column(Integer, nullable=False, index=True)
    collection_name = Column(String, nullable=False, default=PRODUCT_COLLECTION)

    url = Column(String, nullable=False)
    file_name = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
