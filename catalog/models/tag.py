"""
Tag model - aliases a product is also known by ("Spud", "Tater")
"""
from sqlalchemy import Column, Integer, String
from catalog.database import Base


class Tag(Base):
    __tablename__ = "tags"
    # Ids of replaced tags must never be handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)

    # Polymorphic link; rows are recreated on every product update
    taggable_type = Column(String, nullable=False, index=True)
    taggable_id = Column(Integer, nullable=False, index=True)
