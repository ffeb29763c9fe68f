"""
Edit log - who changed an editable entity, and what the values were before
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from datetime import datetime

from catalog.database import Base


class EditLog(Base):
    __tablename__ = "edit_logs"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String, nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    action = Column(String, nullable=False)  # "stored" | "updated"
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    new_values = Column(JSON, nullable=False, default=dict)
    old_values = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
