"""Interaction log entry attached to a lead. Rows are never updated or deleted."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now

INTERACTION_TYPES = ("call", "email", "whatsapp", "visit", "note")


class Interaction(Base):
    __tablename__ = "interactions"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    type = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    lead = relationship("Lead", back_populates="interactions")
