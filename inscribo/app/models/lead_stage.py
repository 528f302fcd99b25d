"""Funnel stage model; each institution keeps its own ordered catalog."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from sqlalchemy.orm import relationship

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now


class LeadStage(Base):
    __tablename__ = "lead_stages"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=False, default="#6366F1")
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    institution = relationship("Institution", back_populates="stages")
