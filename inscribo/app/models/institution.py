"""Institution (tenant) model for Inscribo."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now


class Institution(Base):
    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    logo_url = Column(String(512), nullable=True)
    primary_color = Column(String(7), nullable=False, default="#8B5CF6")
    secondary_color = Column(String(7), nullable=False, default="#06B6D4")
    auto_assign_leads = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    users = relationship("User", back_populates="institution")
    stages = relationship("LeadStage", back_populates="institution", order_by="LeadStage.order_index")
