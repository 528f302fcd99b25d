"""Stage change audit trail for leads."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now


class StageChange(Base):
    __tablename__ = "stage_changes"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    from_stage_id = Column(Integer, ForeignKey("lead_stages.id", ondelete="SET NULL"), nullable=True)
    to_stage_id = Column(Integer, ForeignKey("lead_stages.id", ondelete="SET NULL"), nullable=True)
    # Names are copied at write time so the trail stays readable after a stage is renamed or removed
    from_stage_name = Column(String(100), nullable=True)
    to_stage_name = Column(String(100), nullable=False)
    changed_by_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    changed_by_name = Column(String, nullable=True)
    interaction_id = Column(Integer, ForeignKey("interactions.id"), nullable=True, unique=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    lead = relationship("Lead", back_populates="stage_changes")
    interaction = relationship("Interaction")
