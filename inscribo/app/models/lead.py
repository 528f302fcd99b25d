"""Lead model for Inscribo."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    student_name = Column(String, nullable=False)
    parent_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    grade_level = Column(String(50), nullable=True)
    course_interest = Column(String, nullable=True)
    source = Column(String(50), nullable=False, default="website")
    notes = Column(Text, nullable=True)
    # Only the stage transition engine writes this column
    current_stage_id = Column(Integer, ForeignKey("lead_stages.id"), nullable=True, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    assigned_to = relationship("User", back_populates="assigned_leads", foreign_keys=[assigned_to_id])
    current_stage = relationship("LeadStage")
    interactions = relationship("Interaction", back_populates="lead")
    stage_changes = relationship("StageChange", back_populates="lead")
    visits = relationship("Visit", back_populates="lead")
