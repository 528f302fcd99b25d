"""Outgoing webhook subscriptions per institution."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String

from inscribo.app.db.base_class import Base
from inscribo.app.core.time import utc_now

WEBHOOK_EVENTS = (
    "lead.created",
    "lead.stage_changed",
    "lead.enrolled",
    "visit.scheduled",
    "visit.updated",
)


class Webhook(Base):
    __tablename__ = "webhooks"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    events = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
