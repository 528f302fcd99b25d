"""Visit schemas for scheduling and calendar endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

VisitStatus = Literal["scheduled", "completed", "cancelled", "no_show"]


class VisitCreate(BaseModel):
    scheduled_at: datetime
    duration_minutes: int = 60
    title: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None


class VisitScheduleRequest(VisitCreate):
    lead_id: int


class LeadVisitRequest(VisitCreate):
    """Visit booked from a lead's detail view, optionally moving the lead forward."""

    advance_to_stage_id: Optional[int] = None


class VisitUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: Optional[VisitStatus] = None
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class VisitRead(BaseModel):
    id: int
    lead_id: int
    scheduled_by_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: VisitStatus
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
