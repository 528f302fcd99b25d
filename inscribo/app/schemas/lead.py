"""Lead schemas for create, update and read operations."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from inscribo.app.schemas.lead_stage import LeadStageRead
from inscribo.app.schemas.visit import VisitCreate, VisitRead


class LeadBase(BaseModel):
    student_name: str
    parent_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    grade_level: Optional[str] = None
    course_interest: Optional[str] = None
    source: str = "website"
    notes: Optional[str] = None


class LeadCreate(LeadBase):
    """Schema for lead creation requests.

    ``current_stage_id`` is the lead's initial placement; leave it empty to keep
    the lead unclassified until its first stage transition.
    """

    current_stage_id: Optional[int] = None
    assigned_to_id: Optional[int] = None


class LeadIntake(LeadCreate):
    """Lead creation with an optional visit booked in the same request."""

    visit: Optional[VisitCreate] = None


class LeadUpdate(BaseModel):
    """Schema for lead updates with partial fields.

    The stage is deliberately absent: stage moves go through ``POST /leads/{id}/stage``.
    """

    student_name: Optional[str] = None
    parent_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    grade_level: Optional[str] = None
    course_interest: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    assigned_to_id: Optional[int] = None
    expected_version: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class LeadRead(LeadBase):
    """Schema for lead responses."""

    id: int
    institution_id: int
    assigned_to_id: Optional[int] = None
    current_stage_id: Optional[int] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeadIntakeRead(LeadRead):
    visit: Optional[VisitRead] = None


class StageMoveRequest(BaseModel):
    stage_id: int
    expected_version: Optional[int] = None


class StageChangeRead(BaseModel):
    id: int
    lead_id: int
    from_stage_id: Optional[int] = None
    to_stage_id: Optional[int] = None
    from_stage_name: Optional[str] = None
    to_stage_name: str
    changed_by_id: Optional[int] = None
    changed_by_name: Optional[str] = None
    interaction_id: Optional[int] = None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StageMoveRead(BaseModel):
    lead: LeadRead
    stage_change: Optional[StageChangeRead] = None


class BoardColumn(BaseModel):
    stage: LeadStageRead
    leads: list[LeadRead] = Field(default_factory=list)


class LeadBoard(BaseModel):
    columns: list[BoardColumn]
    unclassified: list[LeadRead] = Field(default_factory=list)
