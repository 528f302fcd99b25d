"""Funnel stage schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class LeadStageCreate(BaseModel):
    name: str
    color: str = "#6366F1"


class LeadStageUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    order_index: Optional[int] = None


class LeadStageRead(BaseModel):
    id: int
    name: str
    color: str
    order_index: int

    model_config = ConfigDict(from_attributes=True)
