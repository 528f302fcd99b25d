"""Interaction schemas for the lead timeline."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

InteractionType = Literal["call", "email", "whatsapp", "visit", "note"]


class InteractionCreate(BaseModel):
    type: InteractionType = "note"
    content: str


class InteractionRead(BaseModel):
    id: int
    lead_id: int
    user_id: Optional[int] = None
    type: InteractionType
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
