"""Outgoing webhook schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

WebhookEvent = Literal["lead.created", "lead.stage_changed", "lead.enrolled", "visit.scheduled", "visit.updated"]


class WebhookCreate(BaseModel):
    name: str = Field(min_length=1)
    url: HttpUrl
    events: list[WebhookEvent] = Field(min_length=1)
    active: bool = True


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[HttpUrl] = None
    events: Optional[list[WebhookEvent]] = Field(default=None, min_length=1)
    active: Optional[bool] = None


class WebhookRead(BaseModel):
    id: int
    name: str
    url: str
    events: list[str]
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WebhookTestResult(BaseModel):
    id: int
    delivered: bool
