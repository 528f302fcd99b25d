"""Institution settings schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class InstitutionRead(BaseModel):
    id: int
    name: str
    logo_url: Optional[str] = None
    primary_color: str
    secondary_color: str
    auto_assign_leads: bool

    model_config = ConfigDict(from_attributes=True)


class InstitutionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    secondary_color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    auto_assign_leads: Optional[bool] = None
