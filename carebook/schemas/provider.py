from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from carebook.schemas.schedule import ScheduleConfig


class ProviderBase(BaseModel):
    """Base provider schema with common fields."""

    name: str = Field(..., min_length=1, max_length=100, description="Provider name")
    email: EmailStr = Field(..., description="Provider email address")


class ProviderCreate(ProviderBase):
    """Schema for creating a provider, optionally with its schedule."""

    schedule_config: Optional[ScheduleConfig] = Field(
        None, description="Initial schedule configuration"
    )


class ProviderResponse(ProviderBase):
    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    schedule_config: ScheduleConfig
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProviderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    name: str
    timezone: str


class ProviderListResponse(BaseModel):
    providers: List[ProviderResponse]
    count: int
