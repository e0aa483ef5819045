"""Resource schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from learnpath.models.resource import Difficulty, ResourceType


class ResourceCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=10)
    type: ResourceType
    url: HttpUrl
    duration: Optional[int] = Field(default=None, ge=1, description="minutes")
    difficulty: Optional[Difficulty] = None


class ResourceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, min_length=10)
    type: Optional[ResourceType] = None
    url: Optional[HttpUrl] = None
    duration: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[Difficulty] = None


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    type: ResourceType
    url: str
    duration: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    learning_plan_day_id: Optional[int] = None
    practice_plan_day_id: Optional[int] = None
    created_at: Optional[datetime] = None


class CompletedResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resource_id: int
    completed_at: datetime
    resource: ResourceResponse
