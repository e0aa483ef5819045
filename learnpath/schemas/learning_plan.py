"""Learning plan / daily plan schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from learnpath.core.config import get_settings
from learnpath.models.interview import InterviewStatus
from learnpath.models.learning_plan import Track
from learnpath.schemas.resource import ResourceResponse


def _check_duration_cap(value: Optional[int]) -> Optional[int]:
    cap = get_settings().MAX_PLAN_DURATION_DAYS
    if value is not None and value > cap:
        raise ValueError(f"duration_days must be at most {cap}")
    return value


class LearningPlanCreate(BaseModel):
    track: Track
    duration_days: int = Field(ge=1)

    @field_validator("duration_days")
    @classmethod
    def duration_within_cap(cls, value: int) -> int:
        return _check_duration_cap(value)


class LearningPlanUpdate(BaseModel):
    track: Optional[Track] = None
    duration_days: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("duration_days")
    @classmethod
    def duration_within_cap(cls, value: Optional[int]) -> Optional[int]:
        return _check_duration_cap(value)


class ProgressUpdate(BaseModel):
    """Range checks happen in the progression engine."""

    current_day: Optional[int] = None
    progress: Optional[float] = None


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str


class MockInterviewSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: InterviewStatus
    scheduled_at: datetime
    is_completed: bool


class DailyPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    learning_plan_id: int
    day_number: int
    is_unlocked: bool
    is_completed: bool
    learning_resources: list[ResourceResponse] = []
    practice_resources: list[ResourceResponse] = []
    quiz: Optional[QuizSummary] = None
    mock_interview: Optional[MockInterviewSummary] = None


class LearningPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    track: Track
    duration_days: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    current_day: int
    progress: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    daily_plans: list[DailyPlanResponse] = []


class ResourceCounts(BaseModel):
    videos: int
    blogs: int
    leetcode: int
    total: int


class LearningPlanStats(BaseModel):
    """Read-only snapshot returned by the stats endpoint."""

    totalDays: int
    completedDays: int
    currentDay: int
    progress: float
    daysRemaining: int
    resources: ResourceCounts
    isActive: bool
    startDate: datetime
    endDate: datetime


class AssignResourcesRequest(BaseModel):
    learning_resource_ids: list[int] = []
    practice_resource_ids: list[int] = []


class AttachInterviewRequest(BaseModel):
    template_id: int
