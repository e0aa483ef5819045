"""Interview template / mock interview schemas."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from learnpath.models.interview import InterviewStatus, QuestionType


class InterviewQuestionCreate(BaseModel):
    id: Optional[int] = Field(default=None, description="기존 질문 수정 시에만 지정")
    question: str = Field(min_length=5)
    type: QuestionType
    code_snippet: Optional[str] = None
    expected_answer: Optional[str] = None
    order: int = Field(ge=1)


class InterviewTemplateCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: Optional[str] = None
    duration: int = Field(ge=5, le=120, description="minutes")
    is_active: bool = True
    questions: list[InterviewQuestionCreate] = Field(min_length=1)


class InterviewTemplateUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=5, le=120)
    is_active: Optional[bool] = None
    questions: Optional[list[InterviewQuestionCreate]] = Field(default=None, min_length=1)


class InterviewQuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    type: QuestionType
    code_snippet: Optional[str] = None
    expected_answer: Optional[str] = None
    order: int


class InterviewTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    duration: int
    daily_plan_id: Optional[int] = None
    is_active: bool
    questions: list[InterviewQuestionOut] = []


class MockInterviewCreate(BaseModel):
    template_id: int
    scheduled_at: datetime
    daily_plan_id: Optional[int] = None

    @field_validator("scheduled_at")
    @classmethod
    def _must_be_future(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        if value <= datetime.now(timezone.utc):
            raise ValueError("scheduled_at must be in the future")
        return value


class InterviewAnswerCreate(BaseModel):
    question_id: int
    user_response: str = Field(min_length=1)


class InterviewResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: int
    user_response: str
    feedback: Optional[str] = None
    score: Optional[float] = None
    is_complete: bool
    completed_at: Optional[datetime] = None


class MockInterviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    template_id: int
    status: InterviewStatus
    scheduled_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_completed: bool
    overall_score: Optional[float] = None
    feedback: Optional[dict[str, Any]] = None
    template: Optional[InterviewTemplateResponse] = None


class MockInterviewDetail(MockInterviewResponse):
    responses: list[InterviewResponseOut] = []

