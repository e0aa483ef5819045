"""Quiz schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuizQuestionCreate(BaseModel):
    question: str = Field(min_length=5)
    options: list[str] = Field(min_length=2)
    correct_answer: str = Field(min_length=1)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def _answer_in_options(self) -> "QuizQuestionCreate":
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class QuizCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=10)
    questions: list[QuizQuestionCreate] = Field(min_length=1)


class QuizQuestionPublic(BaseModel):
    """Question as shown to the learner (no answer)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    question: str
    options: list[str]


class QuizQuestionDetail(QuizQuestionPublic):
    correct_answer: str
    explanation: Optional[str] = None


class QuizPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    daily_plan_id: int
    questions: list[QuizQuestionPublic] = []


class QuizDetail(QuizPublic):
    questions: list[QuizQuestionDetail] = []


class QuizAnswer(BaseModel):
    question_id: int
    selected_answer: str


class QuizAttemptCreate(BaseModel):
    answers: list[QuizAnswer] = Field(min_length=1)


class QuizResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    selected_answer: str
    is_correct: bool


class QuizAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_id: int
    score: float
    is_completed: bool
    started_at: datetime
    completed_at: Optional[datetime] = None
    responses: list[QuizResponseOut] = []
