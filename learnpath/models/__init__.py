"""SQLAlchemy models for LearnPath."""

from learnpath.models.user import User, UserRole
from learnpath.models.learning_plan import DailyPlan, LearningPlan, Track
from learnpath.models.resource import Difficulty, Resource, ResourceType, UserResource
from learnpath.models.quiz import Quiz, QuizAttempt, QuizQuestion, QuizResponse
from learnpath.models.interview import (
    InterviewQuestion,
    InterviewResponse,
    InterviewStatus,
    InterviewTemplate,
    MockInterview,
    QuestionType,
)

__all__ = [
    "User",
    "UserRole",
    "LearningPlan",
    "DailyPlan",
    "Track",
    "Resource",
    "ResourceType",
    "Difficulty",
    "UserResource",
    "Quiz",
    "QuizQuestion",
    "QuizAttempt",
    "QuizResponse",
    "InterviewTemplate",
    "InterviewQuestion",
    "InterviewStatus",
    "MockInterview",
    "InterviewResponse",
    "QuestionType",
]
