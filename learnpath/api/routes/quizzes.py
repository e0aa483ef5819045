"""Quiz endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import get_current_user
from learnpath.core.database import get_db
from learnpath.schemas.common import success
from learnpath.schemas.quiz import QuizAttemptCreate, QuizAttemptResponse, QuizPublic
from learnpath.services import quiz_service

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    quiz = await quiz_service.get_quiz_for_user(db, quiz_id, user)
    return success(QuizPublic.model_validate(quiz))


@router.post("/{quiz_id}/attempts", status_code=status.HTTP_201_CREATED)
async def submit_quiz_attempt(
    quiz_id: int,
    payload: QuizAttemptCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    attempt = await quiz_service.submit_attempt(db, quiz_id, user, payload.answers)
    return success(QuizAttemptResponse.model_validate(attempt), "Quiz submitted")


@router.get("/{quiz_id}/attempts")
async def list_quiz_attempts(
    quiz_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    attempts = await quiz_service.list_attempts(db, quiz_id, user)
    return success([QuizAttemptResponse.model_validate(a) for a in attempts])
