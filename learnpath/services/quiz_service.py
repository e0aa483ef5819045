"""Quiz retrieval and attempt scoring."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnpath.core.database import transaction, utcnow
from learnpath.models.learning_plan import DailyPlan
from learnpath.models.quiz import Quiz, QuizAttempt, QuizResponse
from learnpath.schemas.quiz import QuizAnswer

logger = logging.getLogger(__name__)


def score_attempt(correct: int, total: int) -> float:
    """정답 비율(%)을 소수 둘째 자리까지."""
    if total <= 0:
        return 0.0
    return round(100 * correct / total, 2)


async def get_quiz_for_user(db: AsyncSession, quiz_id: int, user: dict) -> Quiz:
    result = await db.execute(
        select(Quiz)
        .where(Quiz.id == quiz_id)
        .options(
            selectinload(Quiz.questions),
            selectinload(Quiz.daily_plan).selectinload(DailyPlan.learning_plan),
        )
    )
    quiz = result.scalar_one_or_none()
    if quiz is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz not found",
        )
    if quiz.daily_plan.learning_plan.user_id != user["id"] and user.get("role") != "ADMIN":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this quiz",
        )
    return quiz


async def submit_attempt(
    db: AsyncSession, quiz_id: int, user: dict, answers: list[QuizAnswer]
) -> QuizAttempt:
    """Grade the answers and store a completed attempt."""
    quiz = await get_quiz_for_user(db, quiz_id, user)
    questions = {question.id: question for question in quiz.questions}

    seen: set[int] = set()
    for answer in answers:
        if answer.question_id not in questions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Question {answer.question_id} does not belong to this quiz",
            )
        if answer.question_id in seen:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Duplicate answer for question {answer.question_id}",
            )
        seen.add(answer.question_id)

    responses = [
        QuizResponse(
            question_id=answer.question_id,
            selected_answer=answer.selected_answer,
            is_correct=answer.selected_answer == questions[answer.question_id].correct_answer,
        )
        for answer in answers
    ]
    correct = sum(1 for response in responses if response.is_correct)
    now = utcnow()
    attempt = QuizAttempt(
        user_id=user["id"],
        quiz_id=quiz.id,
        score=score_attempt(correct, len(questions)),
        is_completed=True,
        started_at=now,
        completed_at=now,
        responses=responses,
    )
    async with transaction(db):
        db.add(attempt)

    logger.info(
        "Quiz %s attempt by user %s: %s/%s", quiz.id, user["id"], correct, len(questions)
    )
    return await _load_attempt(db, attempt.id)


async def _load_attempt(db: AsyncSession, attempt_id: int) -> QuizAttempt:
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.id == attempt_id)
        .options(selectinload(QuizAttempt.responses))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_attempts(db: AsyncSession, quiz_id: int, user: dict) -> list[QuizAttempt]:
    await get_quiz_for_user(db, quiz_id, user)
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.user_id == user["id"])
        .options(selectinload(QuizAttempt.responses))
        .order_by(QuizAttempt.started_at.desc(), QuizAttempt.id.desc())
    )
    return list(result.scalars().all())
