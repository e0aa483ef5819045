"""Day curation: resource assignment, recommendations, quiz and interview attachment.

일자 편성은 플랜 소유자 또는 관리자만 가능하다.
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnpath.core.database import transaction
from learnpath.models.interview import InterviewTemplate
from learnpath.models.learning_plan import DailyPlan, LearningPlan
from learnpath.models.quiz import Quiz, QuizQuestion
from learnpath.models.resource import Difficulty, Resource, ResourceType
from learnpath.schemas.quiz import QuizCreate
from learnpath.services.plan_store import SqlAlchemyPlanStore

logger = logging.getLogger(__name__)

LEARNING_TYPES = (ResourceType.VIDEO, ResourceType.BLOG)
RECOMMENDED_LEARNING = 3
RECOMMENDED_PRACTICE = 2


def difficulty_for_day(day_number: int, total_days: int) -> Difficulty:
    """앞 30%는 EASY, 70%까지 MEDIUM, 나머지 HARD."""
    if day_number < 0.3 * total_days:
        return Difficulty.EASY
    if day_number < 0.7 * total_days:
        return Difficulty.MEDIUM
    return Difficulty.HARD


async def get_curatable_day(db: AsyncSession, day_id: int, user: dict) -> DailyPlan:
    """Load a day the caller may curate (plan owner or admin)."""
    day = await SqlAlchemyPlanStore(db).get_day(day_id)
    if day is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Daily plan not found",
        )
    if day.learning_plan.user_id != user["id"] and user.get("role") != "ADMIN":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to modify this daily plan",
        )
    return day


async def assign_resources(
    db: AsyncSession,
    day_id: int,
    user: dict,
    *,
    learning_resource_ids: list[int],
    practice_resource_ids: list[int],
) -> DailyPlan:
    """Replace the day's learning/practice resources."""
    day = await get_curatable_day(db, day_id, user)

    learning_ids = list(dict.fromkeys(learning_resource_ids))
    practice_ids = list(dict.fromkeys(practice_resource_ids))
    overlap = set(learning_ids) & set(practice_ids)
    if overlap:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Resources cannot be both learning and practice: {sorted(overlap)}",
        )

    requested = set(learning_ids) | set(practice_ids)
    if requested:
        result = await db.execute(select(Resource.id).where(Resource.id.in_(requested)))
        missing = requested - set(result.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Resources not found: {sorted(missing)}",
            )

    async with transaction(db):
        await db.execute(
            update(Resource)
            .where(Resource.learning_plan_day_id == day.id)
            .values(learning_plan_day_id=None)
        )
        await db.execute(
            update(Resource)
            .where(Resource.practice_plan_day_id == day.id)
            .values(practice_plan_day_id=None)
        )
        if learning_ids:
            await db.execute(
                update(Resource)
                .where(Resource.id.in_(learning_ids))
                .values(learning_plan_day_id=day.id, practice_plan_day_id=None)
            )
        if practice_ids:
            await db.execute(
                update(Resource)
                .where(Resource.id.in_(practice_ids))
                .values(practice_plan_day_id=day.id, learning_plan_day_id=None)
            )

    logger.info(
        "Resources assigned to day %s: learning=%s practice=%s",
        day.id,
        len(learning_ids),
        len(practice_ids),
    )
    return await SqlAlchemyPlanStore(db).get_day(day.id)


async def recommended_resources(db: AsyncSession, day_id: int, user: dict) -> dict:
    """Difficulty-matched resources not yet assigned to any of the owner's plans."""
    day = await get_curatable_day(db, day_id, user)
    plan = day.learning_plan
    difficulty = difficulty_for_day(day.day_number, plan.duration_days)

    owner_days = (
        select(DailyPlan.id)
        .join(LearningPlan, DailyPlan.learning_plan_id == LearningPlan.id)
        .where(LearningPlan.user_id == plan.user_id)
    )
    unassigned = (
        or_(Resource.learning_plan_day_id.is_(None), Resource.learning_plan_day_id.not_in(owner_days)),
        or_(Resource.practice_plan_day_id.is_(None), Resource.practice_plan_day_id.not_in(owner_days)),
    )

    learning = await db.execute(
        select(Resource)
        .where(Resource.difficulty == difficulty, Resource.type.in_(LEARNING_TYPES), *unassigned)
        .order_by(Resource.created_at.desc())
        .limit(RECOMMENDED_LEARNING)
    )
    practice = await db.execute(
        select(Resource)
        .where(Resource.difficulty == difficulty, Resource.type == ResourceType.LEETCODE, *unassigned)
        .order_by(Resource.created_at.desc())
        .limit(RECOMMENDED_PRACTICE)
    )
    return {
        "difficulty": difficulty,
        "learning_resources": list(learning.scalars().all()),
        "practice_resources": list(practice.scalars().all()),
    }


async def add_quiz(db: AsyncSession, day_id: int, user: dict, payload: QuizCreate) -> Quiz:
    day = await get_curatable_day(db, day_id, user)
    if day.quiz is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This daily plan already has a quiz",
        )

    quiz = Quiz(
        title=payload.title,
        description=payload.description,
        daily_plan_id=day.id,
        questions=[
            QuizQuestion(
                question=q.question,
                options=q.options,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in payload.questions
        ],
    )
    async with transaction(db):
        db.add(quiz)

    result = await db.execute(
        select(Quiz)
        .where(Quiz.id == quiz.id)
        .options(selectinload(Quiz.questions))
        .execution_options(populate_existing=True)
    )
    logger.info("Quiz %s added to day %s", quiz.id, day.id)
    return result.scalar_one()


async def attach_interview_template(
    db: AsyncSession, day_id: int, user: dict, *, template_id: int
) -> InterviewTemplate:
    day = await get_curatable_day(db, day_id, user)
    template = await db.get(InterviewTemplate, template_id)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Interview template not found",
        )

    async with transaction(db):
        # 하루에 템플릿 하나: 기존 연결 해제 후 연결
        await db.execute(
            update(InterviewTemplate)
            .where(InterviewTemplate.daily_plan_id == day.id, InterviewTemplate.id != template.id)
            .values(daily_plan_id=None)
        )
        template.daily_plan_id = day.id

    result = await db.execute(
        select(InterviewTemplate)
        .where(InterviewTemplate.id == template.id)
        .options(selectinload(InterviewTemplate.questions))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
