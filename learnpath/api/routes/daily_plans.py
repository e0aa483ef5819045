"""Daily plan endpoints: progression and curation."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.api.deps import get_progression_engine
from learnpath.core.auth import get_current_user
from learnpath.core.database import get_db
from learnpath.schemas.common import success
from learnpath.schemas.interview import InterviewTemplateResponse
from learnpath.schemas.learning_plan import (
    AssignResourcesRequest,
    AttachInterviewRequest,
    DailyPlanResponse,
)
from learnpath.schemas.quiz import QuizCreate, QuizDetail
from learnpath.schemas.resource import ResourceResponse
from learnpath.services import curriculum
from learnpath.services.outcome import unwrap
from learnpath.services.progression import PlanProgressionEngine

router = APIRouter(prefix="/daily-plans", tags=["daily-plans"])


@router.get("/learning-plan/{plan_id}")
async def list_daily_plans(
    plan_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    days = unwrap(await engine.list_days(plan_id, user["id"]))
    return success([DailyPlanResponse.model_validate(d) for d in days])


@router.get("/{day_id}")
async def get_daily_plan(
    day_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    day = unwrap(await engine.get_day(day_id, user["id"]))
    return success(DailyPlanResponse.model_validate(day))


@router.patch("/{day_id}/unlock")
async def unlock_daily_plan(
    day_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    day = unwrap(await engine.unlock_day(day_id, user["id"]))
    return success(DailyPlanResponse.model_validate(day), "Daily plan unlocked")


@router.patch("/{day_id}/complete")
async def complete_daily_plan(
    day_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    day = unwrap(await engine.complete_day(day_id, user["id"]))
    return success(DailyPlanResponse.model_validate(day), "Daily plan completed")


@router.post("/{day_id}/resources")
async def assign_daily_plan_resources(
    day_id: int,
    payload: AssignResourcesRequest,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    day = await curriculum.assign_resources(
        db,
        day_id,
        user,
        learning_resource_ids=payload.learning_resource_ids,
        practice_resource_ids=payload.practice_resource_ids,
    )
    return success(DailyPlanResponse.model_validate(day), "Resources assigned")


@router.get("/{day_id}/recommended-resources")
async def get_recommended_resources(
    day_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    recommended = await curriculum.recommended_resources(db, day_id, user)
    return success(
        {
            "difficulty": recommended["difficulty"],
            "learning_resources": [
                ResourceResponse.model_validate(r) for r in recommended["learning_resources"]
            ],
            "practice_resources": [
                ResourceResponse.model_validate(r) for r in recommended["practice_resources"]
            ],
        }
    )


@router.post("/{day_id}/quiz", status_code=status.HTTP_201_CREATED)
async def add_daily_plan_quiz(
    day_id: int,
    payload: QuizCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    quiz = await curriculum.add_quiz(db, day_id, user, payload)
    return success(QuizDetail.model_validate(quiz), "Quiz added")


@router.post("/{day_id}/interview")
async def attach_daily_plan_interview(
    day_id: int,
    payload: AttachInterviewRequest,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    template = await curriculum.attach_interview_template(
        db, day_id, user, template_id=payload.template_id
    )
    return success(InterviewTemplateResponse.model_validate(template), "Interview template linked")
