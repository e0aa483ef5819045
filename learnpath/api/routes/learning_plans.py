"""Learning plan endpoints."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from learnpath.api.deps import get_progression_engine
from learnpath.core.auth import get_current_user
from learnpath.schemas.common import success
from learnpath.schemas.learning_plan import (
    LearningPlanCreate,
    LearningPlanResponse,
    LearningPlanUpdate,
    ProgressUpdate,
)
from learnpath.services.outcome import unwrap
from learnpath.services.progression import PlanProgressionEngine

router = APIRouter(prefix="/learning-plans", tags=["learning-plans"])

_STATUS_FILTER = {"active": True, "completed": False}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_learning_plan(
    payload: LearningPlanCreate,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    plan = unwrap(await engine.create_plan(user["id"], payload.track, payload.duration_days))
    return success(LearningPlanResponse.model_validate(plan), "Learning plan created")


@router.get("")
async def list_learning_plans(
    plan_status: Optional[Literal["active", "completed"]] = Query(default=None, alias="status"),
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    is_active = _STATUS_FILTER[plan_status] if plan_status else None
    plans = unwrap(await engine.list_plans(user["id"], is_active))
    return success([LearningPlanResponse.model_validate(p) for p in plans])


@router.get("/{plan_id}")
async def get_learning_plan(
    plan_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    plan = unwrap(await engine.get_plan(plan_id, user["id"]))
    return success(LearningPlanResponse.model_validate(plan))


@router.put("/{plan_id}")
async def update_learning_plan(
    plan_id: int,
    payload: LearningPlanUpdate,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    plan = unwrap(
        await engine.update_plan(
            plan_id,
            user["id"],
            track=payload.track,
            duration_days=payload.duration_days,
            is_active=payload.is_active,
        )
    )
    return success(LearningPlanResponse.model_validate(plan), "Learning plan updated")


@router.delete("/{plan_id}")
async def delete_learning_plan(
    plan_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    unwrap(await engine.delete_plan(plan_id, user["id"]))
    return success(message="Learning plan deleted")


@router.patch("/{plan_id}/progress")
async def update_learning_plan_progress(
    plan_id: int,
    payload: ProgressUpdate,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    plan = unwrap(
        await engine.update_progress(
            plan_id,
            user["id"],
            current_day=payload.current_day,
            progress=payload.progress,
        )
    )
    return success(LearningPlanResponse.model_validate(plan), "Progress updated")


@router.get("/{plan_id}/stats")
async def get_learning_plan_stats(
    plan_id: int,
    user: dict = Depends(get_current_user),
    engine: PlanProgressionEngine = Depends(get_progression_engine),
) -> dict:
    return success(unwrap(await engine.compute_stats(plan_id, user["id"])))
