"""Interview template and mock interview endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.auth import get_current_user, require_admin
from learnpath.core.database import get_db
from learnpath.models.interview import InterviewStatus
from learnpath.schemas.common import success
from learnpath.schemas.interview import (
    InterviewAnswerCreate,
    InterviewResponseOut,
    InterviewTemplateCreate,
    InterviewTemplateResponse,
    InterviewTemplateUpdate,
    MockInterviewCreate,
    MockInterviewDetail,
    MockInterviewResponse,
)
from learnpath.services import interview_service

router = APIRouter(prefix="/interviews", tags=["interviews"])


# ==================== Templates ====================


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_interview_template(
    payload: InterviewTemplateCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    template = await interview_service.create_template(db, payload)
    return success(InterviewTemplateResponse.model_validate(template), "Interview template created")


@router.get("/templates")
async def list_interview_templates(
    include_inactive: bool = False,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    templates = await interview_service.list_templates(db, include_inactive=include_inactive)
    return success([InterviewTemplateResponse.model_validate(t) for t in templates])


@router.get("/templates/{template_id}")
async def get_interview_template(
    template_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    template = await interview_service.get_template(db, template_id)
    return success(InterviewTemplateResponse.model_validate(template))


@router.put("/templates/{template_id}")
async def update_interview_template(
    template_id: int,
    payload: InterviewTemplateUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    template = await interview_service.update_template(db, template_id, payload)
    return success(InterviewTemplateResponse.model_validate(template), "Interview template updated")


@router.delete("/templates/{template_id}")
async def delete_interview_template(
    template_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await interview_service.delete_template(db, template_id)
    message = "Interview template deactivated" if result["deactivated"] else "Interview template deleted"
    return success(result, message)


# ==================== Mock interviews ====================


@router.post("/schedule", status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    payload: MockInterviewCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    interview = await interview_service.schedule_interview(
        db,
        user,
        template_id=payload.template_id,
        scheduled_at=payload.scheduled_at,
        daily_plan_id=payload.daily_plan_id,
    )
    return success(MockInterviewResponse.model_validate(interview), "Interview scheduled")


@router.get("")
async def list_interviews(
    interview_status: Optional[InterviewStatus] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    include_responses: bool = False,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await interview_service.list_interviews(
        db,
        user,
        status_filter=interview_status,
        page=page,
        limit=limit,
        include_responses=include_responses,
    )
    schema = MockInterviewDetail if include_responses else MockInterviewResponse
    result["items"] = [schema.model_validate(i) for i in result["items"]]
    return success(result)


@router.get("/{interview_id}")
async def get_interview(
    interview_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    interview = await interview_service.get_interview(db, interview_id, user)
    return success(MockInterviewDetail.model_validate(interview))


@router.patch("/{interview_id}/start")
async def start_interview(
    interview_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    interview = await interview_service.start_interview(db, interview_id, user)
    return success(MockInterviewDetail.model_validate(interview), "Interview started")


@router.post("/{interview_id}/response")
async def save_interview_response(
    interview_id: int,
    payload: InterviewAnswerCreate,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    response = await interview_service.save_response(
        db,
        interview_id,
        user,
        question_id=payload.question_id,
        user_response=payload.user_response,
    )
    return success(InterviewResponseOut.model_validate(response), "Response saved")


@router.patch("/{interview_id}/complete")
async def complete_interview(
    interview_id: int,
    proctor_notes: Optional[dict[str, Any]] = Body(default=None, embed=True),
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    interview = await interview_service.complete_interview(
        db, interview_id, user, proctor_notes=proctor_notes
    )
    return success(MockInterviewDetail.model_validate(interview), "Interview completed")


@router.get("/{interview_id}/feedback")
async def get_interview_feedback(
    interview_id: int,
    user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return success(await interview_service.get_feedback(db, interview_id, user))
