"""Interview templates and mock interview lifecycle.

SCHEDULED -> IN_PROGRESS -> COMPLETED. 완료 시 휴리스틱 점수/피드백을 생성해 저장한다.
"""

import logging
import math
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnpath.core.database import transaction, utcnow
from learnpath.models.interview import (
    InterviewQuestion,
    InterviewResponse,
    InterviewStatus,
    InterviewTemplate,
    MockInterview,
)
from learnpath.models.learning_plan import DailyPlan
from learnpath.schemas.interview import (
    InterviewQuestionCreate,
    InterviewTemplateCreate,
    InterviewTemplateUpdate,
)
from learnpath.services.interview_feedback import ResponseScore, generate_feedback, score_response

logger = logging.getLogger(__name__)

MISSING_QUESTIONS_SHOWN = 3


# ==================== Templates ====================


async def _load_template(db: AsyncSession, template_id: int) -> InterviewTemplate:
    result = await db.execute(
        select(InterviewTemplate)
        .where(InterviewTemplate.id == template_id)
        .options(selectinload(InterviewTemplate.questions))
        .execution_options(populate_existing=True)
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Interview template not found",
        )
    return template


def _question_from(payload: InterviewQuestionCreate) -> InterviewQuestion:
    return InterviewQuestion(
        question=payload.question,
        type=payload.type,
        code_snippet=payload.code_snippet,
        expected_answer=payload.expected_answer,
        order=payload.order,
    )


async def create_template(db: AsyncSession, payload: InterviewTemplateCreate) -> InterviewTemplate:
    template = InterviewTemplate(
        title=payload.title,
        description=payload.description,
        duration=payload.duration,
        is_active=payload.is_active,
        questions=[_question_from(q) for q in payload.questions],
    )
    async with transaction(db):
        db.add(template)
    logger.info("Interview template created: id=%s", template.id)
    return await _load_template(db, template.id)


async def list_templates(db: AsyncSession, *, include_inactive: bool = False) -> list[InterviewTemplate]:
    stmt = (
        select(InterviewTemplate)
        .options(selectinload(InterviewTemplate.questions))
        .order_by(InterviewTemplate.created_at.desc())
    )
    if not include_inactive:
        stmt = stmt.where(InterviewTemplate.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_template(db: AsyncSession, template_id: int) -> InterviewTemplate:
    return await _load_template(db, template_id)


async def update_template(
    db: AsyncSession, template_id: int, payload: InterviewTemplateUpdate
) -> InterviewTemplate:
    """Update fields; when questions are given, keep/update by id, create new, delete the rest."""
    template = await _load_template(db, template_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"questions"})

    if payload.questions is not None:
        existing = {question.id: question for question in template.questions}
        unknown = [q.id for q in payload.questions if q.id is not None and q.id not in existing]
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Questions do not belong to this template: {unknown}",
            )

    async with transaction(db):
        for field, value in changes.items():
            setattr(template, field, value)
        if payload.questions is not None:
            kept = []
            for item in payload.questions:
                if item.id is None:
                    kept.append(_question_from(item))
                    continue
                question = existing[item.id]
                question.question = item.question
                question.type = item.type
                question.code_snippet = item.code_snippet
                question.expected_answer = item.expected_answer
                question.order = item.order
                kept.append(question)
            # delete-orphan 으로 목록에서 빠진 질문은 삭제된다
            template.questions[:] = kept

    return await _load_template(db, template_id)


async def delete_template(db: AsyncSession, template_id: int) -> dict:
    """Delete, or deactivate when the template is linked to a day or used by an interview."""
    template = await _load_template(db, template_id)
    used = await db.execute(
        select(func.count(MockInterview.id)).where(MockInterview.template_id == template_id)
    )
    async with transaction(db):
        if template.daily_plan_id is not None or used.scalar_one() > 0:
            template.is_active = False
            deactivated = True
        else:
            await db.delete(template)
            deactivated = False
    logger.info("Interview template %s %s", template_id, "deactivated" if deactivated else "deleted")
    return {"id": template_id, "deactivated": deactivated}


# ==================== Mock interviews ====================


def _interview_options(include_responses: bool = True):
    options = [selectinload(MockInterview.template).selectinload(InterviewTemplate.questions)]
    if include_responses:
        options.append(selectinload(MockInterview.responses))
    return options


async def _load_interview(db: AsyncSession, interview_id: int, user: dict) -> MockInterview:
    result = await db.execute(
        select(MockInterview)
        .where(MockInterview.id == interview_id)
        .options(*_interview_options())
        .execution_options(populate_existing=True)
    )
    interview = result.scalar_one_or_none()
    if interview is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Interview not found",
        )
    if interview.user_id != user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this interview",
        )
    return interview


async def schedule_interview(
    db: AsyncSession,
    user: dict,
    *,
    template_id: int,
    scheduled_at: datetime,
    daily_plan_id: Optional[int] = None,
) -> MockInterview:
    template = await _load_template(db, template_id)
    if not template.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Interview template is not active",
        )

    day: Optional[DailyPlan] = None
    if daily_plan_id is not None:
        result = await db.execute(
            select(DailyPlan)
            .where(DailyPlan.id == daily_plan_id)
            .options(selectinload(DailyPlan.learning_plan))
        )
        day = result.scalar_one_or_none()
        if day is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Daily plan not found",
            )
        if day.learning_plan.user_id != user["id"]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to modify this daily plan",
            )
        if day.mock_interview_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This daily plan already has a mock interview",
            )

    interview = MockInterview(
        user_id=user["id"],
        template_id=template.id,
        status=InterviewStatus.SCHEDULED,
        scheduled_at=scheduled_at,
        is_completed=False,
    )
    async with transaction(db):
        db.add(interview)
        await db.flush()
        if day is not None:
            day.mock_interview_id = interview.id

    logger.info("Mock interview %s scheduled for user %s", interview.id, user["id"])
    return await _load_interview(db, interview.id, user)


async def list_interviews(
    db: AsyncSession,
    user: dict,
    *,
    status_filter: Optional[InterviewStatus] = None,
    page: int = 1,
    limit: int = 10,
    include_responses: bool = False,
) -> dict[str, Any]:
    conditions = [MockInterview.user_id == user["id"]]
    if status_filter is not None:
        conditions.append(MockInterview.status == status_filter)

    total = (
        await db.execute(select(func.count(MockInterview.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(MockInterview)
        .where(*conditions)
        .options(*_interview_options(include_responses))
        .order_by(MockInterview.scheduled_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return {
        "items": list(result.scalars().all()),
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


async def get_interview(db: AsyncSession, interview_id: int, user: dict) -> MockInterview:
    return await _load_interview(db, interview_id, user)


async def start_interview(db: AsyncSession, interview_id: int, user: dict) -> MockInterview:
    interview = await _load_interview(db, interview_id, user)
    if interview.status != InterviewStatus.SCHEDULED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot start interview with status: {interview.status.value}",
        )
    async with transaction(db):
        interview.status = InterviewStatus.IN_PROGRESS
        interview.started_at = utcnow()
    return await _load_interview(db, interview_id, user)


async def save_response(
    db: AsyncSession,
    interview_id: int,
    user: dict,
    *,
    question_id: int,
    user_response: str,
) -> InterviewResponse:
    """Create or overwrite the answer to one question."""
    interview = await _load_interview(db, interview_id, user)
    if interview.status != InterviewStatus.IN_PROGRESS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot save responses for interview with status: {interview.status.value}",
        )
    if question_id not in {question.id for question in interview.template.questions}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Question does not belong to this interview",
        )

    now = utcnow()
    response = next((r for r in interview.responses if r.question_id == question_id), None)
    try:
        async with transaction(db):
            if response is None:
                response = InterviewResponse(
                    mock_interview_id=interview.id,
                    question_id=question_id,
                    user_response=user_response,
                    feedback=None,
                    score=None,
                    started_at=now,
                    completed_at=now,
                    is_complete=True,
                )
                db.add(response)
            else:
                response.user_response = user_response
                response.completed_at = now
                response.is_complete = True
    except IntegrityError:
        # 같은 질문에 대한 동시 저장 (interview, question 유니크)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A response for this question is already being saved",
        )
    return response


def _score_interview(interview: MockInterview) -> tuple[dict, int]:
    """Score each response in place and build the feedback document."""
    questions = {question.id: question for question in interview.template.questions}
    analysis = []
    for response in interview.responses:
        question = questions.get(response.question_id)
        if question is None:
            continue
        score, feedback = score_response(question.type, response.user_response)
        response.score = score
        response.feedback = feedback
        analysis.append(
            ResponseScore(
                question_id=question.id,
                question=question.question,
                score=score,
                feedback=feedback,
            )
        )
    feedback = generate_feedback(analysis)
    return feedback, feedback["overallScore"]


async def complete_interview(
    db: AsyncSession,
    interview_id: int,
    user: dict,
    *,
    proctor_notes: Optional[dict] = None,
) -> MockInterview:
    interview = await _load_interview(db, interview_id, user)
    if interview.status != InterviewStatus.IN_PROGRESS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot complete interview with status: {interview.status.value}",
        )

    answered = {response.question_id for response in interview.responses}
    missing = [q for q in interview.template.questions if q.id not in answered]
    if missing:
        shown = ", ".join(f'"{q.question}"' for q in missing[:MISSING_QUESTIONS_SHOWN])
        extra = (
            f" and {len(missing) - MISSING_QUESTIONS_SHOWN} more"
            if len(missing) > MISSING_QUESTIONS_SHOWN
            else ""
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot complete interview: missing answers for questions {shown}{extra}",
        )

    async with transaction(db):
        feedback, score = _score_interview(interview)
        interview.status = InterviewStatus.COMPLETED
        interview.is_completed = True
        interview.completed_at = utcnow()
        interview.feedback = feedback
        interview.overall_score = score
        interview.proctor_notes = proctor_notes

    logger.info("Mock interview %s completed: score=%s", interview_id, score)
    return await _load_interview(db, interview_id, user)


async def get_feedback(db: AsyncSession, interview_id: int, user: dict) -> dict:
    interview = await _load_interview(db, interview_id, user)
    if interview.status != InterviewStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Feedback is only available for completed interviews",
        )
    if not interview.feedback:
        async with transaction(db):
            feedback, score = _score_interview(interview)
            interview.feedback = feedback
            interview.overall_score = score
    return {
        "interview_id": interview.id,
        "overall_score": interview.overall_score,
        "feedback": interview.feedback,
        "completed_at": interview.completed_at,
    }
