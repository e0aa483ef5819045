"""Mock interview lifecycle tests (SQLite)."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from learnpath.models.interview import InterviewResponse, InterviewStatus
from learnpath.models.learning_plan import Track
from learnpath.schemas.interview import InterviewTemplateCreate
from learnpath.services import curriculum, interview_service
from learnpath.services.outcome import ErrorKind
from learnpath.services.progression import INTERVIEW_INCOMPLETE
from tests.conftest import FIXED_NOW

WHEN = FIXED_NOW + timedelta(days=1)


def _template(question_count: int = 5) -> InterviewTemplateCreate:
    return InterviewTemplateCreate(
        title="Backend fundamentals",
        description="Short verbal round",
        duration=30,
        questions=[
            {"question": f"Question number {n}", "type": "VERBAL", "order": n}
            for n in range(1, question_count + 1)
        ],
    )


@pytest.fixture
async def template(db):
    return await interview_service.create_template(db, _template())


async def _in_progress(db, owner, template, **kwargs):
    interview = await interview_service.schedule_interview(
        db, owner, template_id=template.id, scheduled_at=WHEN, **kwargs
    )
    return await interview_service.start_interview(db, interview.id, owner)


class TestInterviewLifecycle:
    async def test_complete_lists_missing_answers(self, db, owner, template):
        interview = await _in_progress(db, owner, template)
        await interview_service.save_response(
            db, interview.id, owner, question_id=template.questions[0].id, user_response="Yes"
        )

        with pytest.raises(HTTPException) as exc_info:
            await interview_service.complete_interview(db, interview.id, owner)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == (
            "Cannot complete interview: missing answers for questions "
            '"Question number 2", "Question number 3", "Question number 4" and 1 more'
        )

    async def test_complete_scores_and_stores_feedback(self, db, owner, template):
        interview = await _in_progress(db, owner, template)
        for question in template.questions:
            await interview_service.save_response(
                db, interview.id, owner, question_id=question.id, user_response="a" * 200
            )

        done = await interview_service.complete_interview(
            db, interview.id, owner, proctor_notes={"tabSwitches": 0}
        )

        assert done.status == InterviewStatus.COMPLETED
        assert done.is_completed is True
        assert done.overall_score == 80
        assert done.proctor_notes == {"tabSwitches": 0}
        assert all(r.score == 4 for r in done.responses)
        feedback = await interview_service.get_feedback(db, interview.id, owner)
        assert feedback["feedback"]["overallScore"] == 80

    async def test_saving_again_overwrites_answer(self, db, owner, template):
        interview = await _in_progress(db, owner, template)
        question_id = template.questions[0].id

        await interview_service.save_response(
            db, interview.id, owner, question_id=question_id, user_response="first"
        )
        await interview_service.save_response(
            db, interview.id, owner, question_id=question_id, user_response="second"
        )

        loaded = await interview_service.get_interview(db, interview.id, owner)
        assert [r.user_response for r in loaded.responses] == ["second"]

    async def test_one_response_row_per_question(self, db, owner, template):
        interview = await _in_progress(db, owner, template)
        question_id = template.questions[0].id
        db.add_all(
            [
                InterviewResponse(
                    mock_interview_id=interview.id, question_id=question_id, user_response=text
                )
                for text in ("one", "two")
            ]
        )

        with pytest.raises(IntegrityError):
            await db.flush()
        await db.rollback()

    async def test_concurrent_save_conflict(self, db, owner, template, monkeypatch):
        interview = await _in_progress(db, owner, template)
        question_id = template.questions[0].id
        load = interview_service._load_interview

        async def load_then_race(session, interview_id, user):
            loaded = await load(session, interview_id, user)
            # 다른 요청이 먼저 같은 질문의 답변을 저장한 상황
            await session.execute(
                insert(InterviewResponse.__table__).values(
                    mock_interview_id=interview_id, question_id=question_id, user_response="other"
                )
            )
            return loaded

        monkeypatch.setattr(interview_service, "_load_interview", load_then_race)

        with pytest.raises(HTTPException) as exc_info:
            await interview_service.save_response(
                db, interview.id, owner, question_id=question_id, user_response="mine"
            )

        assert exc_info.value.status_code == 409

    async def test_cannot_answer_before_start(self, db, owner, template):
        interview = await interview_service.schedule_interview(
            db, owner, template_id=template.id, scheduled_at=WHEN
        )

        with pytest.raises(HTTPException) as exc_info:
            await interview_service.save_response(
                db, interview.id, owner, question_id=template.questions[0].id, user_response="x"
            )

        assert exc_info.value.status_code == 400


class TestScheduleOnDay:
    async def test_day_already_has_interview(self, db, sql_engine, owner, template):
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 2)).value
        day_id = plan.daily_plans[0].id
        await interview_service.schedule_interview(
            db, owner, template_id=template.id, scheduled_at=WHEN, daily_plan_id=day_id
        )

        with pytest.raises(HTTPException) as exc_info:
            await interview_service.schedule_interview(
                db, owner, template_id=template.id, scheduled_at=WHEN, daily_plan_id=day_id
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "This daily plan already has a mock interview"

    async def test_someone_elses_day(self, db, sql_engine, owner, stranger, template):
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 1)).value

        with pytest.raises(HTTPException) as exc_info:
            await interview_service.schedule_interview(
                db,
                stranger,
                template_id=template.id,
                scheduled_at=WHEN,
                daily_plan_id=plan.daily_plans[0].id,
            )

        assert exc_info.value.status_code == 403

    async def test_day_waits_for_interview(self, db, sql_engine, owner):
        template = await interview_service.create_template(db, _template(question_count=1))
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 2)).value
        day_id = plan.daily_plans[0].id
        interview = await _in_progress(db, owner, template, daily_plan_id=day_id)

        blocked = await sql_engine.complete_day(day_id, owner["id"])
        assert blocked.error == ErrorKind.INVALID_STATE
        assert blocked.message == INTERVIEW_INCOMPLETE

        await interview_service.save_response(
            db, interview.id, owner, question_id=template.questions[0].id, user_response="answer"
        )
        await interview_service.complete_interview(db, interview.id, owner)

        assert (await sql_engine.complete_day(day_id, owner["id"])).ok


class TestTemplateDeletion:
    async def test_unused_template_is_deleted(self, db, template):
        result = await interview_service.delete_template(db, template.id)

        assert result == {"id": template.id, "deactivated": False}
        with pytest.raises(HTTPException):
            await interview_service.get_template(db, template.id)

    async def test_template_linked_to_day_is_deactivated(self, db, sql_engine, owner, template):
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 1)).value
        await curriculum.attach_interview_template(
            db, plan.daily_plans[0].id, owner, template_id=template.id
        )

        result = await interview_service.delete_template(db, template.id)

        assert result["deactivated"] is True
        kept = await interview_service.get_template(db, template.id)
        assert kept.is_active is False
        assert len(kept.questions) == 5

    async def test_template_used_by_interview_is_deactivated(self, db, owner, template):
        await interview_service.schedule_interview(
            db, owner, template_id=template.id, scheduled_at=WHEN
        )

        result = await interview_service.delete_template(db, template.id)

        assert result["deactivated"] is True
        assert [t.id for t in await interview_service.list_templates(db)] == []
