"""Progression engine against the SQLAlchemy store (SQLite)."""

from sqlalchemy import func, select

from learnpath.models.learning_plan import DailyPlan, Track
from learnpath.models.quiz import Quiz
from learnpath.models.resource import ResourceType
from learnpath.schemas.quiz import QuizAnswer, QuizCreate
from learnpath.services import curriculum, quiz_service, resource_service
from learnpath.services.outcome import ErrorKind
from learnpath.services.plan_store import SqlAlchemyPlanStore
from learnpath.services.progression import (
    DAY_LOCKED,
    QUIZ_INCOMPLETE,
    RESOURCES_INCOMPLETE,
)

QUIZ = QuizCreate(
    title="Day one check",
    description="Two quick questions on arrays",
    questions=[
        {"question": "Index of the first item?", "options": ["0", "1"], "correct_answer": "0"},
        {"question": "Access by index cost?", "options": ["O(1)", "O(n)"], "correct_answer": "O(1)"},
    ],
)


def _days(plan):
    return [(d.day_number, d.is_unlocked, d.is_completed) for d in plan.daily_plans]


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestSqlProgression:
    async def test_gated_completion_flow(self, db, sql_engine, owner, make_resource):
        plan = (await sql_engine.create_plan(owner["id"], Track.FAANG, 3)).value
        assert _days(plan) == [(1, True, False), (2, False, False), (3, False, False)]
        day_one = plan.daily_plans[0].id

        video = await make_resource(ResourceType.VIDEO)
        await curriculum.assign_resources(
            db, day_one, owner, learning_resource_ids=[video.id], practice_resource_ids=[]
        )
        blocked = await sql_engine.complete_day(day_one, owner["id"])
        assert blocked.error == ErrorKind.INVALID_STATE
        assert blocked.message == RESOURCES_INCOMPLETE

        await resource_service.complete_resource(db, user_id=owner["id"], resource_id=video.id)
        quiz = await curriculum.add_quiz(db, day_one, owner, QUIZ)
        blocked = await sql_engine.complete_day(day_one, owner["id"])
        assert blocked.message == QUIZ_INCOMPLETE

        await quiz_service.submit_attempt(
            db,
            quiz.id,
            owner,
            [QuizAnswer(question_id=quiz.questions[0].id, selected_answer="1")],
        )
        day = (await sql_engine.complete_day(day_one, owner["id"])).value
        assert day.is_completed is True

        plan = (await sql_engine.get_plan(plan.id, owner["id"])).value
        assert plan.progress == 33
        assert plan.current_day == 2
        assert plan.is_active is True
        assert _days(plan) == [(1, True, True), (2, True, False), (3, False, False)]

        skipped = await sql_engine.complete_day(plan.daily_plans[2].id, owner["id"])
        assert skipped.error == ErrorKind.INVALID_STATE
        assert skipped.message == DAY_LOCKED

    async def test_extend_then_shrink_drops_trailing_quiz(self, db, sql_engine, owner):
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 2)).value
        await sql_engine.complete_day(plan.daily_plans[0].id, owner["id"])

        plan = (await sql_engine.change_duration(plan.id, owner["id"], 4)).value
        assert _days(plan)[2:] == [(3, False, False), (4, False, False)]
        assert plan.progress == 25

        await curriculum.add_quiz(db, plan.daily_plans[3].id, owner, QUIZ)
        plan = (await sql_engine.change_duration(plan.id, owner["id"], 1)).value

        assert _days(plan) == [(1, True, True)]
        assert plan.progress == 100
        assert plan.is_active is False
        assert await _count(db, DailyPlan) == 1
        assert await _count(db, Quiz) == 0

    async def test_list_filter_and_ownership(self, sql_engine, owner, stranger):
        finished = (await sql_engine.create_plan(owner["id"], Track.BIG_4, 1)).value
        await sql_engine.complete_day(finished.daily_plans[0].id, owner["id"])
        ongoing = (await sql_engine.create_plan(owner["id"], Track.BIG_4, 5)).value

        active = (await sql_engine.list_plans(owner["id"], is_active=True)).value
        completed = (await sql_engine.list_plans(owner["id"], is_active=False)).value

        assert [p.id for p in active] == [ongoing.id]
        assert [p.id for p in completed] == [finished.id]
        assert (await sql_engine.list_plans(stranger["id"])).value == []
        assert (await sql_engine.get_plan(ongoing.id, stranger["id"])).error == ErrorKind.FORBIDDEN

    async def test_delete_removes_days(self, db, sql_engine, owner):
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 3)).value

        assert (await sql_engine.delete_plan(plan.id, owner["id"])).ok

        assert (await sql_engine.get_plan(plan.id, owner["id"])).error == ErrorKind.NOT_FOUND
        assert await _count(db, DailyPlan) == 0


class TestCompletionLookups:
    async def test_completed_resource_ids_per_user(
        self, db, owner, stranger, make_resource
    ):
        store = SqlAlchemyPlanStore(db)
        first = await make_resource(ResourceType.BLOG, "Hash maps")
        second = await make_resource(ResourceType.LEETCODE, "Two sum")
        await resource_service.complete_resource(db, user_id=owner["id"], resource_id=first.id)
        await resource_service.complete_resource(db, user_id=stranger["id"], resource_id=second.id)

        assert await store.completed_resource_ids(owner["id"], [first.id, second.id]) == {first.id}
        assert await store.completed_resource_ids(owner["id"], []) == set()

    async def test_quiz_attempt_lookup(self, db, sql_engine, owner, stranger):
        store = SqlAlchemyPlanStore(db)
        plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 1)).value
        quiz = await curriculum.add_quiz(db, plan.daily_plans[0].id, owner, QUIZ)

        assert await store.has_completed_quiz_attempt(quiz.id, owner["id"]) is False

        await quiz_service.submit_attempt(
            db, quiz.id, owner, [QuizAnswer(question_id=quiz.questions[0].id, selected_answer="0")]
        )

        assert await store.has_completed_quiz_attempt(quiz.id, owner["id"]) is True
        assert await store.has_completed_quiz_attempt(quiz.id, stranger["id"]) is False
