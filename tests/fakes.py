"""In-memory PlanStore used by engine and API tests."""

import itertools
from contextlib import asynccontextmanager
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from learnpath.models.interview import InterviewStatus, MockInterview
from learnpath.models.learning_plan import DailyPlan, LearningPlan
from learnpath.models.quiz import Quiz
from learnpath.models.resource import Resource, ResourceType

_PLAN_FIELDS = (
    "track",
    "duration_days",
    "start_date",
    "end_date",
    "is_active",
    "current_day",
    "progress",
)
_DAY_FIELDS = ("day_number", "is_unlocked", "is_completed")


class InMemoryPlanStore:
    """Dict-backed PlanStore. Rolls plan/day state back when a transaction fails."""

    def __init__(self):
        self.plans: dict[int, LearningPlan] = {}
        self.completed_resources: set[tuple[int, int]] = set()
        self.completed_quizzes: set[tuple[int, int]] = set()
        self.fail_on_flush = False
        self.commits = 0
        self.rollbacks = 0
        self._plan_ids = itertools.count(1)
        self._day_ids = itertools.count(1)
        self._other_ids = itertools.count(1000)

    # ==================== PlanStore ====================

    @asynccontextmanager
    async def transaction(self):
        snapshot = self._snapshot()
        try:
            yield self
        except Exception:
            self._restore(snapshot)
            self.rollbacks += 1
            raise
        self.commits += 1

    async def add_plan(self, plan: LearningPlan) -> None:
        plan.id = next(self._plan_ids)
        self.plans[plan.id] = plan

    async def get_plan(self, plan_id: int, *, for_update: bool = False) -> Optional[LearningPlan]:
        return self.plans.get(plan_id)

    async def list_plans(self, user_id: int, is_active: Optional[bool] = None) -> list[LearningPlan]:
        plans = [
            plan
            for plan in self.plans.values()
            if plan.user_id == user_id and (is_active is None or plan.is_active == is_active)
        ]
        return sorted(plans, key=lambda plan: plan.id, reverse=True)

    async def get_day(self, day_id: int) -> Optional[DailyPlan]:
        for plan in self.plans.values():
            for day in plan.daily_plans:
                if day.id == day_id:
                    return day
        return None

    async def delete_plan(self, plan: LearningPlan) -> None:
        self.plans.pop(plan.id, None)

    async def flush(self) -> None:
        if self.fail_on_flush:
            raise SQLAlchemyError("simulated database failure")
        for plan in self.plans.values():
            for day in plan.daily_plans:
                if day.id is None:
                    day.id = next(self._day_ids)
                day.learning_plan_id = plan.id

    async def completed_resource_ids(self, user_id: int, resource_ids: Iterable[int]) -> set[int]:
        return {rid for rid in resource_ids if (user_id, rid) in self.completed_resources}

    async def has_completed_quiz_attempt(self, quiz_id: int, user_id: int) -> bool:
        return (quiz_id, user_id) in self.completed_quizzes

    # ==================== test helpers ====================

    def day(self, plan: LearningPlan, day_number: int) -> DailyPlan:
        return next(d for d in plan.daily_plans if d.day_number == day_number)

    def attach_resource(
        self, day: DailyPlan, resource_type: ResourceType, *, practice: bool = False
    ) -> Resource:
        resource = Resource(
            id=next(self._other_ids),
            title=f"{resource_type.value} resource",
            description="attached for tests",
            type=resource_type,
            url="https://example.com/resource",
        )
        if practice:
            day.practice_resources.append(resource)
        else:
            day.learning_resources.append(resource)
        return resource

    def attach_quiz(self, day: DailyPlan) -> Quiz:
        quiz = Quiz(id=next(self._other_ids), title="Day quiz", description="quiz for the day")
        day.quiz = quiz
        return quiz

    def attach_interview(self, day: DailyPlan, *, completed: bool = False) -> MockInterview:
        interview = MockInterview(
            id=next(self._other_ids),
            status=InterviewStatus.COMPLETED if completed else InterviewStatus.SCHEDULED,
            is_completed=completed,
        )
        day.mock_interview = interview
        return interview

    def complete_resource(self, user_id: int, resource: Resource) -> None:
        self.completed_resources.add((user_id, resource.id))

    def complete_quiz(self, user_id: int, quiz: Quiz) -> None:
        self.completed_quizzes.add((quiz.id, user_id))

    # ==================== rollback ====================

    def _snapshot(self):
        plans = dict(self.plans)
        state = {
            plan_id: (
                {field: getattr(plan, field) for field in _PLAN_FIELDS},
                [
                    (day, {field: getattr(day, field) for field in _DAY_FIELDS})
                    for day in plan.daily_plans
                ],
            )
            for plan_id, plan in plans.items()
        }
        return plans, state

    def _restore(self, snapshot) -> None:
        plans, state = snapshot
        self.plans = plans
        for plan_id, (plan_fields, days) in state.items():
            plan = plans[plan_id]
            for field, value in plan_fields.items():
                setattr(plan, field, value)
            plan.daily_plans[:] = [day for day, _ in days]
            for day, day_fields in days:
                for field, value in day_fields.items():
                    setattr(day, field, value)
