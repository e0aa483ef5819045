"""Persistence port for the progression engine."""

from contextlib import AbstractAsyncContextManager
from typing import Iterable, Optional, Protocol

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnpath.core.database import transaction
from learnpath.models.learning_plan import DailyPlan, LearningPlan
from learnpath.models.quiz import QuizAttempt
from learnpath.models.resource import UserResource


class PlanStore(Protocol):
    """Loads and saves fully-populated plan aggregates."""

    def transaction(self) -> AbstractAsyncContextManager: ...

    async def add_plan(self, plan: LearningPlan) -> None: ...

    async def get_plan(self, plan_id: int, *, for_update: bool = False) -> Optional[LearningPlan]: ...

    async def list_plans(self, user_id: int, is_active: Optional[bool] = None) -> list[LearningPlan]: ...

    async def get_day(self, day_id: int) -> Optional[DailyPlan]: ...

    async def delete_plan(self, plan: LearningPlan) -> None: ...

    async def flush(self) -> None: ...

    async def completed_resource_ids(self, user_id: int, resource_ids: Iterable[int]) -> set[int]: ...

    async def has_completed_quiz_attempt(self, quiz_id: int, user_id: int) -> bool: ...


def _day_options():
    return (
        selectinload(DailyPlan.learning_resources),
        selectinload(DailyPlan.practice_resources),
        selectinload(DailyPlan.quiz),
        selectinload(DailyPlan.mock_interview),
    )


def _plan_options():
    return (selectinload(LearningPlan.daily_plans).options(*_day_options()),)


class SqlAlchemyPlanStore:
    """PlanStore backed by the request's AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def transaction(self) -> AbstractAsyncContextManager:
        return transaction(self.session)

    async def add_plan(self, plan: LearningPlan) -> None:
        self.session.add(plan)

    async def get_plan(self, plan_id: int, *, for_update: bool = False) -> Optional[LearningPlan]:
        stmt = (
            select(LearningPlan)
            .where(LearningPlan.id == plan_id)
            .options(*_plan_options())
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update(of=LearningPlan)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_plans(self, user_id: int, is_active: Optional[bool] = None) -> list[LearningPlan]:
        stmt = (
            select(LearningPlan)
            .where(LearningPlan.user_id == user_id)
            .options(*_plan_options())
            .order_by(LearningPlan.updated_at.desc(), LearningPlan.id.desc())
            .execution_options(populate_existing=True)
        )
        if is_active is not None:
            stmt = stmt.where(LearningPlan.is_active == is_active)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_day(self, day_id: int) -> Optional[DailyPlan]:
        stmt = (
            select(DailyPlan)
            .where(DailyPlan.id == day_id)
            .options(selectinload(DailyPlan.learning_plan), *_day_options())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_plan(self, plan: LearningPlan) -> None:
        await self.session.delete(plan)

    async def flush(self) -> None:
        await self.session.flush()

    async def completed_resource_ids(self, user_id: int, resource_ids: Iterable[int]) -> set[int]:
        ids = list(resource_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(UserResource.resource_id).where(
                UserResource.user_id == user_id,
                UserResource.resource_id.in_(ids),
            )
        )
        return set(result.scalars().all())

    async def has_completed_quiz_attempt(self, quiz_id: int, user_id: int) -> bool:
        stmt = select(
            exists().where(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.user_id == user_id,
                QuizAttempt.is_completed.is_(True),
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())
