"""Learning plan progression engine.

일자(DailyPlan)의 상태 전이: Locked -> Unlocked -> Completed (역방향 없음).

- 플랜 생성 시 1일차만 잠금 해제
- N일차 잠금 해제는 N-1일차 완료가 선행 조건
- 일자 완료 게이트 순서: 잠금 -> 리소스 -> 퀴즈 -> 모의면접 (첫 번째 실패만 보고)
- 완료 시 다음 날 자동 해제, progress/current_day/is_active 재계산

모든 변경은 하나의 트랜잭션 안에서 플랜 행을 잠그고(FOR UPDATE) 다시 읽은 뒤 결정한다.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from learnpath.core.database import utcnow
from learnpath.models.learning_plan import DailyPlan, LearningPlan, Track
from learnpath.models.resource import ResourceType
from learnpath.schemas.learning_plan import LearningPlanStats, ResourceCounts
from learnpath.services.outcome import (
    ErrorKind,
    Outcome,
    forbidden,
    invalid,
    invalid_state,
    not_found,
)
from learnpath.services.plan_store import PlanStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

PLAN_NOT_FOUND = "Learning plan not found"
DAY_NOT_FOUND = "Daily plan not found"
NOT_OWNER = "You do not have permission to access this learning plan"
PREVIOUS_DAY_INCOMPLETE = "Cannot unlock this day until the previous day is completed"
DAY_LOCKED = "Cannot complete a locked day"
DAY_ALREADY_COMPLETED = "This day is already completed"
RESOURCES_INCOMPLETE = "All learning and practice resources must be completed first"
QUIZ_INCOMPLETE = "The quiz for this day must be completed first"
INTERVIEW_INCOMPLETE = "The mock interview for this day must be completed first"


def percent(completed: int, total: int) -> float:
    """100 * completed / total, rounded half up to a whole number."""
    if total <= 0:
        return 0.0
    return float(math.floor(100 * completed / total + 0.5))


def _find_day(plan: LearningPlan, day_number: int) -> Optional[DailyPlan]:
    for day in plan.daily_plans:
        if day.day_number == day_number:
            return day
    return None


def _previous_day_completed(plan: LearningPlan, day_number: int) -> bool:
    if day_number <= 1:
        return True
    previous = _find_day(plan, day_number - 1)
    return previous is not None and bool(previous.is_completed)


def _completed_count(plan: LearningPlan) -> int:
    return sum(1 for day in plan.daily_plans if day.is_completed)


class PlanProgressionEngine:
    """Owns the plan/day lifecycle. Every public method returns an ``Outcome``."""

    def __init__(self, store: PlanStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    # ==================== helpers ====================

    async def _run(self, action: str, op: Callable[[], Awaitable[Outcome]]) -> Outcome:
        """Run ``op`` in one transaction; persistence failures become INTERNAL."""
        try:
            async with self.store.transaction():
                return await op()
        except SQLAlchemyError:
            logger.exception("Plan progression failed: %s", action)
            return Outcome.failure(ErrorKind.INTERNAL, f"Failed to {action}")

    async def _read(self, action: str, op: Callable[[], Awaitable[Outcome]]) -> Outcome:
        try:
            return await op()
        except SQLAlchemyError:
            logger.exception("Plan read failed: %s", action)
            return Outcome.failure(ErrorKind.INTERNAL, f"Failed to {action}")

    async def _owned_plan(
        self, plan_id: int, requester_id: int, *, for_update: bool = False
    ) -> Outcome[LearningPlan]:
        plan = await self.store.get_plan(plan_id, for_update=for_update)
        if plan is None:
            return not_found(PLAN_NOT_FOUND)
        if plan.user_id != requester_id:
            return forbidden(NOT_OWNER)
        return Outcome.success(plan)

    async def _owned_day_locked(
        self, day_id: int, requester_id: int
    ) -> Outcome[tuple[DailyPlan, LearningPlan]]:
        """Load the day's plan FOR UPDATE and return the day from that fresh state."""
        day = await self.store.get_day(day_id)
        if day is None:
            return not_found(DAY_NOT_FOUND)
        owned = await self._owned_plan(day.learning_plan_id, requester_id, for_update=True)
        if not owned.ok:
            return owned
        plan = owned.value
        for candidate in plan.daily_plans:
            if candidate.id == day_id:
                return Outcome.success((candidate, plan))
        return not_found(DAY_NOT_FOUND)

    async def _reload_plan(self, plan_id: int) -> Outcome[LearningPlan]:
        plan = await self.store.get_plan(plan_id)
        if plan is None:
            return not_found(PLAN_NOT_FOUND)
        return Outcome.success(plan)

    async def _reload_day(self, day_id: int) -> Outcome[DailyPlan]:
        day = await self.store.get_day(day_id)
        if day is None:
            return not_found(DAY_NOT_FOUND)
        return Outcome.success(day)

    # ==================== plans ====================

    async def create_plan(
        self, user_id: int, track: Track, duration_days: int
    ) -> Outcome[LearningPlan]:
        if duration_days < 1:
            return invalid("duration_days must be at least 1")

        async def op() -> Outcome:
            now = self.clock()
            plan = LearningPlan(
                user_id=user_id,
                track=track,
                duration_days=duration_days,
                start_date=now,
                end_date=now + timedelta(days=duration_days),
                is_active=True,
                current_day=1,
                progress=0.0,
                daily_plans=[
                    DailyPlan(day_number=n, is_unlocked=(n == 1), is_completed=False)
                    for n in range(1, duration_days + 1)
                ],
            )
            await self.store.add_plan(plan)
            await self.store.flush()
            return Outcome.success(plan)

        created = await self._run("create learning plan", op)
        if not created.ok:
            return created
        logger.info(
            "Learning plan created: id=%s user=%s days=%s", created.value.id, user_id, duration_days
        )
        return await self._read("load learning plan", lambda: self._reload_plan(created.value.id))

    async def list_plans(
        self, user_id: int, is_active: Optional[bool] = None
    ) -> Outcome[list[LearningPlan]]:
        async def op() -> Outcome:
            return Outcome.success(await self.store.list_plans(user_id, is_active))

        return await self._read("list learning plans", op)

    async def get_plan(self, plan_id: int, requester_id: int) -> Outcome[LearningPlan]:
        return await self._read("load learning plan", lambda: self._owned_plan(plan_id, requester_id))

    async def update_plan(
        self,
        plan_id: int,
        requester_id: int,
        *,
        track: Optional[Track] = None,
        duration_days: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Outcome[LearningPlan]:
        """Plain field update, or a duration change when ``duration_days`` differs."""
        if duration_days is not None and duration_days < 1:
            return invalid("duration_days must be at least 1")

        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id, for_update=True)
            if not owned.ok:
                return owned
            plan = owned.value
            if duration_days is not None and duration_days != plan.duration_days:
                self._apply_duration_change(
                    plan, plan.duration_days, duration_days, track=track, is_active=is_active
                )
            else:
                if track is not None:
                    plan.track = track
                if is_active is not None:
                    plan.is_active = is_active
            await self.store.flush()
            return Outcome.success(plan)

        updated = await self._run("update learning plan", op)
        if not updated.ok:
            return updated
        return await self._read("load learning plan", lambda: self._reload_plan(plan_id))

    async def change_duration(
        self,
        plan_id: int,
        requester_id: int,
        new_duration: int,
        *,
        track: Optional[Track] = None,
        is_active: Optional[bool] = None,
    ) -> Outcome[LearningPlan]:
        if new_duration < 1:
            return invalid("duration_days must be at least 1")

        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id, for_update=True)
            if not owned.ok:
                return owned
            plan = owned.value
            self._apply_duration_change(
                plan, plan.duration_days, new_duration, track=track, is_active=is_active
            )
            await self.store.flush()
            return Outcome.success(plan)

        changed = await self._run("change plan duration", op)
        if not changed.ok:
            return changed
        return await self._read("load learning plan", lambda: self._reload_plan(plan_id))

    def _apply_duration_change(
        self,
        plan: LearningPlan,
        old: int,
        new: int,
        *,
        track: Optional[Track] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        # 줄어든 일자의 진행 기록은 함께 삭제된다
        if track is not None:
            plan.track = track
        plan.duration_days = new
        plan.end_date = plan.start_date + timedelta(days=new)

        if new > old:
            for n in range(old + 1, new + 1):
                plan.daily_plans.append(
                    DailyPlan(day_number=n, is_unlocked=False, is_completed=False)
                )
        elif new < old:
            plan.daily_plans[:] = [d for d in plan.daily_plans if d.day_number <= new]

        plan.current_day = max(1, min(plan.current_day, new))
        completed = _completed_count(plan)
        plan.progress = percent(completed, new)
        plan.is_active = is_active if is_active is not None else completed < new
        logger.info("Learning plan %s duration changed: %s -> %s", plan.id, old, new)

    async def delete_plan(self, plan_id: int, requester_id: int) -> Outcome[None]:
        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id, for_update=True)
            if not owned.ok:
                return owned
            await self.store.delete_plan(owned.value)
            return Outcome.success(None)

        return await self._run("delete learning plan", op)

    async def update_progress(
        self,
        plan_id: int,
        requester_id: int,
        *,
        current_day: Optional[int] = None,
        progress: Optional[float] = None,
    ) -> Outcome[LearningPlan]:
        """Manual progress update; advancing ``current_day`` unlocks that day under the normal gate."""

        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id, for_update=True)
            if not owned.ok:
                return owned
            plan = owned.value

            if current_day is not None and not 1 <= current_day <= plan.duration_days:
                return invalid(f"current_day must be between 1 and {plan.duration_days}")
            if progress is not None and not 0 <= progress <= 100:
                return invalid("progress must be between 0 and 100")

            if current_day is not None and current_day > plan.current_day:
                target = _find_day(plan, current_day)
                if target is None:
                    return not_found(DAY_NOT_FOUND)
                if not target.is_unlocked:
                    if not _previous_day_completed(plan, current_day):
                        return invalid_state(PREVIOUS_DAY_INCOMPLETE)
                    target.is_unlocked = True

            if current_day is not None:
                plan.current_day = current_day
            if progress is not None:
                plan.progress = float(progress)
            await self.store.flush()
            return Outcome.success(plan)

        updated = await self._run("update progress", op)
        if not updated.ok:
            return updated
        return await self._read("load learning plan", lambda: self._reload_plan(plan_id))

    async def compute_stats(self, plan_id: int, requester_id: int) -> Outcome[LearningPlanStats]:
        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id)
            if not owned.ok:
                return owned
            plan = owned.value
            counts = {kind: 0 for kind in ResourceType}
            for day in plan.daily_plans:
                for resource in day.resources:
                    counts[resource.type] += 1
            remaining = (plan.end_date - self.clock()).total_seconds() / 86400
            stats = LearningPlanStats(
                totalDays=plan.duration_days,
                completedDays=_completed_count(plan),
                currentDay=plan.current_day,
                progress=plan.progress,
                daysRemaining=max(0, math.ceil(remaining)),
                resources=ResourceCounts(
                    videos=counts[ResourceType.VIDEO],
                    blogs=counts[ResourceType.BLOG],
                    leetcode=counts[ResourceType.LEETCODE],
                    total=sum(counts.values()),
                ),
                isActive=plan.is_active,
                startDate=plan.start_date,
                endDate=plan.end_date,
            )
            return Outcome.success(stats)

        return await self._read("compute plan stats", op)

    # ==================== days ====================

    async def list_days(self, plan_id: int, requester_id: int) -> Outcome[list[DailyPlan]]:
        async def op() -> Outcome:
            owned = await self._owned_plan(plan_id, requester_id)
            if not owned.ok:
                return owned
            return Outcome.success(sorted(owned.value.daily_plans, key=lambda d: d.day_number))

        return await self._read("list daily plans", op)

    async def get_day(self, day_id: int, requester_id: int) -> Outcome[DailyPlan]:
        async def op() -> Outcome:
            day = await self.store.get_day(day_id)
            if day is None:
                return not_found(DAY_NOT_FOUND)
            if day.learning_plan.user_id != requester_id:
                return forbidden(NOT_OWNER)
            return Outcome.success(day)

        return await self._read("load daily plan", op)

    async def unlock_day(self, day_id: int, requester_id: int) -> Outcome[DailyPlan]:
        async def op() -> Outcome:
            found = await self._owned_day_locked(day_id, requester_id)
            if not found.ok:
                return found
            day, plan = found.value
            if not _previous_day_completed(plan, day.day_number):
                return invalid_state(PREVIOUS_DAY_INCOMPLETE)
            day.is_unlocked = True
            await self.store.flush()
            return Outcome.success(day)

        unlocked = await self._run("unlock day", op)
        if not unlocked.ok:
            return unlocked
        return await self._read("load daily plan", lambda: self._reload_day(day_id))

    async def complete_day(self, day_id: int, requester_id: int) -> Outcome[DailyPlan]:
        async def op() -> Outcome:
            found = await self._owned_day_locked(day_id, requester_id)
            if not found.ok:
                return found
            day, plan = found.value

            gate = await self._first_failing_gate(day, requester_id)
            if gate is not None:
                return invalid_state(gate)

            day.is_completed = True
            if day.day_number < plan.duration_days:
                following = _find_day(plan, day.day_number + 1)
                if following is not None:
                    following.is_unlocked = True

            completed = _completed_count(plan)
            plan.progress = percent(completed, plan.duration_days)
            plan.current_day = min(day.day_number + 1, plan.duration_days)
            plan.is_active = completed < plan.duration_days
            await self.store.flush()
            logger.info(
                "Day %s of plan %s completed (%s/%s)",
                day.day_number,
                plan.id,
                completed,
                plan.duration_days,
            )
            return Outcome.success(day)

        completed = await self._run("complete day", op)
        if not completed.ok:
            return completed
        return await self._read("load daily plan", lambda: self._reload_day(day_id))

    async def _first_failing_gate(self, day: DailyPlan, requester_id: int) -> Optional[str]:
        if day.is_completed:
            return DAY_ALREADY_COMPLETED
        if not day.is_unlocked:
            return DAY_LOCKED

        assigned = {resource.id for resource in day.resources}
        if assigned:
            done = await self.store.completed_resource_ids(requester_id, assigned)
            if done != assigned:
                return RESOURCES_INCOMPLETE

        if day.quiz is not None:
            if not await self.store.has_completed_quiz_attempt(day.quiz.id, requester_id):
                return QUIZ_INCOMPLETE

        if day.mock_interview is not None and not day.mock_interview.is_completed:
            return INTERVIEW_INCOMPLETE
        return None
