"""Shared route dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.database import get_db
from learnpath.services.plan_store import SqlAlchemyPlanStore
from learnpath.services.progression import PlanProgressionEngine


async def get_progression_engine(db: AsyncSession = Depends(get_db)) -> PlanProgressionEngine:
    """Progression engine bound to the request session."""
    return PlanProgressionEngine(SqlAlchemyPlanStore(db))
