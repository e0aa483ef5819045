"""Learning plan and daily plan models."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnpath.core.database import Base, utcnow


class Track(str, enum.Enum):
    SERVICE_BASED = "SERVICE_BASED"
    PRODUCT_BASED = "PRODUCT_BASED"
    FAANG = "FAANG"
    BIG_4 = "BIG_4"
    GENERIC = "GENERIC"


class LearningPlan(Base):
    """A user's multi-day preparation plan."""

    __tablename__ = "learning_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track: Mapped[Track] = mapped_column(Enum(Track, native_enum=False, length=20), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    current_day: Mapped[int] = mapped_column(Integer, default=1)
    progress: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="learning_plans")
    daily_plans: Mapped[list["DailyPlan"]] = relationship(
        back_populates="learning_plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DailyPlan.day_number",
    )


class DailyPlan(Base):
    """One day of a learning plan."""

    __tablename__ = "daily_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    learning_plan_id: Mapped[int] = mapped_column(
        ForeignKey("learning_plans.id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    mock_interview_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey(
            "mock_interviews.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_daily_plans_mock_interview_id",
        ),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    learning_plan: Mapped["LearningPlan"] = relationship(back_populates="daily_plans")
    learning_resources: Mapped[list["Resource"]] = relationship(
        foreign_keys="Resource.learning_plan_day_id", passive_deletes=True
    )
    practice_resources: Mapped[list["Resource"]] = relationship(
        foreign_keys="Resource.practice_plan_day_id", passive_deletes=True
    )
    quiz: Mapped[Optional["Quiz"]] = relationship(
        back_populates="daily_plan",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    mock_interview: Mapped[Optional["MockInterview"]] = relationship(
        foreign_keys=[mock_interview_id], post_update=True
    )
    interview_template: Mapped[Optional["InterviewTemplate"]] = relationship(
        back_populates="daily_plan", uselist=False, passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("learning_plan_id", "day_number", name="uq_daily_plans_plan_day"),
    )

    @property
    def resources(self) -> list["Resource"]:
        return [*self.learning_resources, *self.practice_resources]
