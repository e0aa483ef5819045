"""Learning/practice resource models."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnpath.core.database import Base, utcnow


class ResourceType(str, enum.Enum):
    VIDEO = "VIDEO"
    BLOG = "BLOG"
    LEETCODE = "LEETCODE"


class Difficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Resource(Base):
    """Video, blog post or coding problem that can be attached to a day."""

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[ResourceType] = mapped_column(
        Enum(ResourceType, native_enum=False, length=20), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="minutes")
    difficulty: Mapped[Optional[Difficulty]] = mapped_column(
        Enum(Difficulty, native_enum=False, length=10), nullable=True
    )
    learning_plan_day_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("daily_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )
    practice_plan_day_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("daily_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


class UserResource(Base):
    """A resource marked completed by a user."""

    __tablename__ = "user_resources"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_id: Mapped[int] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    resource: Mapped["Resource"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_user_resources_user_resource"),
    )
