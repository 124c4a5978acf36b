"""User stats model — one row per user holding the placement readiness score."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UserStats(Base):
    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # ── Readiness ──
    placement_readiness: Mapped[int] = mapped_column(Integer, default=0)
    skills_mastered: Mapped[int] = mapped_column(Integer, default=0)
    consistency_score: Mapped[float] = mapped_column(Float, default=50.0)
    goal_progress: Mapped[float] = mapped_column(Float, default=50.0)
    interview_performance: Mapped[float] = mapped_column(Float, default=50.0)

    # ── Timestamps ──
    last_activity: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    computed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
