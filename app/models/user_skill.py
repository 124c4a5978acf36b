"""Per-user skill state — mastery, unlock flag, and practice history."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class UserSkillState(Base):
    __tablename__ = "user_skill_graph"
    __table_args__ = (UniqueConstraint("user_id", "skill_id", name="uq_user_skill"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill_id: Mapped[str] = mapped_column(
        ForeignKey("skills.id", ondelete="CASCADE"), nullable=False
    )

    # ── Mastery (integer 0-100) ──
    mastery_level: Mapped[int] = mapped_column(Integer, default=0)
    # Mastery right after the last practice; decay is always computed from here.
    practiced_mastery: Mapped[int] = mapped_column(Integer, default=0)
    decay_rate: Mapped[Optional[float]] = mapped_column(Float)

    # ── Progress ──
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False)
    last_practiced: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    reinforcement_count: Mapped[int] = mapped_column(Integer, default=0)

    # ── Timestamps ──
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="skill_states")  # noqa: F821
