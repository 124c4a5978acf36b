"""Storage port for the skill-graph engine and its SQLAlchemy implementation.

The engine never touches a global client: every operation receives a
``SkillGraphStore``. ``SqlSkillGraphStore`` wraps one ``AsyncSession``; the
caller owns the transaction, so a failure before commit leaves the previously
persisted rows untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.activity import InterviewSession, LearningActivity, UserGoal
from app.models.recommendation import GraphRecommendation
from app.models.skill import Skill, SkillCluster, SkillClusterMapping, SkillDependency
from app.models.user import User
from app.models.user_skill import UserSkillState
from app.models.user_stats import UserStats
from app.services.catalog import Catalog
from app.services.decay import as_utc
from app.services.mastery import clamp_mastery
from app.services.records import (
    ActivityEvent,
    ClusterRecord,
    PrerequisiteEdge,
    RankedSkill,
    Readiness,
    SkillRecord,
    SkillState,
)

logger = logging.getLogger(__name__)


class SkillGraphStore(Protocol):
    """Everything the engine reads from or writes to persistent storage."""

    async def user_exists(self, user_id: int) -> bool: ...

    async def add_user(
        self, email: str, full_name: str, career_focus: Optional[str] = None
    ) -> User: ...

    async def load_catalog(self) -> Catalog: ...

    async def load_states(self, user_id: int) -> List[SkillState]: ...

    async def load_activity_times(self, user_id: int, limit: int) -> List[datetime]: ...

    async def load_goal_statuses(self, user_id: int) -> List[str]: ...

    async def load_interview_scores(self, user_id: int) -> List[Optional[float]]: ...

    async def load_recommendations(self, user_id: int) -> List[dict]: ...

    async def load_readiness(self, user_id: int) -> Optional[dict]: ...

    async def add_activity(self, user_id: int, event: ActivityEvent) -> None: ...

    async def save_states(self, user_id: int, states: Sequence[SkillState]) -> None: ...

    async def save_snapshot(
        self,
        user_id: int,
        states: Sequence[SkillState],
        recommendations: Sequence[RankedSkill],
        readiness: Readiness,
        computed_at: datetime,
    ) -> None: ...


def _skill_record(row: Skill) -> SkillRecord:
    return SkillRecord(
        id=row.id,
        name=row.name,
        category=row.category,
        difficulty=int(row.difficulty or 1),
        estimated_hours=row.estimated_hours,
        description=row.description,
    )


class SqlSkillGraphStore:
    """SkillGraphStore backed by the async SQLAlchemy session."""

    def __init__(self, session: AsyncSession, persist_limit: Optional[int] = None):
        self.session = session
        self.persist_limit = (
            settings.RECOMMENDATION_PERSIST_LIMIT if persist_limit is None else persist_limit
        )

    # ═══════════════════════════════════════════════════════════════
    #  Reads
    # ═══════════════════════════════════════════════════════════════

    async def user_exists(self, user_id: int) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def load_catalog(self) -> Catalog:
        skills = (await self.session.execute(select(Skill))).scalars().all()
        deps = (await self.session.execute(select(SkillDependency))).scalars().all()
        clusters = (await self.session.execute(select(SkillCluster))).scalars().all()
        mapping = (await self.session.execute(select(SkillClusterMapping))).scalars().all()

        return Catalog.from_records(
            skills=[_skill_record(s) for s in skills],
            edges=[
                PrerequisiteEdge(
                    skill_id=d.skill_id,
                    prerequisite_id=d.prerequisite_id,
                    weight=float(d.weight if d.weight is not None else 1.0),
                )
                for d in deps
            ],
            clusters=[
                ClusterRecord(
                    id=c.id,
                    name=c.name,
                    career_path=c.career_path,
                    description=c.description,
                )
                for c in clusters
            ],
            cluster_of={m.skill_id: m.cluster_id for m in mapping},
        )

    async def _state_rows(self, user_id: int) -> Dict[str, UserSkillState]:
        result = await self.session.execute(
            select(UserSkillState).where(UserSkillState.user_id == user_id)
        )
        return {row.skill_id: row for row in result.scalars().all()}

    async def load_states(self, user_id: int) -> List[SkillState]:
        rows = await self._state_rows(user_id)
        states = []
        for skill_id in sorted(rows):
            row = rows[skill_id]
            level = clamp_mastery(row.mastery_level, skill_id)
            # Decay only lowers mastery, so the practice baseline is never below it.
            baseline = max(level, clamp_mastery(row.practiced_mastery, skill_id))
            states.append(
                SkillState(
                    skill_id=skill_id,
                    mastery_level=level,
                    practiced_mastery=baseline,
                    is_unlocked=bool(row.is_unlocked),
                    last_practiced=as_utc(row.last_practiced),
                    reinforcement_count=max(0, int(row.reinforcement_count or 0)),
                    decay_rate=row.decay_rate,
                )
            )
        return states

    async def load_activity_times(self, user_id: int, limit: int) -> List[datetime]:
        result = await self.session.execute(
            select(LearningActivity.completed_at)
            .where(
                LearningActivity.user_id == user_id,
                LearningActivity.completed_at.is_not(None),
            )
            .order_by(desc(LearningActivity.completed_at))
            .limit(limit)
        )
        return [as_utc(t) for t in result.scalars().all()]

    async def load_goal_statuses(self, user_id: int) -> List[str]:
        result = await self.session.execute(
            select(UserGoal.status).where(UserGoal.user_id == user_id)
        )
        return [getattr(s, "value", s) for s in result.scalars().all()]

    async def load_interview_scores(self, user_id: int) -> List[Optional[float]]:
        result = await self.session.execute(
            select(InterviewSession.overall_score).where(
                InterviewSession.user_id == user_id,
                InterviewSession.completed_at.is_not(None),
            )
        )
        return list(result.scalars().all())

    async def load_recommendations(self, user_id: int) -> List[dict]:
        result = await self.session.execute(
            select(GraphRecommendation, Skill)
            .join(Skill, Skill.id == GraphRecommendation.skill_id)
            .where(
                GraphRecommendation.user_id == user_id,
                GraphRecommendation.is_active.is_(True),
            )
            .order_by(GraphRecommendation.rank, GraphRecommendation.skill_id)
        )
        return [
            {
                "skill_id": rec.skill_id,
                "skill_name": skill.name,
                "category": skill.category,
                "difficulty": skill.difficulty,
                "estimated_hours": skill.estimated_hours,
                "score": rec.score,
                "reason": rec.reason or "",
                "rank": rec.rank,
            }
            for rec, skill in result.all()
        ]

    async def load_readiness(self, user_id: int) -> Optional[dict]:
        result = await self.session.execute(
            select(UserStats).where(UserStats.user_id == user_id)
        )
        stats = result.scalar_one_or_none()
        if not stats:
            return None
        return {
            "placement_readiness": stats.placement_readiness,
            "skills_mastered": stats.skills_mastered,
            "consistency_score": stats.consistency_score,
            "goal_progress": stats.goal_progress,
            "interview_performance": stats.interview_performance,
            "last_activity": as_utc(stats.last_activity),
            "computed_at": as_utc(stats.computed_at),
        }

    # ═══════════════════════════════════════════════════════════════
    #  Writes
    # ═══════════════════════════════════════════════════════════════

    async def add_user(
        self, email: str, full_name: str, career_focus: Optional[str] = None
    ) -> User:
        user = User(email=email, full_name=full_name, career_focus=career_focus)
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def add_activity(self, user_id: int, event: ActivityEvent) -> None:
        self.session.add(
            LearningActivity(
                user_id=user_id,
                activity_type=event.activity_type,
                title=event.title,
                skills_practiced_json=json.dumps(list(event.skill_ids)),
                accuracy_score=event.performance_signal,
                duration_minutes=event.duration_minutes,
                completed_at=as_utc(event.completed_at),
            )
        )

    async def save_states(self, user_id: int, states: Sequence[SkillState]) -> None:
        rows = await self._state_rows(user_id)
        for state in states:
            row = rows.get(state.skill_id)
            if row is None:
                row = UserSkillState(user_id=user_id, skill_id=state.skill_id)
                self.session.add(row)
            row.mastery_level = state.mastery_level
            row.practiced_mastery = state.practiced_mastery
            # Unlocks are never revoked by a write.
            row.is_unlocked = bool(row.is_unlocked) or state.is_unlocked
            row.last_practiced = state.last_practiced
            row.reinforcement_count = state.reinforcement_count
            row.decay_rate = state.decay_rate

    async def save_recommendations(
        self, user_id: int, recommendations: Sequence[RankedSkill]
    ) -> None:
        """Replace the user's active recommendations, keyed by (user, skill)."""
        top = list(recommendations)[: self.persist_limit]

        await self.session.execute(
            update(GraphRecommendation)
            .where(
                GraphRecommendation.user_id == user_id,
                GraphRecommendation.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )

        result = await self.session.execute(
            select(GraphRecommendation).where(GraphRecommendation.user_id == user_id)
        )
        existing = {row.skill_id: row for row in result.scalars().all()}

        for rank, rec in enumerate(top, start=1):
            row = existing.get(rec.skill_id)
            if row is None:
                row = GraphRecommendation(user_id=user_id, skill_id=rec.skill_id)
                self.session.add(row)
            row.score = rec.score
            row.reason = rec.reason
            row.rank = rank
            row.is_active = True

    async def save_readiness(
        self, user_id: int, readiness: Readiness, computed_at: datetime
    ) -> None:
        result = await self.session.execute(
            select(UserStats).where(UserStats.user_id == user_id)
        )
        stats = result.scalar_one_or_none()
        if stats is None:
            stats = UserStats(user_id=user_id)
            self.session.add(stats)

        latest = await self.load_activity_times(user_id, 1)
        stats.placement_readiness = readiness.placement_readiness
        stats.skills_mastered = readiness.skills_mastered
        stats.consistency_score = readiness.consistency_score
        stats.goal_progress = readiness.goal_progress
        stats.interview_performance = readiness.interview_performance
        stats.last_activity = latest[0] if latest else None
        stats.computed_at = computed_at

    async def save_snapshot(
        self,
        user_id: int,
        states: Sequence[SkillState],
        recommendations: Sequence[RankedSkill],
        readiness: Readiness,
        computed_at: datetime,
    ) -> None:
        await self.save_states(user_id, states)
        await self.save_recommendations(user_id, recommendations)
        await self.save_readiness(user_id, readiness, computed_at)
        await self.session.flush()
        logger.debug(
            f"Snapshot staged for user {user_id}: {len(states)} states, "
            f"{min(len(recommendations), self.persist_limit)} recommendations"
        )
