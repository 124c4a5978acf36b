"""
Skill-graph engine — per-user recompute pipeline.

Each call is a short-lived batch job:

    load state → decay → unlock → recommend → readiness → persist

Steps 2-5 are pure functions; loading and persisting happen inside one
database transaction, under a per-user asyncio lock, so two concurrent
recomputes for the same user cannot interleave and a failed run leaves the
previously persisted rows untouched.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import async_session
from app.models.user import User
from app.services.catalog import Catalog, validate_catalog
from app.services.decay import apply_decay
from app.services.errors import InvalidStateError, NotFoundError, SkillGraphError
from app.services.graph_query import get_graph as project_graph
from app.services.mastery import apply_activity
from app.services.readiness import compute_readiness, goal_progress, interview_performance
from app.services.recommendation import recommend
from app.services.records import ActivityEvent, RecomputeResult, SkillState
from app.services.storage import SqlSkillGraphStore
from app.services.unlock import apply_unlocks

logger = logging.getLogger(__name__)


def run_pipeline(
    user_id: int,
    states: Sequence[SkillState],
    catalog: Catalog,
    activity_times: Sequence[datetime],
    goal_statuses: Sequence[str],
    interview_scores: Sequence[Optional[float]],
    now: datetime,
) -> RecomputeResult:
    """Pure part of a recompute: decay, unlock, recommend, readiness."""
    validate_catalog(catalog)

    decayed_states, decayed = apply_decay(
        states, now, settings.DEFAULT_DECAY_RATE, settings.DECAY_FLOOR
    )
    unlocked_states, newly_unlocked = apply_unlocks(
        decayed_states, catalog, settings.MASTERY_THRESHOLD
    )
    ranked = recommend(
        unlocked_states,
        catalog,
        limit=settings.RECOMMENDATION_LIMIT,
        threshold=settings.MASTERY_THRESHOLD,
        near_ratio=settings.NEAR_UNLOCK_RATIO,
        advanced_after=settings.ADVANCED_USER_MASTERED,
    )
    readiness = compute_readiness(
        unlocked_states,
        activity_times,
        goal_signal=goal_progress(goal_statuses),
        interview_signal=interview_performance(interview_scores),
        threshold=settings.MASTERY_THRESHOLD,
        window=settings.CONSISTENCY_WINDOW,
    )
    return RecomputeResult(
        user_id=user_id,
        states=unlocked_states,
        decayed=decayed,
        newly_unlocked=newly_unlocked,
        recommendations=ranked,
        readiness=readiness,
        computed_at=now,
    )


class SkillGraphEngine:
    """Entry point used by the routers and by account provisioning."""

    def __init__(self, session_factory, store_factory=SqlSkillGraphStore):
        self.session_factory = session_factory
        self.store_factory = store_factory
        self._locks: Dict[int, asyncio.Lock] = {}
        self._holders: Dict[int, int] = {}

    # ═══════════════════════════════════════════════════════════════
    #  Helpers
    # ═══════════════════════════════════════════════════════════════

    @asynccontextmanager
    async def _lock(self, user_id: int) -> AsyncIterator[None]:
        """Hold the per-user lock; it is dropped once no one holds or awaits it."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._holders[user_id] = self._holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[user_id] -= 1
            if not self._holders[user_id]:
                del self._holders[user_id]
                del self._locks[user_id]

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[SqlSkillGraphStore]:
        """One session, one transaction: commit on success, roll back on error."""
        async with self.session_factory() as session:
            async with session.begin():
                yield self.store_factory(session)

    @asynccontextmanager
    async def _reader(self) -> AsyncIterator[SqlSkillGraphStore]:
        async with self.session_factory() as session:
            yield self.store_factory(session)

    @staticmethod
    async def _require_user(store, user_id: int) -> None:
        if not await store.user_exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

    async def _recompute_with(
        self,
        store,
        user_id: int,
        states: Sequence[SkillState],
        catalog: Catalog,
        now: datetime,
    ) -> RecomputeResult:
        result = run_pipeline(
            user_id,
            states,
            catalog,
            await store.load_activity_times(user_id, settings.CONSISTENCY_WINDOW),
            await store.load_goal_statuses(user_id),
            await store.load_interview_scores(user_id),
            now,
        )
        await store.save_snapshot(
            user_id, result.states, result.recommendations, result.readiness, now
        )
        return result

    # ═══════════════════════════════════════════════════════════════
    #  Write paths
    # ═══════════════════════════════════════════════════════════════

    async def recompute(self, user_id: int, now: Optional[datetime] = None) -> RecomputeResult:
        """Decay, unlock, recommend, and score readiness for one user."""
        now = now or datetime.now(timezone.utc)
        async with self._lock(user_id):
            async with self._transaction() as store:
                await self._require_user(store, user_id)
                catalog = await store.load_catalog()
                states = await store.load_states(user_id)
                result = await self._recompute_with(store, user_id, states, catalog, now)

        logger.info(
            f"Recomputed skill graph for user {user_id}: "
            f"{len(result.decayed)} decayed, {len(result.newly_unlocked)} unlocked, "
            f"readiness {result.readiness.placement_readiness}"
        )
        return result

    async def record_activity(
        self,
        user_id: int,
        skill_ids: List[str],
        completed_at: Optional[datetime] = None,
        performance_signal: Optional[float] = None,
        title: str = "Practice session",
        activity_type: str = "practice",
        duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RecomputeResult:
        """Apply an activity-completion event, then recompute."""
        if not skill_ids:
            raise InvalidStateError("An activity must practice at least one skill")
        if performance_signal is not None and not 0 <= performance_signal <= 100:
            raise InvalidStateError(
                f"performance_signal must be within 0-100, got {performance_signal}"
            )

        now = now or datetime.now(timezone.utc)
        event = ActivityEvent(
            skill_ids=list(skill_ids),
            completed_at=completed_at or now,
            performance_signal=performance_signal,
            title=title,
            activity_type=activity_type,
            duration_minutes=duration_minutes,
        )

        async with self._lock(user_id):
            async with self._transaction() as store:
                await self._require_user(store, user_id)
                catalog = await store.load_catalog()
                states = apply_activity(
                    await store.load_states(user_id),
                    event,
                    catalog,
                    settings.DEFAULT_DECAY_RATE,
                    settings.REINFORCEMENT_STEP,
                )
                await store.add_activity(user_id, event)
                result = await self._recompute_with(store, user_id, states, catalog, now)

        logger.info(
            f"Activity recorded for user {user_id} on {', '.join(event.skill_ids)}; "
            f"readiness {result.readiness.placement_readiness}"
        )
        return result

    @staticmethod
    async def _seed_with(store, user_id: int) -> List[str]:
        catalog = await store.load_catalog()
        validate_catalog(catalog)
        by_id = {s.skill_id: s for s in await store.load_states(user_id)}

        seeded = []
        for skill_id in catalog.foundation_ids():
            state = by_id.get(skill_id)
            if state is None:
                by_id[skill_id] = SkillState(skill_id=skill_id, is_unlocked=True)
                seeded.append(skill_id)
            elif not state.is_unlocked:
                by_id[skill_id] = replace(state, is_unlocked=True)
                seeded.append(skill_id)

        if seeded:
            await store.save_states(user_id, list(by_id.values()))
        return seeded

    async def seed_foundation_skills(self, user_id: int) -> List[str]:
        """Unlock every zero-prerequisite skill for a user. Safe to call repeatedly.

        Returns the ids that were newly created or unlocked.
        """
        async with self._lock(user_id):
            async with self._transaction() as store:
                await self._require_user(store, user_id)
                seeded = await self._seed_with(store, user_id)

        logger.info(f"Seeded {len(seeded)} foundation skill(s) for user {user_id}")
        return seeded

    async def provision_user(
        self,
        email: str,
        full_name: str,
        career_focus: Optional[str] = None,
    ) -> Tuple[User, List[str]]:
        """Create a learner and seed its foundation skills in one transaction.

        If seeding fails the user row is rolled back with it.
        """
        async with self._transaction() as store:
            user = await store.add_user(email, full_name, career_focus)
            seeded = await self._seed_with(store, user.id)

        logger.info(f"Provisioned user {user.id} with {len(seeded)} foundation skill(s)")
        return user, seeded

    # ═══════════════════════════════════════════════════════════════
    #  Read paths (no side effects)
    # ═══════════════════════════════════════════════════════════════

    async def get_graph(self, user_id: int) -> dict:
        async with self._reader() as store:
            return await project_graph(user_id, store)

    async def get_recommendations(self, user_id: int) -> List[dict]:
        async with self._reader() as store:
            await self._require_user(store, user_id)
            return await store.load_recommendations(user_id)

    async def get_readiness(self, user_id: int) -> Optional[dict]:
        async with self._reader() as store:
            await self._require_user(store, user_id)
            return await store.load_readiness(user_id)

    async def dashboard(self, user_id: int, now: Optional[datetime] = None) -> dict:
        """Fresh readiness and recommendations, or the last persisted ones.

        A failed recompute is logged and the previous values are served with
        ``stale`` set, rather than an error or zeroed scores.
        """
        stale = False
        try:
            await self.recompute(user_id, now)
        except NotFoundError:
            raise
        except (SkillGraphError, SQLAlchemyError) as exc:
            logger.warning(f"Serving stale dashboard for user {user_id}: {exc}")
            stale = True

        return {
            "user_id": user_id,
            "stale": stale,
            "readiness": await self.get_readiness(user_id),
            "recommendations": await self.get_recommendations(user_id),
        }


# ── Shared engine + FastAPI dependency ──
skill_graph_engine = SkillGraphEngine(async_session)


def get_engine() -> SkillGraphEngine:
    """Return the process-wide engine (overridden in tests)."""
    return skill_graph_engine
