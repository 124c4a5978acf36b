"""Skill graph router — recompute, graph view, recommendations, readiness, activities.

Endpoints:
    POST /users/{id}/skill-graph/recompute → decay + unlock + recommend + readiness
    POST /users/{id}/skill-graph/seed      → unlock foundation skills (idempotent)
    GET  /users/{id}/skill-graph           → nodes / links / clusters for the graph view
    GET  /users/{id}/recommendations       → persisted active recommendations
    GET  /users/{id}/readiness             → persisted placement readiness
    POST /users/{id}/activities            → activity-completion event
    GET  /users/{id}/dashboard             → fresh values, or last persisted if recompute fails
"""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.skill_graph import (
    ActivityCreate,
    DashboardOut,
    ReadinessOut,
    RecommendationOut,
    RecomputeOut,
    SeedOut,
    SkillGraphOut,
)
from app.services.skill_graph import SkillGraphEngine, get_engine

router = APIRouter(prefix="/users", tags=["skill-graph"])


def _recompute_out(result) -> RecomputeOut:
    return RecomputeOut.model_validate(asdict(result))


@router.post("/{user_id}/skill-graph/recompute", response_model=RecomputeOut)
async def recompute_skill_graph(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    """Recompute one user's skill graph. Safe to retry."""
    result = await engine.recompute(user_id)
    return _recompute_out(result)


@router.post("/{user_id}/skill-graph/seed", response_model=SeedOut)
async def seed_skill_graph(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    """Unlock the zero-prerequisite skills for a user."""
    seeded = await engine.seed_foundation_skills(user_id)
    return {"user_id": user_id, "seeded": seeded}


@router.get("/{user_id}/skill-graph", response_model=SkillGraphOut)
async def read_skill_graph(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    """Return nodes and links JSON for the skill graph visualization."""
    return await engine.get_graph(user_id)


@router.get("/{user_id}/recommendations", response_model=List[RecommendationOut])
async def read_recommendations(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    return await engine.get_recommendations(user_id)


@router.get("/{user_id}/readiness", response_model=ReadinessOut)
async def read_readiness(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    readiness = await engine.get_readiness(user_id)
    if readiness is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Readiness has not been computed for this user yet",
        )
    return readiness


@router.post(
    "/{user_id}/activities",
    response_model=RecomputeOut,
    status_code=status.HTTP_201_CREATED,
)
async def complete_activity(
    user_id: int,
    payload: ActivityCreate,
    engine: SkillGraphEngine = Depends(get_engine),
):
    """Record a completed learning activity and refresh the user's graph."""
    result = await engine.record_activity(
        user_id,
        payload.skill_ids,
        completed_at=payload.completed_at,
        performance_signal=payload.performance_signal,
        title=payload.title,
        activity_type=payload.activity_type,
        duration_minutes=payload.duration_minutes,
    )
    return _recompute_out(result)


@router.get("/{user_id}/dashboard", response_model=DashboardOut)
async def read_dashboard(
    user_id: int,
    engine: SkillGraphEngine = Depends(get_engine),
):
    return await engine.dashboard(user_id)
