"""Skill-graph Pydantic schemas — graph view, recommendations, readiness, activities."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SkillOut(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    difficulty: int
    estimated_hours: Optional[float] = None

    model_config = {"from_attributes": True}


# ── Graph view ──

class GraphNode(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    difficulty: int
    estimated_hours: Optional[float] = None
    mastery: int
    is_unlocked: bool
    last_practiced: Optional[datetime] = None
    cluster_id: Optional[str] = None


class GraphLink(BaseModel):
    source: str
    target: str
    weight: float


class GraphCluster(BaseModel):
    id: str
    name: str
    career_path: Optional[str] = None
    description: Optional[str] = None


class SkillGraphOut(BaseModel):
    nodes: List[GraphNode]
    links: List[GraphLink]
    clusters: List[GraphCluster] = []


# ── Recommendations ──

class RankedSkillOut(BaseModel):
    """A freshly computed recommendation."""
    skill_id: str
    name: str
    category: Optional[str] = None
    difficulty: int
    estimated_hours: Optional[float] = None
    score: float
    reason: str
    prerequisites_met: int
    prerequisites_total: int
    is_unlocked: bool

    model_config = {"from_attributes": True}


class RecommendationOut(BaseModel):
    """A persisted, active recommendation."""
    skill_id: str
    skill_name: str
    category: Optional[str] = None
    difficulty: int
    estimated_hours: Optional[float] = None
    score: float
    reason: str
    rank: int


# ── Readiness ──

class ReadinessOut(BaseModel):
    placement_readiness: int
    skills_mastered: int
    consistency_score: float
    goal_progress: float
    interview_performance: float
    last_activity: Optional[datetime] = None
    computed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ── Recompute / activity ──

class ActivityCreate(BaseModel):
    """Activity-completion event posted by the learning front end."""
    skill_ids: List[str] = Field(min_length=1)
    completed_at: Optional[datetime] = None
    performance_signal: Optional[float] = Field(default=None, ge=0, le=100)
    title: str = "Practice session"
    activity_type: str = "practice"
    duration_minutes: Optional[int] = Field(default=None, ge=0)


class RecomputeOut(BaseModel):
    user_id: int
    decayed: List[str]
    newly_unlocked: List[str]
    recommendations: List[RankedSkillOut]
    readiness: ReadinessOut
    computed_at: datetime


class SeedOut(BaseModel):
    user_id: int
    seeded: List[str]


class DashboardOut(BaseModel):
    user_id: int
    stale: bool
    readiness: Optional[ReadinessOut] = None
    recommendations: List[RecommendationOut]
