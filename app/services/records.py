"""Typed in-memory records passed between the engine components.

The ORM rows in ``app.models`` are converted to these at the storage boundary
so the decay / unlock / recommendation / readiness code stays pure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class SkillRecord:
    id: str
    name: str
    category: Optional[str] = None
    difficulty: int = 1
    estimated_hours: Optional[float] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PrerequisiteEdge:
    skill_id: str
    prerequisite_id: str
    weight: float = 1.0


@dataclass(frozen=True)
class ClusterRecord:
    id: str
    name: str
    career_path: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class SkillState:
    """One user's state for one skill. Mastery is an integer 0-100."""

    skill_id: str
    mastery_level: int = 0
    practiced_mastery: int = 0
    is_unlocked: bool = False
    last_practiced: Optional[datetime] = None
    reinforcement_count: int = 0
    decay_rate: Optional[float] = None


@dataclass(frozen=True)
class RankedSkill:
    skill_id: str
    name: str
    category: Optional[str]
    difficulty: int
    estimated_hours: Optional[float]
    score: float
    reason: str
    prerequisites_met: int
    prerequisites_total: int
    is_unlocked: bool


@dataclass(frozen=True)
class Readiness:
    placement_readiness: int
    skills_mastered: int
    consistency_score: float
    goal_progress: float = 50.0
    interview_performance: float = 50.0


@dataclass(frozen=True)
class ActivityEvent:
    skill_ids: List[str]
    completed_at: datetime
    performance_signal: Optional[float] = None
    title: str = "Practice session"
    activity_type: str = "practice"
    duration_minutes: Optional[int] = None


@dataclass
class RecomputeResult:
    user_id: int
    states: List[SkillState] = field(default_factory=list)
    decayed: List[str] = field(default_factory=list)
    newly_unlocked: List[str] = field(default_factory=list)
    recommendations: List[RankedSkill] = field(default_factory=list)
    readiness: Optional[Readiness] = None
    computed_at: Optional[datetime] = None
