"""Readiness aggregator — one 0-100 placement readiness score per user.

Weighted sum of five signals (weights sum to 1.0):

    average mastery        0.35
    graph coverage         0.25   share of tracked skills at/above threshold
    consistency            0.20   from gaps between completed activities
    goal progress          0.10   neutral 50 when the user has no goals
    interview performance  0.10   neutral 50 when no interview was completed
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from app.config import settings
from app.services.decay import SECONDS_PER_DAY, as_utc
from app.services.records import Readiness, SkillState

WEIGHTS = {
    "mastery": 0.35,
    "coverage": 0.25,
    "consistency": 0.20,
    "goals": 0.10,
    "interview": 0.10,
}

NEUTRAL_SIGNAL = 50.0
GAP_PENALTY_PER_DAY = 5.0


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def consistency_score(
    timestamps: Iterable[Optional[datetime]],
    window: int = settings.CONSISTENCY_WINDOW,
) -> float:
    """100 minus 5 points per day of average gap between recent activities.

    Needs at least two completed activities; otherwise neutral.
    """
    moments = sorted(
        (as_utc(t) for t in timestamps if t is not None), reverse=True
    )[:window]
    if len(moments) < 2:
        return NEUTRAL_SIGNAL

    gaps = [
        (moments[i - 1] - moments[i]).total_seconds() / SECONDS_PER_DAY
        for i in range(1, len(moments))
    ]
    avg_gap = sum(gaps) / len(gaps)
    return round(_clamp(100.0 - avg_gap * GAP_PENALTY_PER_DAY), 2)


def goal_progress(statuses: Sequence[str]) -> Optional[float]:
    """Percentage of goals completed, or None when the user has none."""
    if not statuses:
        return None
    done = sum(1 for s in statuses if s == "completed")
    return round(done / len(statuses) * 100.0, 2)


def interview_performance(scores: Sequence[Optional[float]]) -> Optional[float]:
    """Mean overall score of completed interviews, or None."""
    values: List[float] = [_clamp(float(s)) for s in scores if s is not None]
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def compute_readiness(
    states: Iterable[SkillState],
    activity_times: Iterable[Optional[datetime]] = (),
    goal_signal: Optional[float] = None,
    interview_signal: Optional[float] = None,
    threshold: int = settings.MASTERY_THRESHOLD,
    window: int = settings.CONSISTENCY_WINDOW,
) -> Readiness:
    states = list(states)
    consistency = consistency_score(activity_times, window)
    goals = NEUTRAL_SIGNAL if goal_signal is None else _clamp(goal_signal)
    interview = NEUTRAL_SIGNAL if interview_signal is None else _clamp(interview_signal)

    if not states:
        return Readiness(
            placement_readiness=0,
            skills_mastered=0,
            consistency_score=consistency,
            goal_progress=goals,
            interview_performance=interview,
        )

    avg_mastery = sum(_clamp(s.mastery_level) for s in states) / len(states)
    mastered = sum(1 for s in states if s.mastery_level >= threshold)
    coverage = mastered / len(states) * 100.0

    total = (
        avg_mastery * WEIGHTS["mastery"]
        + coverage * WEIGHTS["coverage"]
        + consistency * WEIGHTS["consistency"]
        + goals * WEIGHTS["goals"]
        + interview * WEIGHTS["interview"]
    )
    return Readiness(
        placement_readiness=int(round(_clamp(total))),
        skills_mastered=mastered,
        consistency_score=consistency,
        goal_progress=goals,
        interview_performance=interview,
    )
